"""Tests for image-file output, header-info export and preview fallback."""

import json

import matplotlib.pyplot as plt
import numpy as np
import pytest
import scipy.io
from PIL import Image

from norpix_seq.errors import OutputDirectoryError
from norpix_seq.frame_decoder import DecodedFrame
from norpix_seq.header import read_header
from norpix_seq.pipeline import run
from norpix_seq.preview import NoOpPreview, PreviewSink, make_preview
from norpix_seq.sinks import (
    CollectingSink,
    ImageFileSink,
    MultiSink,
    frame_filename,
    to_uint8,
    write_header_info,
)


def _frame(pixels, timestamp="2020-09-13T12:26:41:001002", index=1):
    return DecodedFrame(index=index, pixels=pixels, timestamp=timestamp)


def test_frame_filename_replaces_colons():
    frame = _frame(np.zeros((2, 2, 1)))
    assert frame_filename(frame, "png") == "2020-09-13T12;26;41;001002.png"
    assert frame_filename(frame, "jpg").endswith(".jpg")


def test_to_uint8_clips():
    out = to_uint8(np.array([-0.5, 0.0, 0.5, 1.0, 3.0]))
    assert out.tolist() == [0, 0, 128, 255, 255]


def test_missing_output_dir_requires_make_dir(tmp_path):
    with pytest.raises(OutputDirectoryError):
        ImageFileSink(tmp_path / "out")
    sink = ImageFileSink(tmp_path / "out" / "nested", make_dir=True)
    assert sink.out_dir.is_dir()


def test_output_path_must_be_directory(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(OutputDirectoryError):
        ImageFileSink(f)


def test_invalid_image_format(tmp_path):
    with pytest.raises(ValueError):
        ImageFileSink(tmp_path, image_format="gif")


@pytest.mark.parametrize("fmt,pil_format", [("png", "PNG"), ("tiff", "TIFF"), ("bmp", "BMP")])
def test_writes_grayscale_images(tmp_path, fmt, pil_format):
    pixels = np.linspace(0, 1, 12).reshape(3, 4, 1)
    sink = ImageFileSink(tmp_path, image_format=fmt)
    sink.write(_frame(pixels))

    (path,) = sink.written
    with Image.open(path) as img:
        assert img.format == pil_format
        assert img.size == (4, 3)
        assert img.mode == "L"
        data = np.asarray(img)
    np.testing.assert_array_equal(data, to_uint8(pixels[:, :, 0]))


def test_writes_rgb_images(tmp_path):
    pixels = np.zeros((3, 4, 3))
    pixels[:, :, 0] = 1.0
    sink = ImageFileSink(tmp_path, image_format="png")
    sink.write(_frame(pixels))
    with Image.open(sink.written[0]) as img:
        assert img.mode == "RGB"
        assert img.getpixel((0, 0)) == (255, 0, 0)


def test_jpeg_output(tmp_path):
    sink = ImageFileSink(tmp_path, image_format="jpg")
    sink.write(_frame(np.full((8, 8, 3), 0.5)))
    with Image.open(sink.written[0]) as img:
        assert img.format == "JPEG"


def test_pipeline_into_image_sink(tmp_path, make_seq, mono_frames):
    path = make_seq(frames=mono_frames)
    out = tmp_path / "frames"
    result = run(path, ImageFileSink(out, make_dir=True), frame_range=(1, 3))
    names = sorted(p.name for p in out.iterdir())
    assert names == sorted(t.replace(":", ";") + ".png" for t in result.timestamps)


def test_multi_sink_fans_out():
    a, b = CollectingSink(), CollectingSink()
    multi = MultiSink([a, b])
    frame = _frame(np.zeros((1, 1, 1)))
    multi.write(frame)
    multi.close()
    assert a.frames == [frame] and b.frames == [frame]
    assert a.closed and b.closed


def test_header_info_json(tmp_path, seq_stream):
    header = read_header(seq_stream(description="cam", allocated=2))
    path = write_header_info(tmp_path / "headerinfo.json", header, ["t1", "t2"])
    info = json.loads(path.read_text())
    assert info["description"] == "cam"
    assert info["allocated_frames"] == 2
    assert info["timestamps"] == ["t1", "t2"]


def test_header_info_mat(tmp_path, seq_stream):
    header = read_header(seq_stream(width=16, height=8, allocated=2))
    path = write_header_info(tmp_path / "headerinfo.mat", header, ["t1", "t2"])
    mat = scipy.io.loadmat(path, simplify_cells=True)
    info = mat["headerInfo"]
    assert info["ImageWidth"] == 16
    assert info["ImageHeight"] == 8
    assert info["ImageFormat"] == "Monochrome"
    assert list(info["timestamp"]) == ["t1", "t2"]


def test_headless_preview_is_noop(monkeypatch):
    monkeypatch.setenv("HEADLESS", "1")
    preview = make_preview()
    assert isinstance(preview, NoOpPreview)
    preview.write(_frame(np.zeros((2, 2, 1))))
    preview.close()


def test_preview_sink_redraws_frames(monkeypatch):
    monkeypatch.delenv("HEADLESS", raising=False)
    plt.switch_backend("Agg")
    preview = make_preview(step=2, title="preview-test")
    assert isinstance(preview, PreviewSink)
    try:
        preview.write(_frame(np.full((4, 4, 1), 0.5)))
        assert preview._image.get_array().shape == (2, 2)

        # Channel count change rebuilds the image
        preview.write(_frame(np.full((4, 4, 3), 2.0), index=2))
        first = preview._image
        assert first.get_array().shape == (2, 2, 3)
        assert float(first.get_array().max()) == 1.0

        later = "2020-09-13T12:26:41:002000"
        preview.write(_frame(np.zeros((4, 4, 3)), timestamp=later, index=3))
        assert preview._image is first
        assert float(first.get_array().max()) == 0.0
        assert preview._ax.get_title() == f"#3  {later}"
    finally:
        preview.close()


if __name__ == "__main__":
    pytest.main([__file__])
