"""Shared fixtures: synthetic SEQ files built byte by byte."""

import io
import struct

import numpy as np
import pytest


FRAME_DATA_OFFSET = 8192


def build_seq(
    frames=(),
    width=4,
    height=3,
    bit_depth_real=8,
    bit_depth=None,
    format_code=100,
    channels=1,
    allocated=None,
    true_image_size=None,
    description="",
    description_format=0,
    version=5,
    header_size=1024,
    origin=0,
    frame_rate=25.0,
):
    """
    Build the bytes of a SEQ file.

    Args:
        frames: Iterable of (samples, (seconds, millis, micros)); samples is
            an array of shape (height, width, channels) or (height, width)
        true_image_size: Record stride; defaults to pixel bytes + 8 + 16
            bytes of padding
    """
    dtype = np.dtype(np.uint8) if bit_depth_real == 8 else np.dtype("<u2")
    pixel_bytes = width * height * channels * dtype.itemsize
    if true_image_size is None:
        true_image_size = pixel_bytes + 8 + 16
    frames = list(frames)
    if allocated is None:
        allocated = len(frames)

    header = bytearray(FRAME_DATA_OFFSET)
    struct.pack_into("<i", header, 28, version)
    struct.pack_into("<i", header, 32, header_size)
    if description_format == 1:
        units = [ord(c) for c in description]
    else:
        units = np.frombuffer(description.encode("utf-16-le"), dtype="<u2").tolist()
    units = (units + [0] * 512)[:512]
    struct.pack_into("<512H", header, 36, *units)
    struct.pack_into(
        "<6I",
        header,
        548,
        width,
        height,
        bit_depth if bit_depth is not None else bit_depth_real,
        bit_depth_real,
        pixel_bytes,
        format_code,
    )
    struct.pack_into("<H", header, 572, allocated)
    struct.pack_into("<H", header, 576, origin)
    struct.pack_into("<I", header, 580, true_image_size)
    struct.pack_into("<d", header, 584, frame_rate)
    struct.pack_into("<i", header, 592, description_format)

    body = bytearray()
    for samples, (seconds, millis, micros) in frames:
        data = np.asarray(samples, dtype=dtype).tobytes()
        assert len(data) == pixel_bytes
        record = data + struct.pack("<iHH", seconds, millis, micros)
        record += b"\xEE" * (true_image_size - len(record))
        body += record

    return bytes(header) + bytes(body)


@pytest.fixture
def make_seq(tmp_path):
    """Write a synthetic SEQ file and return its path."""
    counter = {"n": 0}

    def _make(truncate_to=None, **kwargs):
        data = build_seq(**kwargs)
        if truncate_to is not None:
            data = data[:truncate_to]
        counter["n"] += 1
        path = tmp_path / f"sample_{counter['n']}.seq"
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def mono_frames():
    """Five 3x4 monochrome frames; every pixel of frame k equals 10 * k."""
    return [
        (np.full((3, 4), 10 * k, dtype=np.uint8), (1_600_000_000 + k, k, 2 * k))
        for k in range(1, 6)
    ]


@pytest.fixture
def seq_stream():
    """Build a synthetic SEQ file in memory and return a BytesIO over it."""

    def _make(**kwargs):
        return io.BytesIO(build_seq(**kwargs))

    return _make
