"""
Frame sinks and header-info export.

A sink receives DecodedFrame objects one at a time, in ascending index
order, and is closed once the pipeline finishes. Sinks carry everything
they need from the frame itself and never touch the SEQ file.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Sequence

import numpy as np
import scipy.io
from PIL import Image

from .errors import OutputDirectoryError

if TYPE_CHECKING:
    from .frame_decoder import DecodedFrame
    from .header import SeqHeader


logger = logging.getLogger(__name__)


# Output format -> (file extension, Pillow format name)
IMAGE_FORMATS = {
    "png": ("png", "PNG"),
    "tiff": ("tiff", "TIFF"),
    "bmp": ("bmp", "BMP"),
    "jpg": ("jpg", "JPEG"),
}


class FrameSink(ABC):
    """Receiver for decoded frames."""

    @abstractmethod
    def write(self, frame: DecodedFrame) -> None:
        """Consume one decoded frame."""
        pass

    def close(self) -> None:
        """Release resources once all frames are written."""
        return None


class CollectingSink(FrameSink):
    """Keeps every frame in memory. Meant for tests and interactive use."""

    def __init__(self) -> None:
        self.frames: List[DecodedFrame] = []
        self.closed = False

    def write(self, frame: DecodedFrame) -> None:
        self.frames.append(frame)

    def close(self) -> None:
        self.closed = True


class MultiSink(FrameSink):
    """Forwards each frame to several sinks in order."""

    def __init__(self, sinks: Iterable[FrameSink]):
        self.sinks = list(sinks)

    def write(self, frame: DecodedFrame) -> None:
        for sink in self.sinks:
            sink.write(frame)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()


def frame_filename(frame: DecodedFrame, image_format: str) -> str:
    """File name for a frame: its timestamp with ':' replaced by ';'."""
    ext, _ = IMAGE_FORMATS[image_format]
    return f"{frame.timestamp.replace(':', ';')}.{ext}"


def to_uint8(pixels: np.ndarray) -> np.ndarray:
    """Scale [0, 1] floats to 8-bit, clipping out-of-range values."""
    return np.clip(np.rint(pixels * 255.0), 0, 255).astype(np.uint8)


class ImageFileSink(FrameSink):
    """
    Writes each frame to an image file named after its timestamp.

    Single-channel frames are written as grayscale, 3-channel frames as RGB.
    Values are clipped to [0, 1] before conversion to 8 bits.
    """

    def __init__(self, out_dir: str | Path, image_format: str = "png", make_dir: bool = False):
        fmt = image_format.lower()
        if fmt not in IMAGE_FORMATS:
            raise ValueError(
                f"Unsupported image format '{image_format}'. "
                f"Valid options: {', '.join(IMAGE_FORMATS)}"
            )
        self.image_format = fmt
        self.out_dir = Path(out_dir)

        if not self.out_dir.exists():
            if not make_dir:
                raise OutputDirectoryError(
                    f"Output folder {self.out_dir} does not exist "
                    "(create it or enable make_dir)"
                )
            self.out_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created output directory {self.out_dir}")
        elif not self.out_dir.is_dir():
            raise OutputDirectoryError(f"Output path {self.out_dir} is not a directory")

        self.written: List[Path] = []

    def write(self, frame: DecodedFrame) -> None:
        data = to_uint8(frame.pixels)
        if data.shape[2] == 1:
            data = data[:, :, 0]
        elif data.shape[2] != 3:
            raise ValueError(f"Cannot write {data.shape[2]}-channel frame {frame.index}")

        path = self.out_dir / frame_filename(frame, self.image_format)
        _, pil_format = IMAGE_FORMATS[self.image_format]
        Image.fromarray(data).save(path, format=pil_format)
        self.written.append(path)
        logger.debug(f"Wrote frame {frame.index} -> {path}")


# Field names used by the original MATLAB headerinfo.mat
_MAT_FIELDS = {
    "version": "Version",
    "header_size": "HeaderSize",
    "description": "Description",
    "image_width": "ImageWidth",
    "image_height": "ImageHeight",
    "image_bit_depth": "ImageBitDepth",
    "image_bit_depth_real": "ImageBitDepthReal",
    "image_size_bytes": "ImageSizeBytes",
    "image_format": "ImageFormat",
    "allocated_frames": "AllocatedFrames",
    "origin": "Origin",
    "true_image_size": "TrueImageSize",
    "frame_rate": "FrameRate",
}


def write_header_info(path: str | Path, header: SeqHeader, timestamps: Sequence[str] = ()) -> Path:
    """
    Save header metadata and decoded timestamps.

    The file type follows the suffix: `.mat` writes a MATLAB struct named
    headerInfo with the original field names, anything else writes JSON.

    Returns:
        The path written
    """
    p = Path(path)
    info = header.to_dict()

    if p.suffix.lower() == ".mat":
        mat = {_MAT_FIELDS[k]: v for k, v in info.items() if k in _MAT_FIELDS}
        mat["timestamp"] = np.array(list(timestamps), dtype=object)
        scipy.io.savemat(str(p), {"headerInfo": mat})
    else:
        info["timestamps"] = list(timestamps)
        with p.open("w", encoding="utf-8") as f:
            json.dump(info, f, indent=2)

    logger.info(f"Saved header info to {p}")
    return p
