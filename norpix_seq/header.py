"""
SEQ Header Reader
=================

Parses the fixed-layout metadata block at the start of a Norpix SEQ file.

Every field lives at a fixed absolute offset (little-endian), so the reader
seeks to each one instead of walking the block sequentially:

    offset  field              type
    28      version            s4
    32      headerSize         s4
    36      description        512 x u2
    548     imageWidth         u4
    552     imageHeight        u4
    556     imageBitDepth      u4
    560     imageBitDepthReal  u4
    564     imageSizeBytes     u4
    568     imageFormat        u4
    572     allocatedFrames    u2
    576     origin             u2
    580     trueImageSize      u4
    584     frameRate          f8
    592     descriptionFormat  s4

Frame records start at FRAME_DATA_OFFSET regardless of headerSize.
"""

import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict

import numpy as np
from kaitaistruct import KaitaiStream

from .errors import MalformedHeader, UnknownImageFormat, UnknownImageFormatWarning
from .formats import ImageFormat, channel_layout, resolve_format, sample_dtype
from .source import open_seq


logger = logging.getLogger(__name__)


FRAME_DATA_OFFSET = 8192

DESCRIPTION_OFFSET = 36
DESCRIPTION_UNITS = 512

DESCRIPTION_UNICODE = 0
DESCRIPTION_ASCII = 1


@dataclass(frozen=True)
class SeqHeader:
    """
    Metadata of a SEQ file. Immutable once parsed.

    Attributes:
        version: Norpix file format version
        header_size: Declared header size in bytes
        description: Free-text description
        description_format: Raw description encoding flag (0 unicode, 1 ASCII)
        image_width: Frame width in pixels
        image_height: Frame height in pixels
        image_bit_depth: Declared bits per pixel
        image_bit_depth_real: Significant bits per sample; drives sample width
        image_size_bytes: Declared size of one image in bytes
        image_format: Resolved image format (UNKNOWN for unrecognized codes)
        image_format_code: Raw image format code from the file
        allocated_frames: Number of frames declared in the file
        origin: Origin field, stored as read
        true_image_size: Byte stride between consecutive frame records
        frame_rate: Frames per second
    """

    version: int
    header_size: int
    description: str
    description_format: int
    image_width: int
    image_height: int
    image_bit_depth: int
    image_bit_depth_real: int
    image_size_bytes: int
    image_format: ImageFormat
    image_format_code: int
    allocated_frames: int
    origin: int
    true_image_size: int
    frame_rate: float

    @property
    def sample_dtype(self) -> np.dtype:
        return sample_dtype(self.image_bit_depth_real)

    @property
    def sample_bytes(self) -> int:
        return self.sample_dtype.itemsize

    @property
    def channels(self) -> int:
        return channel_layout(self.image_format).channels

    @property
    def channels_exact(self) -> bool:
        """False when the channel count is the single-channel fallback."""
        return channel_layout(self.image_format).exact

    @property
    def samples_per_frame(self) -> int:
        return self.image_width * self.image_height * self.channels

    def to_dict(self) -> Dict[str, Any]:
        """Return the header as a JSON-friendly dict."""
        return {
            "version": self.version,
            "header_size": self.header_size,
            "description": self.description,
            "description_format": self.description_format,
            "image_width": self.image_width,
            "image_height": self.image_height,
            "image_bit_depth": self.image_bit_depth,
            "image_bit_depth_real": self.image_bit_depth_real,
            "image_size_bytes": self.image_size_bytes,
            "image_format": str(self.image_format),
            "image_format_code": self.image_format_code,
            "allocated_frames": self.allocated_frames,
            "origin": self.origin,
            "true_image_size": self.true_image_size,
            "frame_rate": self.frame_rate,
        }


def _decode_description(units: np.ndarray, fmt: int) -> str:
    if fmt == DESCRIPTION_ASCII:
        text = "".join(chr(u) if u < 128 else "?" for u in units.tolist())
    else:
        if fmt != DESCRIPTION_UNICODE:
            logger.debug(f"Unexpected description format {fmt}, decoding as unicode")
        text = units.astype("<u2").tobytes().decode("utf-16-le", errors="replace")
    # NUL-terminated; the 512-unit block overlaps the fields that follow it
    return text.split("\x00", 1)[0]


def read_header(stream: BinaryIO, strict_format: bool = False) -> SeqHeader:
    """
    Read and validate the header of a SEQ file.

    Args:
        stream: Readable, seekable binary stream positioned anywhere
        strict_format: Raise on an unrecognized image format code instead of
            warning and decoding it as single-channel data

    Returns:
        SeqHeader with every field populated

    Raises:
        MalformedHeader: If a required field cannot be read or the image
            dimensions are zero
        UnsupportedBitDepth: If imageBitDepthReal is not 8, 12, 14 or 16
        UnknownImageFormat: If strict_format is set and the format code is
            not recognized
    """
    _io = KaitaiStream(stream)
    try:
        _io.seek(28)
        version = _io.read_s4le()
        _io.seek(32)
        header_size = _io.read_s4le()

        _io.seek(592)
        description_format = _io.read_s4le()
        _io.seek(DESCRIPTION_OFFSET)
        units = np.frombuffer(_io.read_bytes(DESCRIPTION_UNITS * 2), dtype="<u2")

        _io.seek(548)
        width = _io.read_u4le()
        height = _io.read_u4le()
        bit_depth = _io.read_u4le()
        bit_depth_real = _io.read_u4le()
        size_bytes = _io.read_u4le()
        format_code = _io.read_u4le()

        _io.seek(572)
        allocated_frames = _io.read_u2le()
        _io.seek(576)
        origin = _io.read_u2le()
        _io.seek(580)
        true_image_size = _io.read_u4le()
        _io.seek(584)
        frame_rate = _io.read_f8le()
    except EOFError as e:
        raise MalformedHeader(f"SEQ header truncated: {e}") from e

    if width == 0 or height == 0:
        raise MalformedHeader(f"Invalid image dimensions {width}x{height}")

    # Raises UnsupportedBitDepth
    sample_dtype(bit_depth_real)

    image_format = resolve_format(format_code)
    if image_format is None:
        if strict_format:
            raise UnknownImageFormat(format_code)
        message = (
            f"Image format code {format_code} not recognized; "
            "decoding frames as single-channel data"
        )
        logger.warning(message)
        warnings.warn(message, UnknownImageFormatWarning, stacklevel=2)
        image_format = ImageFormat.UNKNOWN
    elif not channel_layout(image_format).exact:
        logger.warning(
            f"Image format {image_format} has no known channel layout; "
            "decoding frames as single-channel data"
        )

    header = SeqHeader(
        version=version,
        header_size=header_size,
        description=_decode_description(units, description_format),
        description_format=description_format,
        image_width=width,
        image_height=height,
        image_bit_depth=bit_depth,
        image_bit_depth_real=bit_depth_real,
        image_size_bytes=size_bytes,
        image_format=image_format,
        image_format_code=format_code,
        allocated_frames=allocated_frames,
        origin=origin,
        true_image_size=true_image_size,
        frame_rate=frame_rate,
    )
    logger.info(
        f"SEQ header: {width}x{height} {image_format}, "
        f"{bit_depth_real}-bit, {allocated_frames} frames @ {frame_rate:g} fps"
    )
    return header


def read_header_file(path: str | Path, strict_format: bool = False) -> SeqHeader:
    """Open a SEQ file (or a directory holding one) and read its header."""
    with open_seq(path) as f:
        return read_header(f, strict_format=strict_format)
