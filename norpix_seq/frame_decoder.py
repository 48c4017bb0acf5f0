"""
Frame Decoder
=============

Decodes individual frame records of a SEQ file into normalized pixel arrays.

A frame record is located purely by its index:

    offset(i) = FRAME_DATA_OFFSET + (i - 1) * true_image_size

and holds width * height * channels samples (pixel-interleaved, row by row)
followed by an int32 seconds / uint16 milliseconds / uint16 microseconds
timestamp. Bytes past the timestamp are padding up to the next record and
are never read.

Colorspace handling by format:
    - BGR: channels reversed to RGB order
    - Raw Bayer: GBRG demosaic to 3-channel RGB
    - everything else: passed through unchanged
"""

import logging
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Tuple

import cv2
import numpy as np

from .errors import DemosaicUnsupportedDepth, FrameReadTruncated
from .formats import ImageFormat
from .header import FRAME_DATA_OFFSET, SeqHeader
from .timestamps import TIMESTAMP_FORMAT, TIMESTAMP_SIZE, decode_timestamp


logger = logging.getLogger(__name__)


RawTimestamp = Tuple[int, int, int]

# OpenCV names Bayer patterns after the second row, so GBRG is "GR"
GBRG_TO_RGB = cv2.COLOR_BayerGR2RGB


class Normalization(Enum):
    """
    How decoded samples are scaled into floating point.

    FIXED_255 divides every sample by 255 whatever the bit depth, which is
    what existing conversions produced; 12/14/16-bit data then exceeds 1.0.
    Bayer data is saturated to 8 bits before demosaicing under this policy.

    BIT_DEPTH divides by 2**image_bit_depth_real - 1 so every depth maps
    onto [0, 1], and demosaics at the native sample width.
    """

    FIXED_255 = "fixed_255"
    BIT_DEPTH = "bit_depth"

    def __str__(self) -> str:
        return self.value

    def divisor(self, bit_depth_real: int) -> float:
        if self is Normalization.FIXED_255:
            return 255.0
        return float(2**bit_depth_real - 1)


@dataclass(frozen=True, eq=False)
class DecodedFrame:
    """
    One decoded frame, handed to a sink and then dropped.

    Attributes:
        index: 1-based frame index within the file
        pixels: float64 array of shape (height, width, channels)
        timestamp: Capture time as YYYY-MM-DDTHH:MM:SS:mmmuuu
        raw_timestamp: (seconds, milliseconds, microseconds) as stored
    """

    index: int
    pixels: np.ndarray = field(repr=False)
    timestamp: str
    raw_timestamp: RawTimestamp = (0, 0, 0)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]


def frame_offset(header: SeqHeader, index: int) -> int:
    """Byte offset of frame record `index` (1-based)."""
    if index < 1:
        raise ValueError(f"Frame index must be >= 1, got {index}")
    return FRAME_DATA_OFFSET + (index - 1) * header.true_image_size


def demosaic_gbrg(raw: np.ndarray) -> np.ndarray:
    """
    Demosaic a single-channel GBRG Bayer mosaic into an RGB image.

    Args:
        raw: 2D array of uint8 or uint16 samples, shape (H, W)

    Returns:
        Array of shape (H, W, 3) in RGB order, same dtype as the input

    Raises:
        DemosaicUnsupportedDepth: If the samples are not uint8 or uint16
    """
    if raw.dtype not in (np.uint8, np.uint16):
        raise DemosaicUnsupportedDepth(
            f"Bayer demosaic needs uint8 or uint16 samples, got {raw.dtype}"
        )
    return cv2.cvtColor(np.ascontiguousarray(raw).copy(), GBRG_TO_RGB)


def convert_colorspace(
    grid: np.ndarray, image_format: ImageFormat, normalization: Normalization
) -> np.ndarray:
    """
    Apply format-specific colorspace handling to a (H, W, C) sample grid.

    Returns an integer array; BGR becomes RGB and Raw Bayer becomes a
    3-channel RGB image. Other formats are returned unchanged.
    """
    if image_format is ImageFormat.BGR:
        return grid[:, :, [2, 1, 0]]

    if image_format is ImageFormat.RAW_BAYER:
        raw = grid[:, :, 0]
        if normalization is Normalization.FIXED_255:
            raw = np.clip(raw, 0, 255).astype(np.uint8)
        else:
            raw = raw.astype(np.uint16 if raw.dtype.itemsize > 1 else np.uint8)
        return demosaic_gbrg(raw)

    return grid


class FrameDecoder:
    """
    Reads and decodes frame records from an open SEQ stream.

    The decoder owns no file handle; the caller opens the stream and keeps
    it for the decoder's lifetime. Each decode() seeks to an absolute
    offset, so one decoder must not be shared between threads.
    """

    def __init__(
        self,
        header: SeqHeader,
        stream: BinaryIO,
        normalization: Normalization = Normalization.FIXED_255,
    ):
        self.header = header
        self.stream = stream
        self.normalization = normalization
        self._dtype = header.sample_dtype
        self._shape = (header.image_height, header.image_width, header.channels)
        self._pixel_bytes = header.samples_per_frame * self._dtype.itemsize
        self._divisor = normalization.divisor(header.image_bit_depth_real)

    def read_record(self, index: int) -> Tuple[np.ndarray, RawTimestamp]:
        """
        Read the raw samples and timestamp triple of one frame record.

        Returns:
            (grid, (seconds, millis, micros)) where grid has shape
            (height, width, channels) in the on-disk sample type

        Raises:
            FrameReadTruncated: If the file ends before the record does
        """
        self.stream.seek(frame_offset(self.header, index))

        data = self.stream.read(self._pixel_bytes)
        if len(data) < self._pixel_bytes:
            raise FrameReadTruncated(index, self._pixel_bytes, len(data))

        trailer = self.stream.read(TIMESTAMP_SIZE)
        if len(trailer) < TIMESTAMP_SIZE:
            raise FrameReadTruncated(
                index, self._pixel_bytes + TIMESTAMP_SIZE, self._pixel_bytes + len(trailer)
            )

        seconds, millis, micros = struct.unpack(TIMESTAMP_FORMAT, trailer)
        grid = np.frombuffer(data, dtype=self._dtype).reshape(self._shape)
        return grid, (seconds, millis, micros)

    def decode(self, index: int) -> DecodedFrame:
        """
        Decode frame `index` (1-based) into a DecodedFrame.

        Raises:
            FrameReadTruncated: If the record is incomplete
            DemosaicUnsupportedDepth: If Bayer samples cannot be demosaiced
        """
        grid, raw_ts = self.read_record(index)
        rgb = convert_colorspace(grid, self.header.image_format, self.normalization)
        pixels = rgb.astype(np.float64) / self._divisor

        frame = DecodedFrame(
            index=index,
            pixels=pixels,
            timestamp=decode_timestamp(*raw_ts),
            raw_timestamp=raw_ts,
        )
        logger.debug(f"Decoded frame {index} ({frame.timestamp})")
        return frame
