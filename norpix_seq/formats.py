"""
SEQ image format table.

Maps the numeric imageFormat codes found in a SEQ header to ImageFormat and
each format to the number of interleaved channels stored per pixel.

Only RGB/BGR (3 channels) and Monochrome/Raw Bayer (1 channel) have a known
layout. Every other format decodes as one channel; ChannelLayout.exact is
False in that case so callers can report that the result is a best-effort
default rather than a true single-channel image.
"""

from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .errors import UnsupportedBitDepth


class ImageFormat(Enum):
    """Image formats a SEQ header can declare."""

    UNKNOWN = "Unknown"
    MONOCHROME = "Monochrome"
    RAW_BAYER = "Raw Bayer"
    BGR = "BGR"
    PLANAR = "Planar"
    RGB = "RGB"
    BGRX = "BGRx"
    YUV422 = "YUV422"
    UVY422 = "UVY422"
    UVY411 = "UVY411"
    UVY444 = "UVY444"

    def __str__(self) -> str:
        return self.value


class ChannelLayout(NamedTuple):
    """Channel count for a format and whether that count is authoritative."""

    channels: int
    exact: bool


# Header code -> format
FORMAT_CODES = {
    0: ImageFormat.UNKNOWN,
    100: ImageFormat.MONOCHROME,
    101: ImageFormat.RAW_BAYER,
    200: ImageFormat.BGR,
    300: ImageFormat.PLANAR,
    400: ImageFormat.RGB,
    500: ImageFormat.BGRX,
    600: ImageFormat.YUV422,
    700: ImageFormat.UVY422,
    800: ImageFormat.UVY411,
    900: ImageFormat.UVY444,
}

CHANNEL_LAYOUTS = {
    ImageFormat.RGB: ChannelLayout(channels=3, exact=True),
    ImageFormat.BGR: ChannelLayout(channels=3, exact=True),
    ImageFormat.MONOCHROME: ChannelLayout(channels=1, exact=True),
    ImageFormat.RAW_BAYER: ChannelLayout(channels=1, exact=True),
}

DEFAULT_LAYOUT = ChannelLayout(channels=1, exact=False)

# imageBitDepthReal -> little-endian sample type
SAMPLE_DTYPES = {
    8: np.dtype(np.uint8),
    12: np.dtype("<u2"),
    14: np.dtype("<u2"),
    16: np.dtype("<u2"),
}


def resolve_format(code: int) -> Optional[ImageFormat]:
    """Return the ImageFormat for a header code, or None if the code is unknown."""
    return FORMAT_CODES.get(code)


def channel_layout(fmt: ImageFormat) -> ChannelLayout:
    """Get the channel layout for a format.

    Args:
        fmt: Image format from the header

    Returns:
        ChannelLayout; formats without a known layout fall back to one
        channel with exact=False
    """
    return CHANNEL_LAYOUTS.get(fmt, DEFAULT_LAYOUT)


def sample_dtype(bit_depth_real: int) -> np.dtype:
    """Get the on-disk sample type for a real bit depth.

    Raises:
        UnsupportedBitDepth: If the depth is not 8, 12, 14 or 16
    """
    dtype = SAMPLE_DTYPES.get(bit_depth_real)
    if dtype is None:
        raise UnsupportedBitDepth(bit_depth_real)
    return dtype
