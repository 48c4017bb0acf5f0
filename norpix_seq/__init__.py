"""
Norpix SEQ decoding package.

This package provides:
- Header parsing for the fixed-layout SEQ metadata block
- Frame range resolution with the converter's sentinel conventions
- Per-frame decoding with BGR swap, GBRG demosaic and normalization
- A lazy conversion pipeline with pluggable frame sinks

Example:
    from norpix_seq import run, ImageFileSink

    result = run("run1.seq", ImageFileSink("frames", make_dir=True), frame_range=(1, 100))
    print(result.header.image_width, result.timestamps[0])
"""

from .errors import (
    DemosaicUnsupportedDepth,
    FrameReadTruncated,
    InvalidRange,
    MalformedHeader,
    SeqError,
    SeqFileNotFound,
    SeqFileUnreadable,
    UnknownImageFormat,
    UnknownImageFormatWarning,
    UnsupportedBitDepth,
)
from .formats import ImageFormat
from .frame_decoder import DecodedFrame, FrameDecoder, Normalization
from .frame_range import FrameRange, resolve_frame_range
from .header import SeqHeader, read_header, read_header_file
from .pipeline import ConversionResult, iter_frames, iter_frames_parallel, run
from .sinks import CollectingSink, FrameSink, ImageFileSink, write_header_info
from .timestamps import decode_timestamp

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CollectingSink",
    "ConversionResult",
    "DecodedFrame",
    "DemosaicUnsupportedDepth",
    "FrameDecoder",
    "FrameRange",
    "FrameReadTruncated",
    "FrameSink",
    "ImageFileSink",
    "ImageFormat",
    "InvalidRange",
    "MalformedHeader",
    "Normalization",
    "SeqError",
    "SeqFileNotFound",
    "SeqFileUnreadable",
    "SeqHeader",
    "UnknownImageFormat",
    "UnknownImageFormatWarning",
    "UnsupportedBitDepth",
    "decode_timestamp",
    "iter_frames",
    "iter_frames_parallel",
    "read_header",
    "read_header_file",
    "resolve_frame_range",
    "run",
    "write_header_info",
]
