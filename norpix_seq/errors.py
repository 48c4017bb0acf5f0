"""
Error taxonomy for SEQ decoding.

Every failure the package raises derives from SeqError so callers can
catch the whole family, while each kind stays distinct for callers (and
tests) that need to tell them apart.

Fatal:
- SeqFileNotFound / SeqFileUnreadable: the input cannot be opened
- MalformedHeader: required header bytes are missing or nonsensical
- UnsupportedBitDepth: real bit depth outside {8, 12, 14, 16}
- InvalidRange: a frame range request that cannot be normalized
- DemosaicUnsupportedDepth: Bayer data in a sample type OpenCV rejects

Recoverable:
- UnknownImageFormat: only raised in strict mode, otherwise reported
  through UnknownImageFormatWarning
- FrameReadTruncated: end of usable data, never leaves the pipeline
"""


class SeqError(Exception):
    """Base exception for SEQ decoding errors."""
    pass


class SeqFileNotFound(SeqError, FileNotFoundError):
    """Raised when the SEQ input path does not resolve to a single file."""
    pass


class SeqFileUnreadable(SeqError, OSError):
    """Raised when the SEQ file exists but cannot be opened for reading."""
    pass


class MalformedHeader(SeqError):
    """Raised when header bytes are truncated or describe an impossible image."""
    pass


class UnsupportedBitDepth(SeqError):
    """Raised when imageBitDepthReal is not one of 8, 12, 14 or 16."""

    def __init__(self, bit_depth: int):
        super().__init__(f"Unsupported bit depth: {bit_depth} (expected 8, 12, 14 or 16)")
        self.bit_depth = bit_depth


class UnknownImageFormat(SeqError):
    """Raised for an unrecognized image format code when strict checking is on."""

    def __init__(self, code: int):
        super().__init__(f"Unknown image format code: {code}")
        self.code = code


class UnknownImageFormatWarning(UserWarning):
    """Issued when an unrecognized format is decoded as single-channel data."""
    pass


class InvalidRange(SeqError, ValueError):
    """Raised when a frame range request cannot be normalized."""
    pass


class FrameReadTruncated(SeqError):
    """Raised by the frame decoder when a frame record is incomplete."""

    def __init__(self, index: int, expected: int, got: int):
        super().__init__(
            f"Frame {index} truncated: expected {expected} bytes, got {got}"
        )
        self.index = index
        self.expected = expected
        self.got = got


class DemosaicUnsupportedDepth(SeqError):
    """Raised when Bayer samples are in a dtype the demosaic cannot handle."""
    pass


class OutputDirectoryError(SeqError):
    """Raised when an image sink's output directory is missing or not a directory."""
    pass


class ConfigError(SeqError, ValueError):
    """Raised when a conversion configuration is invalid."""
    pass
