"""
Conversion Pipeline
===================

Orchestrates header parsing, range resolution and frame decoding, handing
each decoded frame to a sink as soon as it exists.

    header = read_header(f)                  # fatal on failure
    frame_range = resolve_frame_range(...)   # fatal on invalid request
    for frame in iter_frames(...):           # lazy, ascending index
        sink.write(frame)
        progress(done / requested)

A truncated frame record ends iteration quietly: files whose header
over-declares allocated frames are normal. Cancellation is checked between
frames, so every frame already handed to the sink is complete.
"""

import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Optional

from .errors import FrameReadTruncated
from .frame_decoder import DecodedFrame, FrameDecoder, Normalization
from .frame_range import FrameRange, RangeRequest, resolve_frame_range
from .header import SeqHeader, read_header
from .sinks import FrameSink
from .source import open_seq, resolve_seq_path


logger = logging.getLogger(__name__)


ProgressFn = Callable[[float], None]


@dataclass
class ConversionResult:
    """
    Outcome of a pipeline run.

    Attributes:
        header: Parsed header
        frame_range: Resolved range that was requested
        timestamps: Decoded timestamps in frame order
        truncated: True if the file ended before the range did
        cancelled: True if the run was stopped through the cancel event
    """

    header: SeqHeader
    frame_range: FrameRange
    timestamps: List[str] = field(default_factory=list)
    truncated: bool = False
    cancelled: bool = False

    @property
    def frames_decoded(self) -> int:
        return len(self.timestamps)


def iter_frames(
    stream: BinaryIO,
    header: SeqHeader,
    frame_range: FrameRange,
    normalization: Normalization = Normalization.FIXED_255,
    cancel: Optional[threading.Event] = None,
) -> Iterator[DecodedFrame]:
    """
    Lazily decode the frames of `frame_range` from an open stream.

    Stops without error at the first truncated record or when `cancel`
    is set.
    """
    decoder = FrameDecoder(header, stream, normalization)
    for index in frame_range:
        if cancel is not None and cancel.is_set():
            logger.info(f"Decoding cancelled before frame {index}")
            return
        try:
            frame = decoder.decode(index)
        except FrameReadTruncated as e:
            logger.info(f"End of frame data: {e}")
            return
        yield frame


def _decode_one(
    path: Path, header: SeqHeader, index: int, normalization: Normalization
) -> Optional[DecodedFrame]:
    # Own handle per task; concurrent reads must not share a seek cursor
    with open_seq(path) as f:
        try:
            return FrameDecoder(header, f, normalization).decode(index)
        except FrameReadTruncated as e:
            logger.info(f"End of frame data: {e}")
            return None


def iter_frames_parallel(
    path: str | Path,
    header: SeqHeader,
    frame_range: FrameRange,
    workers: int = 4,
    normalization: Normalization = Normalization.FIXED_255,
    cancel: Optional[threading.Event] = None,
) -> Iterator[DecodedFrame]:
    """
    Decode frames on a thread pool, yielding them in index order.

    At most `workers * 2` frames are in flight at once. The first truncated
    record ends the sequence even if later records were already decoded.
    """
    seq_path = resolve_seq_path(path)
    window = max(1, workers * 2)
    indices = iter(frame_range)

    with ThreadPoolExecutor(max_workers=workers) as ex:
        pending = deque()

        def submit_next() -> None:
            index = next(indices, None)
            if index is not None:
                pending.append(ex.submit(_decode_one, seq_path, header, index, normalization))

        for _ in range(window):
            submit_next()

        try:
            while pending:
                if cancel is not None and cancel.is_set():
                    logger.info("Decoding cancelled")
                    return
                frame = pending.popleft().result()
                if frame is None:
                    return
                submit_next()
                yield frame
        finally:
            for fut in pending:
                fut.cancel()


def run(
    path: str | Path,
    sink: Optional[FrameSink] = None,
    frame_range: RangeRequest = None,
    progress: Optional[ProgressFn] = None,
    cancel: Optional[threading.Event] = None,
    normalization: Normalization = Normalization.FIXED_255,
    workers: int = 1,
    strict_format: bool = False,
) -> ConversionResult:
    """
    Decode a SEQ file and forward every frame in range to a sink.

    Args:
        path: SEQ file, or a directory containing exactly one
        sink: Receives each DecodedFrame; closed when the run ends
        frame_range: Range request, see resolve_frame_range()
        progress: Called with the completed fraction after every frame
        cancel: Event checked between frames
        normalization: Sample scaling policy
        workers: Number of decode threads; 1 decodes sequentially
        strict_format: Fail on unrecognized image format codes

    Returns:
        ConversionResult with the header and per-frame timestamps

    Raises:
        SeqFileNotFound, SeqFileUnreadable: If the input cannot be opened
        MalformedHeader, UnsupportedBitDepth, UnknownImageFormat: On header errors
        InvalidRange: If the range request cannot be normalized
        DemosaicUnsupportedDepth: If Bayer frames cannot be demosaiced
    """
    try:
        with open_seq(path) as f:
            header = read_header(f, strict_format=strict_format)
            resolved = resolve_frame_range(header.allocated_frames, frame_range)
            result = ConversionResult(header=header, frame_range=resolved)

            if resolved.is_empty:
                logger.info("Empty frame range, header only")
                return result

            logger.info(f"Decoding frames {resolved} of {header.allocated_frames}")
            if workers > 1:
                frames = iter_frames_parallel(
                    path, header, resolved, workers, normalization, cancel
                )
            else:
                frames = iter_frames(f, header, resolved, normalization, cancel)

            requested = len(resolved)
            for frame in frames:
                if sink is not None:
                    sink.write(frame)
                result.timestamps.append(frame.timestamp)
                if progress is not None:
                    progress(result.frames_decoded / requested)

            if cancel is not None and cancel.is_set():
                result.cancelled = result.frames_decoded < requested
            else:
                result.truncated = result.frames_decoded < requested
            logger.info(f"Decoded {result.frames_decoded} of {requested} requested frames")
            return result
    finally:
        if sink is not None:
            sink.close()
