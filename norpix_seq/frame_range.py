"""
Frame range resolution.

Turns a user range request into a closed interval of 1-based frame indices
bounded by the header's allocated frame count. Requests follow the
conventions of the original converter:

    None, []      all frames
    (100, inf)    frames 100 to the end
    (1, 100)      frames 1 to 100 (same as (0, 100) or (-inf, 100))
    (101, 200)    frames 101 to 200 inclusive
    (inf, inf)    no frames, header only
"""

import math
import numbers
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .errors import InvalidRange


RangeRequest = Optional[Iterable[object]]


@dataclass(frozen=True)
class FrameRange:
    """Inclusive range of 1-based frame indices. end == start - 1 means empty."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1:
            raise InvalidRange(f"Frame range must start at 1 or later, got {self.start}")
        if self.end < self.start - 1:
            raise InvalidRange(f"Invalid frame range [{self.start}, {self.end}]")

    @classmethod
    def empty(cls) -> "FrameRange":
        return cls(1, 0)

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    def __len__(self) -> int:
        return max(0, self.end - self.start + 1)

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __str__(self) -> str:
        return "[]" if self.is_empty else f"[{self.start}, {self.end}]"


def _coerce_bound(value: object, name: str) -> Optional[float]:
    """Validate one bound; returns None for an absent bound."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidRange(f"Range {name} must be a number or infinity, got {value!r}")
    v = float(value)
    if math.isnan(v):
        raise InvalidRange(f"Range {name} must not be NaN")
    if not math.isinf(v) and v != math.floor(v):
        raise InvalidRange(f"Range {name} must be a whole frame number, got {value!r}")
    return v


def resolve_frame_range(allocated_frames: int, request: RangeRequest = None) -> FrameRange:
    """
    Resolve a range request against the number of allocated frames.

    Args:
        allocated_frames: Frame count declared in the header (N)
        request: None or an empty sequence for every frame, or a (lo, hi) pair whose items are
            whole numbers, +/-math.inf or None

    Returns:
        FrameRange clamped into [1, N], or an empty range when the request
        selects nothing (lo beyond N, lo > hi, or N == 0)

    Raises:
        InvalidRange: If the request is not a pair of numeric bounds or N is
            negative
    """
    if allocated_frames < 0:
        raise InvalidRange(f"Allocated frame count must be >= 0, got {allocated_frames}")
    n = allocated_frames

    if request is None:
        items = []
    elif isinstance(request, (str, bytes)):
        raise InvalidRange(f"Frame range must be a (start, end) pair, got {request!r}")
    else:
        try:
            items = list(request)
        except TypeError:
            raise InvalidRange(f"Frame range must be a (start, end) pair, got {request!r}")
    if not items:
        return FrameRange(1, n) if n > 0 else FrameRange.empty()
    if len(items) != 2:
        raise InvalidRange(f"Frame range must have exactly 2 items, got {len(items)}")

    lo = _coerce_bound(items[0], "start")
    hi = _coerce_bound(items[1], "end")

    if lo is None or lo < 1:
        lo = 1
    if hi is None or hi > n:
        hi = n

    # A start past the last frame selects nothing; covers (inf, inf)
    if lo > n or hi < 1 or lo > hi:
        return FrameRange.empty()
    return FrameRange(int(lo), int(hi))
