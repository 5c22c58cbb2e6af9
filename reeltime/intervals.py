"""Interval math on clip footprints.

A clip occupies ``[start_time, start_time + effective_duration)`` on its
track. Intervals are closed-open, so a clip may end exactly where the next
one begins.
"""

import math
from collections.abc import Iterable

from reeltime.models import Clip, Track


def is_finite_number(value) -> bool:
    """True for real, finite ints and floats. Booleans, NaN and infinities are not times."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_ms(value: float) -> int:
    """Round to the nearest whole millisecond; halves round up."""
    return math.floor(value + 0.5)


def effective_duration(clip: Clip) -> int:
    """Length of the trimmed range actually played on the timeline."""
    return clip.trim_out - clip.trim_in


def clip_end(clip: Clip) -> int:
    return clip.start_time + effective_duration(clip)


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def overlaps(a: Clip, b: Clip) -> bool:
    """True if the two footprints intersect. Touching clips do not overlap."""
    return intervals_overlap(a.start_time, clip_end(a), b.start_time, clip_end(b))


def total_duration(tracks: Iterable[Track]) -> int:
    """Latest clip end across all tracks, or 0 when there are no clips."""
    return max((clip_end(c) for t in tracks for c in t.clips), default=0)
