"""Clip editor: sequencing, collision checks, split, ripple delete and fades.

Every function here is pure. Invalid requests are rejected through the return
value (``None``, ``False`` or an unchanged list) and never raise.
"""

import copy
import dataclasses
import logging

from reeltime.intervals import clip_end, effective_duration, intervals_overlap, is_finite_number, round_ms
from reeltime.models import Clip, Gap, Track, new_id

logger = logging.getLogger(__name__)

MAX_FADE_DURATION_MS = 5000


def _sorted(clips: list[Clip]) -> list[Clip]:
    return sorted(clips, key=lambda c: c.start_time)


def sequential_position(track: Track) -> int:
    """Start time that places a new clip end-to-end after the track's last clip."""
    if not track.clips:
        return 0
    return clip_end(_sorted(track.clips)[-1])


def detect_gaps(track: Track) -> list[Gap]:
    """Empty stretches between adjacent clips (not before the first or after the last)."""
    gaps: list[Gap] = []
    ordered = _sorted(track.clips)
    for current, following in zip(ordered, ordered[1:]):
        end = clip_end(current)
        if following.start_time > end:
            gaps.append(Gap(track.id, track.track_type, end, following.start_time, "middle"))
    return gaps


def _collides(start: int, duration: int, clips: list[Clip], exclude_id: str | None) -> bool:
    end = start + duration
    return any(
        intervals_overlap(start, end, other.start_time, clip_end(other))
        for other in clips
        if exclude_id is None or other.id != exclude_id
    )


def detect_overlap(clip: Clip, track: Track, exclude_id: str | None = None) -> bool:
    """True if ``clip`` at its current start would overlap a clip on ``track``.

    Pass the clip's own id as ``exclude_id`` when checking a reposition, so the
    clip is not compared against its old footprint.
    """
    return _collides(clip.start_time, effective_duration(clip), track.clips, exclude_id)


def validate_position(clip: Clip, track: Track, exclude_id: str | None = None) -> bool:
    if clip.start_time < 0:
        logger.debug("Rejected clip %s: negative start %d", clip.id, clip.start_time)
        return False
    if detect_overlap(clip, track, exclude_id):
        logger.debug("Rejected clip %s: overlaps on track %s", clip.id, track.id)
        return False
    return True


def nearest_valid_start(
    clip: Clip,
    track: Track,
    desired: float,
    exclude_id: str | None = None,
) -> int:
    """Resolve a requested start to the closest collision-free position.

    The desired start is rounded and clamped to 0 first. If it collides, the
    candidates are 0, flush before each other clip, and flush after each other
    clip; the one with the smallest displacement wins, and on a tie the
    earlier position. Flush after the last clip always qualifies, so a
    position is always found.
    """
    duration = effective_duration(clip)
    start = max(0, round_ms(desired))
    others = [c for c in track.clips if exclude_id is None or c.id != exclude_id]

    if not _collides(start, duration, others, None):
        return start

    candidates = {0}
    for other in others:
        candidates.add(other.start_time - duration)
        candidates.add(clip_end(other))

    valid = [c for c in candidates if c >= 0 and not _collides(c, duration, others, None)]
    return min(valid, key=lambda c: (abs(c - start), c))


def find_clip_at_time(track: Track, time: int) -> Clip | None:
    """Clip whose footprint contains ``time`` (inclusive start, exclusive end)."""
    for clip in track.clips:
        if clip.start_time <= time < clip_end(clip):
            return clip
    return None


def find_clip_at_playhead(tracks: list[Track], time: int) -> tuple[Clip, str] | None:
    """First clip under ``time`` scanning tracks in order, with its track id."""
    for track in tracks:
        clip = find_clip_at_time(track, time)
        if clip is not None:
            return clip, track.id
    return None


def split_at(clip: Clip, split_time: float) -> tuple[Clip, Clip] | None:
    """Cut ``clip`` in two at a timeline position.

    ``split_time`` is rounded to a whole millisecond before any arithmetic, so
    the halves tile exactly: ``first.trim_out == second.trim_in`` and
    ``second.start_time`` is the rounded split time. Splitting on or outside
    the clip's edges is rejected with ``None``. Both halves get new ids; the
    fade across the cut is dropped on both sides.
    """
    if not is_finite_number(split_time):
        logger.debug("Rejected split of %s: %r is not a time", clip.id, split_time)
        return None
    split_time = round_ms(split_time)
    start = clip.start_time
    end = clip_end(clip)

    if split_time <= start or split_time >= end:
        logger.debug("Rejected split of %s at %d: outside (%d, %d)", clip.id, split_time, start, end)
        return None

    split_point = clip.trim_in + (split_time - start)

    first = dataclasses.replace(
        clip,
        id=new_id(),
        trim_out=split_point,
        fade_out=0,
        audio_tracks=copy.deepcopy(clip.audio_tracks),
        transform=copy.deepcopy(clip.transform),
    )
    second = dataclasses.replace(
        clip,
        id=new_id(),
        start_time=split_time,
        trim_in=split_point,
        fade_in=0,
        audio_tracks=copy.deepcopy(clip.audio_tracks),
        transform=copy.deepcopy(clip.transform),
    )
    return first, second


def ripple_shift(clip: Clip) -> int:
    """How far later clips move left when ``clip`` is ripple-deleted."""
    return effective_duration(clip)


def delete_clip(clips: list[Clip], clip_id: str, ripple: bool) -> list[Clip]:
    """Return ``clips`` without ``clip_id``.

    With ``ripple`` every clip starting strictly after the deleted one moves
    left by its effective duration; otherwise a gap is left behind. An unknown
    id returns the clips unchanged.
    """
    deleted = next((c for c in clips if c.id == clip_id), None)
    if deleted is None:
        return list(clips)

    remaining = [c for c in clips if c.id != clip_id]
    if not ripple:
        return remaining

    shift = ripple_shift(deleted)
    return [
        dataclasses.replace(c, start_time=c.start_time - shift)
        if c.start_time > deleted.start_time
        else c
        for c in remaining
    ]


def validate_fade_duration(
    clip: Clip,
    fade_in: int | None = None,
    fade_out: int | None = None,
) -> bool:
    """Check proposed fades against the per-fade cap and the clip's trimmed length.

    Values not given fall back to the clip's current fades (absent counts as 0).
    The combined fade may equal the effective duration but not exceed it.
    """
    proposed_in = clip.fade_in_ms if fade_in is None else fade_in
    proposed_out = clip.fade_out_ms if fade_out is None else fade_out

    if not (is_finite_number(proposed_in) and is_finite_number(proposed_out)):
        logger.warning("Fade durations must be numbers of milliseconds")
        return False

    if proposed_in < 0 or proposed_out < 0:
        logger.warning("Fade durations must be non-negative")
        return False

    if proposed_in > MAX_FADE_DURATION_MS or proposed_out > MAX_FADE_DURATION_MS:
        logger.warning("Fade durations must not exceed %dms", MAX_FADE_DURATION_MS)
        return False

    duration = effective_duration(clip)
    if proposed_in + proposed_out > duration:
        logger.warning(
            "Combined fade durations (%dms) exceed clip duration (%dms)",
            proposed_in + proposed_out,
            duration,
        )
        return False

    return True


def validate_trim(clip: Clip, trim_in: int, trim_out: int) -> bool:
    return 0 <= trim_in < trim_out <= clip.source_duration


def is_well_formed(clip: Clip) -> bool:
    """Structural checks a clip must pass before the store will hold it."""
    times = (clip.start_time, clip.source_duration, clip.trim_in, clip.trim_out)
    if not all(is_finite_number(t) for t in times):
        return False
    if clip.source_duration <= 0 or clip.start_time < 0:
        return False
    if not validate_trim(clip, clip.trim_in, clip.trim_out):
        return False
    return validate_fade_duration(clip)
