"""Playback queries: what the player should show at a given timeline position.

The player decodes nothing through this module; it asks which clips are live
at ``t``, whether the whole frame is a gap, and how far it can run before
anything changes.
"""

from dataclasses import dataclass, field

from reeltime.analyzers.gaps import all_tracks_in_gap, analyze_timeline, next_gap_boundary
from reeltime.editors.clips import find_clip_at_time
from reeltime.intervals import clip_end
from reeltime.models import ActiveClip, Clip, Timeline


@dataclass
class FramePlan:
    time: int
    active_clips: list[ActiveClip] = field(default_factory=list)
    all_in_gap: bool = True
    next_boundary: int | None = None
    end_of_timeline: bool = False


def active_clips_at(timeline: Timeline, time: int) -> list[ActiveClip]:
    """Every clip under ``time``, at most one per track, in track order."""
    active: list[ActiveClip] = []
    for track in timeline.tracks:
        clip = find_clip_at_time(track, time)
        if clip is not None:
            active.append(
                ActiveClip(
                    clip=clip,
                    track_id=track.id,
                    track_number=track.track_number,
                    track_type=track.track_type,
                    relative_time=time - clip.start_time,
                )
            )
    return active


def active_audio_clips_at(timeline: Timeline, time: int) -> list[ActiveClip]:
    return [a for a in active_clips_at(timeline, time) if a.track_type == "audio"]


def clip_at_time(timeline: Timeline, time: int, track_id: str) -> Clip | None:
    track = timeline.track(track_id)
    if track is None:
        return None
    return find_clip_at_time(track, time)


def next_clip(timeline: Timeline, current: Clip, track_id: str) -> Clip | None:
    """The clip that follows ``current`` on its track, if any."""
    track = timeline.track(track_id)
    if track is None:
        return None
    current_end = clip_end(current)
    for clip in sorted(track.clips, key=lambda c: c.start_time):
        if clip.start_time >= current_end and clip.id != current.id:
            return clip
    return None


def next_clip_boundary(timeline: Timeline, time: int) -> int | None:
    """Earliest clip start or end strictly after ``time`` on any track."""
    edges = [
        edge
        for clip in timeline.all_clips()
        for edge in (clip.start_time, clip_end(clip))
        if edge > time
    ]
    return min(edges, default=None)


def is_end_of_timeline(timeline: Timeline, time: int) -> bool:
    if not timeline.tracks:
        return True
    last_end = max((clip_end(c) for c in timeline.all_clips()), default=0)
    return time >= last_end


def frame_plan(timeline: Timeline, time: int) -> FramePlan:
    """Everything the player needs to render the frame at ``time``."""
    gaps = analyze_timeline(timeline).gaps
    boundaries = [
        b
        for b in (next_clip_boundary(timeline, time), next_gap_boundary(time, gaps))
        if b is not None
    ]
    return FramePlan(
        time=time,
        active_clips=active_clips_at(timeline, time),
        all_in_gap=all_tracks_in_gap(time, timeline),
        next_boundary=min(boundaries, default=None),
        end_of_timeline=is_end_of_timeline(timeline, time),
    )
