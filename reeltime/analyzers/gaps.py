"""Gap analyzer: finds the empty stretches of each track for black/silent playback."""

from reeltime.intervals import clip_end
from reeltime.models import Gap, GapAnalysis, Timeline, Track


def analyze_track(track: Track, timeline_duration: int) -> list[Gap]:
    """Return the gaps on one track, covering ``[0, timeline_duration)``.

    Gaps are tagged "start" (before the first clip, or the whole track when it
    is empty), "middle" (between clips) or "end" (after the last clip).
    Together with the clip footprints they tile the timeline exactly.
    """
    if not track.clips:
        if timeline_duration > 0:
            return [Gap(track.id, track.track_type, 0, timeline_duration, "start")]
        return []

    clips = sorted(track.clips, key=lambda c: c.start_time)
    gaps: list[Gap] = []

    # Leading gap
    if clips[0].start_time > 0:
        gaps.append(Gap(track.id, track.track_type, 0, clips[0].start_time, "start"))

    for current, following in zip(clips, clips[1:]):
        end = clip_end(current)
        if following.start_time > end:
            gaps.append(Gap(track.id, track.track_type, end, following.start_time, "middle"))

    # Trailing gap
    last_end = clip_end(clips[-1])
    if last_end < timeline_duration:
        gaps.append(Gap(track.id, track.track_type, last_end, timeline_duration, "end"))

    return gaps


def analyze_timeline(timeline: Timeline) -> GapAnalysis:
    analysis = GapAnalysis()
    for track in timeline.tracks:
        track_gaps = analyze_track(track, timeline.total_duration)
        analysis.gaps.extend(track_gaps)
        if track_gaps:
            analysis.tracks_with_gaps.append(track.id)
    return analysis


def is_time_in_gap(time: int, gaps: list[Gap]) -> Gap | None:
    """First gap containing ``time`` (inclusive start, exclusive end)."""
    for gap in gaps:
        if gap.start_time <= time < gap.end_time:
            return gap
    return None


def gaps_at_time(time: int, gaps: list[Gap]) -> list[Gap]:
    return [g for g in gaps if g.start_time <= time < g.end_time]


def all_tracks_in_gap(time: int, timeline: Timeline) -> bool:
    """True when no track has a clip at ``time``, i.e. the frame is black/silent.

    An empty timeline (no tracks, or tracks without clips) always counts as
    being in a gap.
    """
    if not timeline.tracks or not any(t.clips for t in timeline.tracks):
        return True
    gapped = {g.track_id for g in gaps_at_time(time, analyze_timeline(timeline).gaps)}
    return len(gapped) == len(timeline.tracks)


def next_gap_boundary(time: int, gaps: list[Gap]) -> int | None:
    """Earliest gap start or end strictly after ``time``, or None."""
    boundaries = [
        edge
        for gap in gaps
        for edge in (gap.start_time, gap.end_time)
        if edge > time
    ]
    return min(boundaries, default=None)
