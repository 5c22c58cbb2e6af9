"""Magnetic snapping for interactive clip placement.

Targets are clip edges on every track plus zoom-dependent grid lines. Clip
edges always beat grid lines: a grid line is only considered when no clip
edge is within the threshold.
"""

from reeltime.intervals import clip_end, round_ms
from reeltime.models import Clip, SnapResult, SnapTarget, Timeline
from reeltime.timeutils import pixels_per_second as scale_at_zoom

GRID_INTERVALS_MS = (100, 250, 500, 1000, 2000, 5000, 10000, 30000, 60000)

# On-screen distance we aim for between grid lines.
TARGET_GRID_SPACING_PX = 75

MIN_GRID_SPAN_MS = 60000


def grid_interval(zoom_level: float, base_pixels_per_second: float) -> int:
    """Smallest ladder interval whose lines are at least 75px apart at this zoom."""
    pixels_per_second = scale_at_zoom(zoom_level, base_pixels_per_second)
    if pixels_per_second <= 0:
        return GRID_INTERVALS_MS[-1]

    ms_per_line = TARGET_GRID_SPACING_PX * 1000 / pixels_per_second
    return next((i for i in GRID_INTERVALS_MS if i >= ms_per_line), GRID_INTERVALS_MS[-1])


def find_targets(
    timeline: Timeline,
    exclude_clip_id: str | None,
    zoom_level: float,
    base_pixels_per_second: float,
) -> list[SnapTarget]:
    """Clip edges across all tracks, then grid lines from 0 to at least one minute."""
    targets: list[SnapTarget] = []

    for track in timeline.tracks:
        for clip in track.clips:
            if clip.id == exclude_clip_id:
                continue
            targets.append(SnapTarget(clip.start_time, "clip-start", track.id, clip.id))
            targets.append(SnapTarget(clip_end(clip), "clip-end", track.id, clip.id))

    interval = grid_interval(zoom_level, base_pixels_per_second)
    span = max(timeline.total_duration, MIN_GRID_SPAN_MS)
    targets.extend(SnapTarget(t, "grid") for t in range(0, span + 1, interval))

    return targets


def _closest(position: float, targets: list[SnapTarget], threshold: float) -> SnapTarget | None:
    # Strictly inside the threshold; the first of several equidistant targets wins.
    best: SnapTarget | None = None
    best_distance = threshold
    for target in targets:
        distance = abs(target.position - position)
        if distance < best_distance:
            best, best_distance = target, distance
    return best


def apply_snap(
    position: float,
    targets: list[SnapTarget],
    threshold_ms: float,
    enabled: bool,
) -> SnapResult:
    """Snap ``position`` to the best target within ``threshold_ms``.

    Args:
        position: Requested timeline position (ms).
        targets: Candidates, usually from ``find_targets``.
        threshold_ms: A target snaps only if it is strictly closer than this.
        enabled: When False the position passes through untouched.

    Returns:
        SnapResult with the snapped position and the target that won, or the
        original position and ``None`` when nothing snapped.
    """
    if not enabled:
        return SnapResult(position, None)

    clip_targets = [t for t in targets if t.type != "grid"]
    grid_targets = [t for t in targets if t.type == "grid"]

    winner = _closest(position, clip_targets, threshold_ms)
    if winner is None:
        winner = _closest(position, grid_targets, threshold_ms)

    if winner is None:
        return SnapResult(position, None)
    return SnapResult(winner.position, winner)


def snap_to_grid(position: float, interval: int, threshold: float) -> float:
    """Nearest grid line if it is within ``threshold`` (inclusive), else ``position``."""
    nearest = round_ms(position / interval) * interval
    if abs(position - nearest) <= threshold:
        return nearest
    return position


def snap_to_clip_edges(
    position: float,
    clips: list[Clip],
    threshold: float,
    exclude_clip_id: str | None = None,
) -> float:
    targets: list[SnapTarget] = []
    for clip in clips:
        if clip.id == exclude_clip_id:
            continue
        targets.append(SnapTarget(clip.start_time, "clip-start", clip_id=clip.id))
        targets.append(SnapTarget(clip_end(clip), "clip-end", clip_id=clip.id))

    winner = _closest(position, targets, threshold)
    return position if winner is None else winner.position
