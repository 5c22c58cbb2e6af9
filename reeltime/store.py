"""Composition store: the single owner of a timeline's tracks, clips and undo history.

Every mutating method is a transaction: the request is validated against a
candidate copy first, and only then is the live state touched, so a rejected
request leaves the store exactly as it was. Rejections are reported through
the return value (``None`` / ``False``), never by raising.

Reads hand out deep copies; callers never hold references to the store's own
clips.
"""

import copy
import dataclasses
import logging

from reeltime.analyzers.gaps import analyze_timeline
from reeltime.analyzers.playback import FramePlan, frame_plan
from reeltime.editors.clips import (
    delete_clip,
    detect_overlap,
    is_well_formed,
    nearest_valid_start,
    sequential_position,
    split_at,
    validate_fade_duration,
    validate_position,
)
from reeltime.history import DEFAULT_CAPACITY, History, HistoryEntry
from reeltime.intervals import is_finite_number, round_ms, total_duration
from reeltime.models import Clip, GapAnalysis, SnapResult, Timeline, Track, TrackType, new_id
from reeltime.project import ProjectFile, ViewConfig
from reeltime.snapping import apply_snap, find_targets
from reeltime.timeutils import clamp_zoom

logger = logging.getLogger(__name__)

_CLIP_FIELDS = {f.name for f in dataclasses.fields(Clip)}
_IMMUTABLE_CLIP_FIELDS = {"id", "source_duration"}
_TIME_FIELDS = {"start_time", "trim_in", "trim_out", "fade_in", "fade_out"}
_OPTIONAL_TIME_FIELDS = {"fade_in", "fade_out"}
_VIEW_FIELDS = {f.name for f in dataclasses.fields(ViewConfig)}


def _valid_extras(changes: dict) -> bool:
    """Type checks for the non-time clip fields an update may carry."""
    source_path = changes.get("source_path", "unchanged")
    if not isinstance(source_path, str) or not source_path:
        return False
    volume = changes.get("volume")
    if volume is not None and not is_finite_number(volume):
        return False
    muted = changes.get("muted")
    return muted is None or isinstance(muted, bool)


class CompositionStore:
    """Mutable aggregate for one timeline.

    Args:
        timeline: Initial composition. Copied; ``total_duration`` is recomputed.
            Defaults to a single empty video track.
        view: Zoom and snapping settings.
        history_capacity: How many undo steps to keep.
    """

    def __init__(
        self,
        timeline: Timeline | None = None,
        view: ViewConfig | None = None,
        history_capacity: int = DEFAULT_CAPACITY,
    ):
        if timeline is None or not timeline.tracks:
            self._tracks = [Track(track_type="video", track_number=1, label="Track 1")]
        else:
            self._tracks = copy.deepcopy(timeline.tracks)
        self._total_duration = 0
        self._selected_clip_id: str | None = None
        self._view = copy.copy(view) if view is not None else ViewConfig()
        self._history = History(history_capacity)
        # Snapshot taken before the first unrecorded step of a drag gesture.
        self._baseline: HistoryEntry | None = None
        self._settle()

    @classmethod
    def from_project(cls, project: ProjectFile, history_capacity: int = DEFAULT_CAPACITY) -> "CompositionStore":
        return cls(project.timeline, project.view, history_capacity)

    def to_project(self) -> ProjectFile:
        return ProjectFile(timeline=self.timeline, view=self.view)

    # --- Reads ---

    @property
    def timeline(self) -> Timeline:
        return Timeline(copy.deepcopy(self._tracks), self._total_duration)

    @property
    def tracks(self) -> list[Track]:
        return copy.deepcopy(self._tracks)

    @property
    def total_duration(self) -> int:
        return self._total_duration

    @property
    def selected_clip_id(self) -> str | None:
        return self._selected_clip_id

    @property
    def view(self) -> ViewConfig:
        return copy.copy(self._view)

    @property
    def history_index(self) -> int:
        return self._history.cursor

    @property
    def can_undo(self) -> bool:
        return self._history.cursor >= 0

    def get_clip(self, clip_id: str) -> Clip | None:
        found = self._find(clip_id)
        if found is None:
            return None
        track, index = found
        return copy.deepcopy(track.clips[index])

    def track_of(self, clip_id: str) -> str | None:
        found = self._find(clip_id)
        return None if found is None else found[0].id

    def gaps(self) -> GapAnalysis:
        return analyze_timeline(self._live())

    def frame_plan(self, time: int) -> FramePlan:
        return frame_plan(self.timeline, time)

    def snap(self, position: float, exclude_clip_id: str | None = None) -> SnapResult:
        """Snap a drag position using the view's zoom and snap settings."""
        view = self._view
        targets = find_targets(self._live(), exclude_clip_id, view.zoom_level, view.pixels_per_second)
        return apply_snap(position, targets, view.snap_threshold, view.snap_enabled)

    # --- Clip mutations ---

    def add_clip(self, track_id: str, clip: Clip) -> str | None:
        """Place a copy of ``clip`` on a track. Returns the stored clip's id."""
        track = self._track(track_id)
        if track is None:
            logger.debug("add_clip: unknown track %s", track_id)
            return None

        candidate = copy.deepcopy(clip)
        if self._find(candidate.id) is not None:
            candidate.id = new_id()

        if not is_well_formed(candidate) or not validate_position(candidate, track):
            logger.debug("add_clip: rejected %s on track %s", candidate.id, track_id)
            return None

        self._checkpoint(record_history=True)
        track.clips.append(candidate)
        self._settle()
        logger.debug("Added clip %s to track %s at %d", candidate.id, track_id, candidate.start_time)
        return candidate.id

    def append_clip(self, track_id: str, clip: Clip) -> str | None:
        """Add ``clip`` end-to-end after the last clip on the track."""
        track = self._track(track_id)
        if track is None:
            return None
        return self.add_clip(track_id, dataclasses.replace(clip, start_time=sequential_position(track)))

    def remove_clip(self, clip_id: str, ripple: bool = False) -> bool:
        """Delete a clip, optionally closing the gap it leaves (ripple delete)."""
        found = self._find(clip_id)
        if found is None:
            return False
        track, _ = found

        self._checkpoint(record_history=True)
        track.clips = delete_clip(track.clips, clip_id, ripple)
        self._settle()
        logger.debug("Removed clip %s (ripple=%s)", clip_id, ripple)
        return True

    def update_clip(self, clip_id: str, record_history: bool = True, **changes) -> bool:
        """Apply field changes to a clip if the result is still a valid placement.

        ``id`` and ``source_duration`` cannot change. Trims and fades are
        checked together, so a trim that would leave the current fades too
        long is rejected; fades are never clamped.
        """
        found = self._find(clip_id)
        if found is None:
            return False
        track, index = found

        refused = (set(changes) - _CLIP_FIELDS) | (set(changes) & _IMMUTABLE_CLIP_FIELDS)
        if refused:
            logger.debug("update_clip: refused fields %s", sorted(refused))
            return False
        if not changes:
            return True

        for key in _TIME_FIELDS & set(changes):
            value = changes[key]
            if value is None and key in _OPTIONAL_TIME_FIELDS:
                continue
            if not is_finite_number(value):
                logger.debug("update_clip: %s=%r is not a time", key, value)
                return False
            changes[key] = round_ms(value)

        if not _valid_extras(changes):
            logger.debug("update_clip: rejected %s %s", clip_id, changes)
            return False

        candidate = dataclasses.replace(track.clips[index], **changes)
        if not is_well_formed(candidate) or not validate_position(candidate, track, exclude_id=clip_id):
            logger.debug("update_clip: rejected %s %s", clip_id, changes)
            return False

        self._checkpoint(record_history)
        track.clips[index] = copy.deepcopy(candidate)
        self._settle()
        return True

    def set_fades(self, clip_id: str, fade_in: int | None = None, fade_out: int | None = None) -> bool:
        clip = self.get_clip(clip_id)
        if clip is None or not validate_fade_duration(clip, fade_in, fade_out):
            return False
        changes = {}
        if fade_in is not None:
            changes["fade_in"] = fade_in
        if fade_out is not None:
            changes["fade_out"] = fade_out
        return self.update_clip(clip_id, **changes)

    def reset_trim(self, clip_id: str) -> bool:
        """Restore the full source range. Rejected if the longer clip would collide."""
        clip = self.get_clip(clip_id)
        if clip is None:
            return False
        return self.update_clip(clip_id, trim_in=0, trim_out=clip.source_duration)

    def move_clip(self, clip_id: str, new_start: float, record_history: bool = True) -> int | None:
        """Move a clip along its track, sliding it to the nearest free spot on collision.

        Pass ``record_history=False`` for intermediate drag updates and True
        when the drag ends; the gesture then undoes as a single step back to
        where the clip was before the drag began.

        Returns the start time actually committed, or None for an unknown
        clip or a start that is not a finite number.
        """
        if not is_finite_number(new_start):
            return None
        found = self._find(clip_id)
        if found is None:
            return None
        track, index = found
        clip = track.clips[index]

        resolved = nearest_valid_start(clip, track, new_start, exclude_id=clip_id)
        if resolved == clip.start_time:
            if record_history and self._baseline is not None:
                self._checkpoint(record_history=True)
            return resolved

        self._checkpoint(record_history)
        clip.start_time = resolved
        self._settle()
        logger.debug("Moved clip %s to %d (requested %s)", clip_id, resolved, new_start)
        return resolved

    def move_clip_to_track(self, clip_id: str, target_track_id: str) -> bool:
        """Move a clip to another track at the same start time, if it fits there."""
        found = self._find(clip_id)
        target = self._track(target_track_id)
        if found is None or target is None:
            return False
        source, index = found
        if source is target:
            return False
        clip = source.clips[index]
        if detect_overlap(clip, target):
            logger.debug("move_clip_to_track: %s collides on track %s", clip_id, target_track_id)
            return False

        self._checkpoint(record_history=True)
        source.clips.pop(index)
        target.clips.append(clip)
        self._settle()
        return True

    def split_clip(self, clip_id: str, time: float) -> tuple[str, str] | None:
        """Replace a clip with two halves cut at ``time``. Returns the new ids."""
        found = self._find(clip_id)
        if found is None:
            return None
        track, index = found

        halves = split_at(track.clips[index], time)
        if halves is None:
            return None
        first, second = halves
        if not (is_well_formed(first) and is_well_formed(second)):
            logger.debug("split_clip: a half of %s would carry an invalid fade", clip_id)
            return None

        self._checkpoint(record_history=True)
        track.clips[index:index + 1] = [first, second]
        self._settle()
        logger.debug("Split clip %s into %s and %s", clip_id, first.id, second.id)
        return first.id, second.id

    # --- Tracks ---

    def add_track(self, track_type: TrackType = "video", label: str | None = None) -> str | None:
        if track_type not in ("video", "audio"):
            return None
        number = len(self._tracks) + 1
        track = Track(track_type=track_type, track_number=number, label=label or f"Track {number}")

        self._checkpoint(record_history=True)
        self._tracks.append(track)
        self._settle()
        return track.id

    def remove_track(self, track_id: str) -> bool:
        """Remove a track and its clips. The last remaining track cannot be removed."""
        track = self._track(track_id)
        if track is None or len(self._tracks) <= 1:
            return False

        self._checkpoint(record_history=True)
        self._tracks.remove(track)
        for number, remaining in enumerate(self._tracks, 1):
            remaining.track_number = number
        self._settle()
        return True

    def clear_timeline(self) -> None:
        self._checkpoint(record_history=True)
        self._tracks = [Track(track_type="video", track_number=1, label="Track 1")]
        self._settle()

    # --- Selection and view ---

    def set_selected_clip(self, clip_id: str | None) -> bool:
        if clip_id is not None and self._find(clip_id) is None:
            return False
        self._selected_clip_id = clip_id
        return True

    def update_view(self, **changes) -> bool:
        if set(changes) - _VIEW_FIELDS:
            return False
        if "zoom_level" in changes:
            changes["zoom_level"] = clamp_zoom(changes["zoom_level"])
        self._view = dataclasses.replace(self._view, **changes)
        return True

    # --- History ---

    def undo(self) -> bool:
        entry = self._history.undo()
        if entry is None:
            return False
        self._tracks = entry.restore_tracks()
        self._total_duration = entry.total_duration
        self._selected_clip_id = entry.selected_clip_id
        self._baseline = None
        logger.debug("Undo: history index now %d", self._history.cursor)
        return True

    # --- Internals ---

    def _live(self) -> Timeline:
        # Shares the store's own objects; only for pure read-only queries.
        return Timeline(self._tracks, self._total_duration)

    def _track(self, track_id: str) -> Track | None:
        return next((t for t in self._tracks if t.id == track_id), None)

    def _find(self, clip_id: str) -> tuple[Track, int] | None:
        for track in self._tracks:
            for index, clip in enumerate(track.clips):
                if clip.id == clip_id:
                    return track, index
        return None

    def _snapshot(self) -> HistoryEntry:
        return HistoryEntry.capture(self._tracks, self._total_duration, self._selected_clip_id)

    def _checkpoint(self, record_history: bool) -> None:
        """Called immediately before a validated change is applied."""
        if record_history:
            self._history.record(self._baseline or self._snapshot())
            self._baseline = None
        elif self._baseline is None:
            self._baseline = self._snapshot()

    def _settle(self) -> None:
        """Restore derived state after a change: clip order, total duration, selection."""
        for track in self._tracks:
            track.clips.sort(key=lambda c: c.start_time)
        self._total_duration = total_duration(self._tracks)
        if self._selected_clip_id is not None and self._find(self._selected_clip_id) is None:
            self._selected_clip_id = None
