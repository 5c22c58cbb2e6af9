"""Shared data types used across reeltime.

All times are integer milliseconds.
"""

import uuid
from dataclasses import dataclass, field
from typing import Literal

TrackType = Literal["video", "audio"]
GapPosition = Literal["start", "middle", "end"]
SnapTargetType = Literal["grid", "clip-start", "clip-end"]


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class AudioTrack:
    """One audio stream inside a multi-stream source (e.g. mic + system audio)."""

    track_index: int
    label: str
    volume: float = 1.0
    muted: bool = False


@dataclass
class Transform:
    """Spatial placement of a clip on the canvas, in output pixels."""

    x: float = 0.0
    y: float = 0.0
    width: float | None = None
    height: float | None = None
    rotation: float = 0.0


@dataclass
class Clip:
    """A trimmed reference to a media source placed on a track.

    ``trim_out`` defaults to the full source duration. The optional audio and
    fade fields stay ``None`` when unset; read them through the ``*_ms`` /
    ``gain`` / ``is_muted`` accessors to get the explicit defaults.
    """

    source_path: str
    start_time: int
    source_duration: int
    trim_in: int = 0
    trim_out: int | None = None
    id: str = field(default_factory=new_id)
    fade_in: int | None = None
    fade_out: int | None = None
    volume: float | None = None
    muted: bool | None = None
    audio_tracks: list[AudioTrack] | None = None
    transform: Transform | None = None

    def __post_init__(self) -> None:
        if self.trim_out is None:
            self.trim_out = self.source_duration

    @property
    def fade_in_ms(self) -> int:
        return 0 if self.fade_in is None else self.fade_in

    @property
    def fade_out_ms(self) -> int:
        return 0 if self.fade_out is None else self.fade_out

    @property
    def gain(self) -> float:
        return 1.0 if self.volume is None else self.volume

    @property
    def is_muted(self) -> bool:
        return bool(self.muted)


@dataclass
class Track:
    """An ordered, non-overlapping run of clips of one media type."""

    id: str = field(default_factory=new_id)
    track_type: TrackType = "video"
    track_number: int = 1
    label: str = ""
    clips: list[Clip] = field(default_factory=list)


@dataclass
class Timeline:
    """The multi-track composition. ``total_duration`` is derived, never set by hand."""

    tracks: list[Track] = field(default_factory=list)
    total_duration: int = 0

    def track(self, track_id: str) -> Track | None:
        return next((t for t in self.tracks if t.id == track_id), None)

    def video_tracks(self) -> list[Track]:
        return [t for t in self.tracks if t.track_type == "video"]

    def audio_tracks(self) -> list[Track]:
        return [t for t in self.tracks if t.track_type == "audio"]

    def all_clips(self) -> list[Clip]:
        return [c for t in self.tracks for c in t.clips]


@dataclass(frozen=True)
class Gap:
    """A maximal empty stretch ``[start_time, end_time)`` on one track."""

    track_id: str
    track_type: TrackType
    start_time: int
    end_time: int
    position: GapPosition

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass
class GapAnalysis:
    gaps: list[Gap] = field(default_factory=list)
    tracks_with_gaps: list[str] = field(default_factory=list)

    @property
    def total_gaps(self) -> int:
        return len(self.gaps)

    @property
    def has_gaps(self) -> bool:
        return bool(self.gaps)


@dataclass(frozen=True)
class SnapTarget:
    """A candidate position for magnetic snapping."""

    position: int
    type: SnapTargetType
    track_id: str | None = None
    clip_id: str | None = None


@dataclass
class SnapResult:
    snapped_position: int
    indicator: SnapTarget | None = None


@dataclass
class ActiveClip:
    """A clip under the playhead, with its track context."""

    clip: Clip
    track_id: str
    track_number: int
    track_type: TrackType
    relative_time: int
