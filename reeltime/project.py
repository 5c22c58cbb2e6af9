"""Project files: the plain-data (JSON) form of a composition and its view settings.

Keys are camelCase, and optional clip fields are omitted when unset. Loading
re-derives ``totalDuration`` and refuses data that breaks the placement
invariants, so every Timeline handed out by this module is structurally valid.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path

from reeltime.editors.clips import detect_overlap, is_well_formed
from reeltime.intervals import is_finite_number, total_duration
from reeltime.models import AudioTrack, Clip, Timeline, Track, Transform
from reeltime.timeutils import DEFAULT_PIXELS_PER_SECOND

FORMAT_VERSION = "1"

VALID_TRACK_TYPES = {"video", "audio"}

TRANSFORM_KEYS = {f.name for f in fields(Transform)}


@dataclass
class ViewConfig:
    """Editor view and snapping settings."""

    pixels_per_second: float = DEFAULT_PIXELS_PER_SECOND
    zoom_level: float = 1.0
    scroll_position: float = 0.0
    track_height: int = 80
    ruler_height: int = 30
    snap_enabled: bool = True
    snap_threshold: int = 100


@dataclass
class ProjectFile:
    timeline: Timeline = field(default_factory=Timeline)
    view: ViewConfig = field(default_factory=ViewConfig)
    version: str = FORMAT_VERSION


# --- Serialization ---


def clip_to_dict(clip: Clip) -> dict:
    data = {
        "id": clip.id,
        "sourcePath": clip.source_path,
        "startTime": clip.start_time,
        "sourceDuration": clip.source_duration,
        "trimIn": clip.trim_in,
        "trimOut": clip.trim_out,
    }
    if clip.fade_in is not None:
        data["fadeIn"] = clip.fade_in
    if clip.fade_out is not None:
        data["fadeOut"] = clip.fade_out
    if clip.volume is not None:
        data["volume"] = clip.volume
    if clip.muted is not None:
        data["muted"] = clip.muted
    if clip.audio_tracks is not None:
        data["audioTracks"] = [
            {"trackIndex": a.track_index, "label": a.label, "volume": a.volume, "muted": a.muted}
            for a in clip.audio_tracks
        ]
    if clip.transform is not None:
        t = clip.transform
        data["transform"] = {
            "x": t.x, "y": t.y, "width": t.width, "height": t.height, "rotation": t.rotation,
        }
    return data


def track_to_dict(track: Track) -> dict:
    return {
        "id": track.id,
        "trackType": track.track_type,
        "trackNumber": track.track_number,
        "label": track.label,
        "clips": [clip_to_dict(c) for c in track.clips],
    }


def timeline_to_dict(timeline: Timeline) -> dict:
    return {
        "tracks": [track_to_dict(t) for t in timeline.tracks],
        "totalDuration": timeline.total_duration,
    }


def view_to_dict(view: ViewConfig) -> dict:
    return {
        "pixelsPerSecond": view.pixels_per_second,
        "zoomLevel": view.zoom_level,
        "scrollPosition": view.scroll_position,
        "trackHeight": view.track_height,
        "rulerHeight": view.ruler_height,
        "snapEnabled": view.snap_enabled,
        "snapThreshold": view.snap_threshold,
    }


def project_to_dict(project: ProjectFile) -> dict:
    return {
        "version": project.version,
        "timeline": timeline_to_dict(project.timeline),
        "view": view_to_dict(project.view),
    }


# --- Deserialization ---


def _require_int(data: dict, key: str, prefix: str) -> int:
    if key not in data:
        raise ValueError(f"{prefix}: missing required field '{key}'")
    value = data[key]
    if not is_finite_number(value) or value != int(value):
        raise ValueError(f"{prefix}: '{key}' must be a whole number of milliseconds, got {value!r}")
    return int(value)


def _require_object(value, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{what}: must be an object, got {type(value).__name__}")
    return value


def _require_list(value, what: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"{what}: must be a list, got {type(value).__name__}")
    return value


def _audio_tracks_from_list(raw, prefix: str) -> list[AudioTrack]:
    audio_tracks = []
    for k, a in enumerate(_require_list(raw, f"{prefix}: audioTracks")):
        where = f"{prefix}: audioTracks[{k}]"
        _require_object(a, where)
        if "trackIndex" not in a:
            raise ValueError(f"{where} missing 'trackIndex'")
        try:
            audio_tracks.append(AudioTrack(
                track_index=int(a["trackIndex"]),
                label=str(a.get("label", "")),
                volume=float(a.get("volume", 1.0)),
                muted=bool(a.get("muted", False)),
            ))
        except (TypeError, ValueError) as e:
            raise ValueError(f"{where}: {e}") from e
    return audio_tracks


def _transform_from_dict(raw, prefix: str) -> Transform:
    _require_object(raw, f"{prefix}: transform")
    unknown = set(raw) - TRANSFORM_KEYS
    if unknown:
        raise ValueError(f"{prefix}: unknown transform fields {sorted(unknown)}")
    for key, value in raw.items():
        if value is None and key in ("width", "height"):
            continue
        if not is_finite_number(value):
            raise ValueError(f"{prefix}: transform '{key}' must be a number, got {value!r}")
    return Transform(**raw)


def clip_from_dict(data: dict, prefix: str = "Clip") -> Clip:
    """Build a Clip from its plain-data form.

    ``filePath`` and ``duration`` are accepted as older spellings of
    ``sourcePath`` and ``sourceDuration``.
    """
    _require_object(data, prefix)
    source_path = data.get("sourcePath", data.get("filePath"))
    if not isinstance(source_path, str) or not source_path:
        raise ValueError(f"{prefix}: missing required field 'sourcePath'")

    if "sourceDuration" not in data and "duration" in data:
        data = {**data, "sourceDuration": data["duration"]}
    source_duration = _require_int(data, "sourceDuration", prefix)
    start_time = _require_int(data, "startTime", prefix)
    trim_in = _require_int(data, "trimIn", prefix) if "trimIn" in data else 0
    trim_out = _require_int(data, "trimOut", prefix) if "trimOut" in data else source_duration

    audio_tracks = None
    if data.get("audioTracks") is not None:
        audio_tracks = _audio_tracks_from_list(data["audioTracks"], prefix)

    transform = None
    if data.get("transform") is not None:
        transform = _transform_from_dict(data["transform"], prefix)

    volume = data.get("volume")
    if volume is not None and not is_finite_number(volume):
        raise ValueError(f"{prefix}: 'volume' must be a number, got {volume!r}")

    clip = Clip(
        source_path=source_path,
        start_time=start_time,
        source_duration=source_duration,
        trim_in=trim_in,
        trim_out=trim_out,
        fade_in=_require_int(data, "fadeIn", prefix) if data.get("fadeIn") is not None else None,
        fade_out=_require_int(data, "fadeOut", prefix) if data.get("fadeOut") is not None else None,
        volume=float(volume) if volume is not None else None,
        muted=bool(data["muted"]) if data.get("muted") is not None else None,
        audio_tracks=audio_tracks,
        transform=transform,
    )
    if data.get("id"):
        clip.id = str(data["id"])

    if not is_well_formed(clip):
        raise ValueError(
            f"{prefix}: invalid clip (start {clip.start_time}, trim {clip.trim_in}-{clip.trim_out} "
            f"of {clip.source_duration}, fades {clip.fade_in_ms}/{clip.fade_out_ms})"
        )
    return clip


def timeline_from_dict(data: dict) -> Timeline:
    """Build and validate a Timeline. ``totalDuration`` in the input is ignored."""
    _require_object(data, "Timeline")
    tracks: list[Track] = []
    seen_ids: set[str] = set()

    for i, raw_track in enumerate(_require_list(data.get("tracks", []), "Timeline: tracks")):
        _require_object(raw_track, f"Track {i}")
        track_type = raw_track.get("trackType", "video")
        if not isinstance(track_type, str) or track_type not in VALID_TRACK_TYPES:
            raise ValueError(
                f"Track {i}: invalid trackType '{track_type}'. Valid: {sorted(VALID_TRACK_TYPES)}"
            )
        track = Track(
            track_type=track_type,
            track_number=i + 1,
            label=raw_track.get("label") or f"Track {i + 1}",
        )
        if raw_track.get("id"):
            track.id = str(raw_track["id"])

        for j, raw_clip in enumerate(_require_list(raw_track.get("clips", []), f"Track {i}: clips")):
            prefix = f"Track {i}, clip {j}"
            clip = clip_from_dict(raw_clip, prefix)
            if clip.id in seen_ids:
                raise ValueError(f"{prefix}: duplicate clip id '{clip.id}'")
            if detect_overlap(clip, track):
                raise ValueError(f"{prefix}: overlaps another clip on the same track")
            seen_ids.add(clip.id)
            track.clips.append(clip)

        track.clips.sort(key=lambda c: c.start_time)
        tracks.append(track)

    return Timeline(tracks=tracks, total_duration=total_duration(tracks))


def view_from_dict(data: dict) -> ViewConfig:
    _require_object(data, "View")
    defaults = ViewConfig()
    try:
        return ViewConfig(
            pixels_per_second=float(data.get("pixelsPerSecond", defaults.pixels_per_second)),
            zoom_level=float(data.get("zoomLevel", defaults.zoom_level)),
            scroll_position=float(data.get("scrollPosition", defaults.scroll_position)),
            track_height=int(data.get("trackHeight", defaults.track_height)),
            ruler_height=int(data.get("rulerHeight", defaults.ruler_height)),
            snap_enabled=bool(data.get("snapEnabled", defaults.snap_enabled)),
            snap_threshold=int(data.get("snapThreshold", defaults.snap_threshold)),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"View: {e}") from e


def project_from_dict(data: dict) -> ProjectFile:
    if not isinstance(data, dict) or "timeline" not in data:
        raise ValueError("Project must contain a 'timeline' field")
    if not isinstance(data["timeline"], dict):
        raise ValueError("Project 'timeline' must be an object")
    return ProjectFile(
        version=str(data.get("version", FORMAT_VERSION)),
        timeline=timeline_from_dict(data["timeline"]),
        view=view_from_dict(data.get("view", {})),
    )


def load_project(path: str | Path) -> ProjectFile:
    """Load and validate a project from a JSON file."""
    path = Path(path)
    return project_from_dict(json.loads(path.read_text()))


def save_project(project: ProjectFile, path: str | Path) -> Path:
    path = Path(path)
    path.write_text(json.dumps(project_to_dict(project), indent=2) + "\n")
    return path
