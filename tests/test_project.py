"""Tests for project file loading, validation and saving."""

import json

import pytest

from reeltime.models import Clip, Transform
from reeltime.project import (
    FORMAT_VERSION,
    ProjectFile,
    ViewConfig,
    clip_from_dict,
    clip_to_dict,
    load_project,
    project_from_dict,
    project_to_dict,
    save_project,
    timeline_from_dict,
)


def _clip(**overrides) -> dict:
    data = {"id": "c1", "sourcePath": "a.mp4", "startTime": 0, "sourceDuration": 5000}
    data.update(overrides)
    return data


class TestViewConfig:
    def test_defaults(self):
        view = ViewConfig()
        assert view.pixels_per_second == 50.0
        assert view.zoom_level == 1.0
        assert view.snap_enabled is True
        assert view.snap_threshold == 100


class TestClipFromDict:
    def test_minimal(self):
        clip = clip_from_dict(_clip())
        assert clip.id == "c1"
        assert (clip.trim_in, clip.trim_out) == (0, 5000)
        assert clip.fade_in is None
        assert clip.audio_tracks is None

    def test_legacy_field_names(self):
        clip = clip_from_dict({"filePath": "old.mp4", "startTime": 0, "duration": 3000})
        assert clip.source_path == "old.mp4"
        assert clip.source_duration == 3000

    def test_missing_source(self):
        with pytest.raises(ValueError, match="sourcePath"):
            clip_from_dict({"startTime": 0, "sourceDuration": 1000})

    def test_fractional_ms_rejected(self):
        with pytest.raises(ValueError, match="startTime"):
            clip_from_dict(_clip(startTime=10.5))

    def test_whole_float_accepted(self):
        assert clip_from_dict(_clip(startTime=10.0)).start_time == 10

    def test_infinite_time_rejected(self):
        with pytest.raises(ValueError, match="startTime"):
            clip_from_dict(_clip(startTime=float("inf")))

    def test_not_an_object(self):
        with pytest.raises(ValueError, match="must be an object"):
            clip_from_dict(["a.mp4", 0, 5000])

    def test_audio_track_without_index(self):
        with pytest.raises(ValueError, match=r"audioTracks\[1\] missing 'trackIndex'"):
            clip_from_dict(_clip(audioTracks=[{"trackIndex": 0, "label": "Mic"}, {"label": "System"}]))

    def test_audio_tracks_not_a_list(self):
        with pytest.raises(ValueError, match="audioTracks"):
            clip_from_dict(_clip(audioTracks={"trackIndex": 0}))

    def test_unknown_transform_key(self):
        with pytest.raises(ValueError, match=r"unknown transform fields \['scale'\]"):
            clip_from_dict(_clip(transform={"x": 10, "scale": 2}))

    def test_transform_value_must_be_number(self):
        with pytest.raises(ValueError, match="transform 'x'"):
            clip_from_dict(_clip(transform={"x": "left"}))

    def test_non_numeric_volume(self):
        with pytest.raises(ValueError, match="volume"):
            clip_from_dict(_clip(volume="loud"))

    def test_bad_trim(self):
        with pytest.raises(ValueError, match="invalid clip"):
            clip_from_dict(_clip(trimIn=4000, trimOut=2000))

    def test_fade_too_long(self):
        with pytest.raises(ValueError, match="invalid clip"):
            clip_from_dict(_clip(fadeIn=5001))

    def test_optional_fields(self):
        clip = clip_from_dict(_clip(
            volume=0.5,
            muted=True,
            audioTracks=[{"trackIndex": 1, "label": "Mic"}],
            transform={"x": 10, "y": 20, "rotation": 90},
        ))
        assert clip.gain == 0.5
        assert clip.is_muted
        assert clip.audio_tracks[0].label == "Mic"
        assert clip.audio_tracks[0].volume == 1.0
        assert clip.transform == Transform(x=10, y=20, rotation=90)


class TestClipToDict:
    def test_unset_optionals_omitted(self):
        data = clip_to_dict(Clip("a.mp4", 0, 5000))
        assert set(data) == {"id", "sourcePath", "startTime", "sourceDuration", "trimIn", "trimOut"}

    def test_set_optionals_written(self):
        data = clip_to_dict(Clip("a.mp4", 0, 5000, fade_in=0, muted=False))
        assert data["fadeIn"] == 0
        assert data["muted"] is False


class TestTimelineFromDict:
    def test_overlap_rejected(self):
        data = {"tracks": [{"clips": [_clip(id="a"), _clip(id="b", startTime=4000)]}]}
        with pytest.raises(ValueError, match="overlaps"):
            timeline_from_dict(data)

    def test_duplicate_ids_rejected_across_tracks(self):
        data = {"tracks": [{"clips": [_clip()]}, {"clips": [_clip()]}]}
        with pytest.raises(ValueError, match="duplicate clip id"):
            timeline_from_dict(data)

    def test_invalid_track_type(self):
        with pytest.raises(ValueError, match="trackType"):
            timeline_from_dict({"tracks": [{"trackType": "subtitle"}]})

    def test_timeline_not_an_object(self):
        with pytest.raises(ValueError, match="Timeline"):
            timeline_from_dict([])

    def test_tracks_not_a_list(self):
        with pytest.raises(ValueError, match="tracks"):
            timeline_from_dict({"tracks": {"trackType": "video"}})

    def test_track_not_an_object(self):
        with pytest.raises(ValueError, match="Track 1: must be an object"):
            timeline_from_dict({"tracks": [{"clips": []}, "video"]})

    def test_unhashable_track_type(self):
        with pytest.raises(ValueError, match="trackType"):
            timeline_from_dict({"tracks": [{"trackType": ["video"]}]})

    def test_clip_not_an_object(self):
        with pytest.raises(ValueError, match="Track 0, clip 0: must be an object"):
            timeline_from_dict({"tracks": [{"clips": [42]}]})

    def test_sorted_and_numbered(self):
        data = {"tracks": [
            {"trackNumber": 7, "clips": [_clip(id="late", startTime=6000), _clip(id="early")]},
            {"trackType": "audio", "label": "Music"},
        ]}
        timeline = timeline_from_dict(data)
        assert [c.id for c in timeline.tracks[0].clips] == ["early", "late"]
        assert [t.track_number for t in timeline.tracks] == [1, 2]
        assert [t.label for t in timeline.tracks] == ["Track 1", "Music"]
        assert timeline.total_duration == 11000


class TestLoadProject:
    def test_load_sample(self, sample_project_path):
        project = load_project(sample_project_path)
        assert project.version == FORMAT_VERSION
        assert project.timeline.total_duration == 20000  # stored 99999 is ignored
        assert [t.id for t in project.timeline.tracks] == ["v1", "a1"]
        assert project.view.pixels_per_second == 100

    def test_missing_timeline(self):
        with pytest.raises(ValueError, match="timeline"):
            project_from_dict({"version": "1"})

    def test_timeline_must_be_object(self):
        with pytest.raises(ValueError, match="timeline"):
            project_from_dict({"timeline": []})

    def test_malformed_view(self):
        with pytest.raises(ValueError, match="View"):
            project_from_dict({"timeline": {"tracks": []}, "view": {"zoomLevel": "close"}})
        with pytest.raises(ValueError, match="View"):
            project_from_dict({"timeline": {"tracks": []}, "view": None})

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_project(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_project(tmp_path / "nope.json")


class TestSaveProject:
    def test_save_then_load(self, tmp_path, sample_project_path):
        project = load_project(sample_project_path)
        out = save_project(project, tmp_path / "out.json")
        reloaded = load_project(out)
        assert reloaded.timeline == project.timeline
        assert reloaded.view == project.view

    def test_camel_case_keys(self, tmp_path):
        out = save_project(ProjectFile(), tmp_path / "empty.json")
        data = json.loads(out.read_text())
        assert data == project_to_dict(ProjectFile())
        assert data["timeline"] == {"tracks": [], "totalDuration": 0}
        assert "snapThreshold" in data["view"]
