"""Unit tests for the reeltime JSON API."""

import json

import pytest

from reeltime.web import create_app


@pytest.fixture
def app():
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def project_id(client, sample_project_path):
    resp = client.post("/api/projects", json=json.loads(sample_project_path.read_text()))
    return resp.get_json()["project_id"]


def _clips(client, project_id, track_index=0):
    project = client.get(f"/api/projects/{project_id}").get_json()
    return project["timeline"]["tracks"][track_index]["clips"]


class TestProjects:
    def test_create_empty(self, client):
        resp = client.post("/api/projects")
        assert resp.status_code == 201
        data = resp.get_json()
        assert "project_id" in data
        assert len(data["project"]["timeline"]["tracks"]) == 1
        assert data["project"]["canUndo"] is False

    def test_create_from_project_json(self, client, project_id):
        resp = client.get(f"/api/projects/{project_id}")
        assert resp.status_code == 200
        assert resp.get_json()["timeline"]["totalDuration"] == 20000

    def test_create_invalid(self, client):
        resp = client.post("/api/projects", json={"version": "1"})
        assert resp.status_code == 400
        assert "timeline" in resp.get_json()["error"]

    def test_create_with_list_timeline(self, client):
        resp = client.post("/api/projects", json={"timeline": []})
        assert resp.status_code == 400
        assert "timeline" in resp.get_json()["error"]

    def test_create_with_malformed_track(self, client):
        resp = client.post("/api/projects", json={"timeline": {"tracks": ["video"]}})
        assert resp.status_code == 400

    def test_unknown_project(self, client):
        resp = client.get("/api/projects/nonexistent")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Project not found"

    def test_preloaded_projects(self, sample_store):
        client = create_app({"demo": sample_store}).test_client()
        assert client.get("/api/projects/demo").status_code == 200


class TestTracks:
    def test_add_track(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/tracks", json={"trackType": "audio", "label": "VO"})
        assert resp.status_code == 201
        tracks = resp.get_json()["project"]["timeline"]["tracks"]
        assert tracks[-1]["label"] == "VO"
        assert tracks[-1]["trackNumber"] == 3

    def test_add_track_invalid_type(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/tracks", json={"trackType": "subtitle"})
        assert resp.status_code == 400

    def test_remove_track(self, client, project_id):
        resp = client.delete(f"/api/projects/{project_id}/tracks/a1")
        assert resp.status_code == 200
        assert len(resp.get_json()["timeline"]["tracks"]) == 1

    def test_remove_last_track(self, client, project_id):
        client.delete(f"/api/projects/{project_id}/tracks/a1")
        resp = client.delete(f"/api/projects/{project_id}/tracks/v1")
        assert resp.status_code == 409

    def test_remove_unknown_track(self, client, project_id):
        assert client.delete(f"/api/projects/{project_id}/tracks/nope").status_code == 404


class TestAddClip:
    def test_place_at_start_time(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/tracks/v1/clips",
            json={"sourcePath": "b-roll.mp4", "startTime": 3000, "sourceDuration": 2000},
        )
        assert resp.status_code == 201
        assert resp.get_json()["clip"]["startTime"] == 3000

    def test_append_without_start_time(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/tracks/v1/clips",
            json={"sourcePath": "end.mp4", "sourceDuration": 1000},
        )
        assert resp.status_code == 201
        assert resp.get_json()["clip"]["startTime"] == 15000

    def test_overlap_is_conflict(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/tracks/v1/clips",
            json={"sourcePath": "x.mp4", "startTime": 1000, "sourceDuration": 1000},
        )
        assert resp.status_code == 409

    def test_malformed_clip(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/tracks/v1/clips", json={"startTime": 0})
        assert resp.status_code == 400

    def test_unknown_track(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/tracks/nope/clips",
            json={"sourcePath": "x.mp4", "sourceDuration": 1000},
        )
        assert resp.status_code == 404


class TestClipEdits:
    def test_patch_fades(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/intro", json={"fadeOut": 1000})
        assert resp.status_code == 200
        assert resp.get_json()["clip"]["fadeOut"] == 1000

    def test_patch_rejected(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/intro", json={"fadeIn": 5001})
        assert resp.status_code == 409

    def test_patch_null_start_time(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/intro", json={"startTime": None})
        assert resp.status_code == 409
        assert _clips(client, project_id)[0]["startTime"] == 0

    def test_patch_text_trim(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/main", json={"trimIn": "abc"})
        assert resp.status_code == 409
        assert resp.get_json()["error"]

    def test_patch_read_only_field(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/intro", json={"sourceDuration": 1})
        assert resp.status_code == 400

    def test_patch_unknown_clip(self, client, project_id):
        resp = client.patch(f"/api/projects/{project_id}/clips/nope", json={"fadeIn": 0})
        assert resp.status_code == 404

    def test_ripple_delete(self, client, project_id):
        resp = client.delete(f"/api/projects/{project_id}/clips/main?ripple=1")
        assert resp.status_code == 200
        clips = resp.get_json()["timeline"]["tracks"][0]["clips"]
        assert [(c["id"], c["startTime"]) for c in clips] == [("intro", 0), ("outro", 8000)]

    def test_move_slides_on_collision(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/clips/outro/move", json={"startTime": 8000})
        assert resp.status_code == 200
        assert resp.get_json()["startTime"] == 9000

    def test_move_requires_number(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/clips/outro/move", json={"startTime": "soon"})
        assert resp.status_code == 400

    def test_move_rejects_infinity(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/clips/outro/move",
            data='{"startTime": Infinity}',
            content_type="application/json",
        )
        assert resp.status_code == 400
        assert _clips(client, project_id)[-1]["startTime"] == 12000

    def test_move_to_track(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/clips/music/track", json={"trackId": "v1"})
        assert resp.status_code == 409
        client.delete(f"/api/projects/{project_id}/tracks/v1")
        resp = client.get(f"/api/projects/{project_id}")
        assert resp.get_json()["timeline"]["tracks"][0]["id"] == "a1"

    def test_split(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/clips/main/split", json={"time": 7000})
        assert resp.status_code == 200
        first, second = resp.get_json()["clip_ids"]
        ids = [c["id"] for c in _clips(client, project_id)]
        assert ids == ["intro", first, second, "outro"]

    def test_split_outside(self, client, project_id):
        resp = client.post(f"/api/projects/{project_id}/clips/main/split", json={"time": 100})
        assert resp.status_code == 409

    def test_split_rejects_nan(self, client, project_id):
        resp = client.post(
            f"/api/projects/{project_id}/clips/main/split",
            data='{"time": NaN}',
            content_type="application/json",
        )
        assert resp.status_code == 400

    def test_reset_trim_blocked(self, client, project_id):
        # main would grow to [5000, 15000) and hit outro
        resp = client.post(f"/api/projects/{project_id}/clips/main/reset-trim")
        assert resp.status_code == 409


class TestUndo:
    def test_undo_after_edit(self, client, project_id):
        client.delete(f"/api/projects/{project_id}/clips/intro")
        resp = client.post(f"/api/projects/{project_id}/undo")
        data = resp.get_json()
        assert data["undone"] is True
        assert data["project"]["timeline"]["tracks"][0]["clips"][0]["id"] == "intro"

    def test_nothing_to_undo(self, client, project_id):
        assert client.post(f"/api/projects/{project_id}/undo").get_json()["undone"] is False

    def test_drag_undoes_in_one_step(self, client, project_id):
        url = f"/api/projects/{project_id}/clips/outro/move"
        client.post(url, json={"startTime": 16000, "recordHistory": False})
        client.post(url, json={"startTime": 17000, "recordHistory": False})
        client.post(url, json={"startTime": 18000})
        client.post(f"/api/projects/{project_id}/undo")
        assert _clips(client, project_id)[-1]["startTime"] == 12000


class TestQueries:
    def test_gaps(self, client, project_id):
        data = client.get(f"/api/projects/{project_id}/gaps").get_json()
        assert data["totalGaps"] == 4
        assert data["tracksWithGaps"] == ["v1", "a1"]
        assert data["gaps"][0] == {
            "trackId": "v1",
            "trackType": "video",
            "startTime": 3000,
            "endTime": 5000,
            "duration": 2000,
            "position": "middle",
        }

    def test_playback(self, client, project_id):
        data = client.get(f"/api/projects/{project_id}/playback?t=6000").get_json()
        assert [c["clipId"] for c in data["activeClips"]] == ["main", "music"]
        assert data["activeClips"][0]["sourceTime"] == 3000
        assert data["allInGap"] is False
        assert data["nextBoundary"] == 9000

    def test_playback_requires_time(self, client, project_id):
        assert client.get(f"/api/projects/{project_id}/playback").status_code == 400

    def test_snap(self, client, project_id):
        data = client.post(f"/api/projects/{project_id}/snap", json={"position": 9040}).get_json()
        assert data["snappedPosition"] == 9000
        assert data["indicator"]["type"] == "clip-end"
        assert data["indicator"]["clipId"] == "main"

    def test_snap_nothing_in_range(self, client, project_id):
        data = client.post(f"/api/projects/{project_id}/snap", json={"position": 10500}).get_json()
        assert data["snappedPosition"] == 10500
        assert data["indicator"] is None
