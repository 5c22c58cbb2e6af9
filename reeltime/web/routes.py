"""JSON API over in-memory composition stores.

Every route maps onto one store operation. Lookups of unknown ids answer 404.
A change the store refuses answers 409; a malformed body answers 400.
"""

import uuid

from flask import Blueprint, abort, current_app, jsonify, request

from reeltime.intervals import is_finite_number
from reeltime.models import Gap, SnapTarget
from reeltime.project import clip_from_dict, clip_to_dict, project_from_dict, project_to_dict
from reeltime.store import CompositionStore

bp = Blueprint("api", __name__, url_prefix="/api")

# camelCase body keys accepted by PATCH /clips/<id>
_CLIP_PATCH_FIELDS = {
    "sourcePath": "source_path",
    "startTime": "start_time",
    "trimIn": "trim_in",
    "trimOut": "trim_out",
    "fadeIn": "fade_in",
    "fadeOut": "fade_out",
    "volume": "volume",
    "muted": "muted",
}


def _projects() -> dict[str, CompositionStore]:
    return current_app.config["PROJECTS"]


def _store(project_id: str) -> CompositionStore:
    store = _projects().get(project_id)
    if store is None:
        abort(404, description="Project not found")
    return store


def _require_clip(store: CompositionStore, clip_id: str) -> None:
    if store.get_clip(clip_id) is None:
        abort(404, description="Clip not found")


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def _number(data: dict, key: str) -> float:
    value = data.get(key)
    if not is_finite_number(value):
        abort(400, description=f"'{key}' must be a finite number")
    return value


def _state(store: CompositionStore) -> dict:
    data = project_to_dict(store.to_project())
    data["selectedClipId"] = store.selected_clip_id
    data["historyIndex"] = store.history_index
    data["canUndo"] = store.can_undo
    return data


def _gap_to_dict(gap: Gap) -> dict:
    return {
        "trackId": gap.track_id,
        "trackType": gap.track_type,
        "startTime": gap.start_time,
        "endTime": gap.end_time,
        "duration": gap.duration,
        "position": gap.position,
    }


def _target_to_dict(target: SnapTarget | None) -> dict | None:
    if target is None:
        return None
    return {
        "position": target.position,
        "type": target.type,
        "trackId": target.track_id,
        "clipId": target.clip_id,
    }


# --- Projects ---


@bp.route("/projects", methods=["POST"])
def create_project():
    data = _body()
    if data:
        try:
            store = CompositionStore.from_project(project_from_dict(data))
        except ValueError as e:
            abort(400, description=str(e))
    else:
        store = CompositionStore()

    project_id = uuid.uuid4().hex[:12]
    _projects()[project_id] = store
    return jsonify({"project_id": project_id, "project": _state(store)}), 201


@bp.route("/projects/<project_id>")
def get_project(project_id: str):
    return jsonify(_state(_store(project_id)))


@bp.route("/projects/<project_id>/undo", methods=["POST"])
def undo(project_id: str):
    store = _store(project_id)
    undone = store.undo()
    return jsonify({"undone": undone, "project": _state(store)})


# --- Tracks ---


@bp.route("/projects/<project_id>/tracks", methods=["POST"])
def add_track(project_id: str):
    store = _store(project_id)
    data = _body()
    track_id = store.add_track(data.get("trackType", "video"), data.get("label"))
    if track_id is None:
        abort(400, description="trackType must be 'video' or 'audio'")
    return jsonify({"track_id": track_id, "project": _state(store)}), 201


@bp.route("/projects/<project_id>/tracks/<track_id>", methods=["DELETE"])
def remove_track(project_id: str, track_id: str):
    store = _store(project_id)
    if all(t.id != track_id for t in store.tracks):
        abort(404, description="Track not found")
    if not store.remove_track(track_id):
        abort(409, description="Cannot remove the last track")
    return jsonify(_state(store))


@bp.route("/projects/<project_id>/tracks/<track_id>/clips", methods=["POST"])
def add_clip(project_id: str, track_id: str):
    store = _store(project_id)
    if all(t.id != track_id for t in store.tracks):
        abort(404, description="Track not found")

    data = _body()
    append = "startTime" not in data
    try:
        clip = clip_from_dict({**data, "startTime": data.get("startTime", 0)})
    except ValueError as e:
        abort(400, description=str(e))

    clip_id = store.append_clip(track_id, clip) if append else store.add_clip(track_id, clip)
    if clip_id is None:
        abort(409, description="Cannot place clip here")
    return jsonify({"clip": clip_to_dict(store.get_clip(clip_id)), "project": _state(store)}), 201


# --- Clips ---


@bp.route("/projects/<project_id>/clips/<clip_id>", methods=["PATCH"])
def update_clip(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)

    data = _body()
    record_history = bool(data.pop("recordHistory", True))
    unknown = set(data) - set(_CLIP_PATCH_FIELDS)
    if unknown:
        abort(400, description=f"Unknown or read-only fields: {sorted(unknown)}")

    changes = {_CLIP_PATCH_FIELDS[k]: v for k, v in data.items()}
    if not store.update_clip(clip_id, record_history=record_history, **changes):
        abort(409, description="Clip change rejected")
    return jsonify({"clip": clip_to_dict(store.get_clip(clip_id)), "project": _state(store)})


@bp.route("/projects/<project_id>/clips/<clip_id>", methods=["DELETE"])
def delete_clip(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)
    ripple = request.args.get("ripple", "0").lower() in ("1", "true", "yes")
    store.remove_clip(clip_id, ripple=ripple)
    return jsonify(_state(store))


@bp.route("/projects/<project_id>/clips/<clip_id>/move", methods=["POST"])
def move_clip(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)

    data = _body()
    start = _number(data, "startTime")
    resolved = store.move_clip(clip_id, start, record_history=bool(data.get("recordHistory", True)))
    if resolved is None:
        abort(409, description="Clip move rejected")
    return jsonify({"startTime": resolved, "project": _state(store)})


@bp.route("/projects/<project_id>/clips/<clip_id>/track", methods=["POST"])
def move_clip_to_track(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)

    target = _body().get("trackId")
    if all(t.id != target for t in store.tracks):
        abort(404, description="Track not found")
    if not store.move_clip_to_track(clip_id, target):
        abort(409, description="Clip does not fit on that track")
    return jsonify(_state(store))


@bp.route("/projects/<project_id>/clips/<clip_id>/split", methods=["POST"])
def split_clip(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)

    halves = store.split_clip(clip_id, _number(_body(), "time"))
    if halves is None:
        abort(409, description="Split point must fall strictly inside the clip")
    return jsonify({"clip_ids": list(halves), "project": _state(store)})


@bp.route("/projects/<project_id>/clips/<clip_id>/reset-trim", methods=["POST"])
def reset_trim(project_id: str, clip_id: str):
    store = _store(project_id)
    _require_clip(store, clip_id)
    if not store.reset_trim(clip_id):
        abort(409, description="Untrimmed clip would overlap its neighbour")
    return jsonify({"clip": clip_to_dict(store.get_clip(clip_id)), "project": _state(store)})


# --- Queries ---


@bp.route("/projects/<project_id>/gaps")
def gaps(project_id: str):
    analysis = _store(project_id).gaps()
    return jsonify({
        "gaps": [_gap_to_dict(g) for g in analysis.gaps],
        "totalGaps": analysis.total_gaps,
        "hasGaps": analysis.has_gaps,
        "tracksWithGaps": analysis.tracks_with_gaps,
    })


@bp.route("/projects/<project_id>/playback")
def playback(project_id: str):
    store = _store(project_id)
    t = request.args.get("t", type=int)
    if t is None:
        abort(400, description="Query parameter 't' (ms) is required")

    plan = store.frame_plan(t)
    return jsonify({
        "time": plan.time,
        "allInGap": plan.all_in_gap,
        "nextBoundary": plan.next_boundary,
        "endOfTimeline": plan.end_of_timeline,
        "activeClips": [
            {
                "clipId": a.clip.id,
                "trackId": a.track_id,
                "trackNumber": a.track_number,
                "trackType": a.track_type,
                "relativeTime": a.relative_time,
                "sourceTime": a.clip.trim_in + a.relative_time,
            }
            for a in plan.active_clips
        ],
    })


@bp.route("/projects/<project_id>/snap", methods=["POST"])
def snap(project_id: str):
    store = _store(project_id)
    data = _body()
    result = store.snap(_number(data, "position"), data.get("excludeClipId"))
    return jsonify({
        "snappedPosition": result.snapped_position,
        "indicator": _target_to_dict(result.indicator),
    })
