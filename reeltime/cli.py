"""Thin CLI entry point: loads a project file and calls the store."""

import argparse
import logging
import sys
from pathlib import Path

from reeltime.intervals import clip_end
from reeltime.project import load_project, save_project
from reeltime.store import CompositionStore
from reeltime.timeutils import format_timeline_time


def _load(path: Path) -> CompositionStore:
    try:
        return CompositionStore.from_project(load_project(path))
    except FileNotFoundError:
        print(f"Error: project file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: invalid project {path}: {e}", file=sys.stderr)
        sys.exit(1)


def _save(store: CompositionStore, args: argparse.Namespace) -> None:
    out = save_project(store.to_project(), args.output or args.project)
    print(f"Saved: {out}")


def cmd_inspect(args: argparse.Namespace) -> None:
    store = _load(args.project)
    tracks = store.tracks
    print(f"{args.project}: {len(tracks)} track(s), duration {format_timeline_time(store.total_duration)}")
    for track in tracks:
        print(f"  [{track.track_number}] {track.label} ({track.track_type}, id {track.id})")
        for clip in track.clips:
            print(
                f"      {format_timeline_time(clip.start_time)} -> {format_timeline_time(clip_end(clip))}"
                f"  {clip.id}  {clip.source_path}"
            )


def cmd_gaps(args: argparse.Namespace) -> None:
    analysis = _load(args.project).gaps()
    if not analysis.has_gaps:
        print("No gaps.")
        return
    print(f"{analysis.total_gaps} gap(s) on {len(analysis.tracks_with_gaps)} track(s):")
    for gap in analysis.gaps:
        print(
            f"  {gap.track_id}  {gap.position:<6}  "
            f"{format_timeline_time(gap.start_time)} -> {format_timeline_time(gap.end_time)}"
            f"  ({gap.duration} ms)"
        )


def cmd_split(args: argparse.Namespace) -> None:
    store = _load(args.project)
    halves = store.split_clip(args.clip_id, args.time)
    if halves is None:
        print(f"Error: cannot split clip {args.clip_id} at {args.time} ms.", file=sys.stderr)
        sys.exit(1)
    print(f"Split {args.clip_id} -> {halves[0]}, {halves[1]}")
    _save(store, args)


def cmd_delete(args: argparse.Namespace) -> None:
    store = _load(args.project)
    if not store.remove_clip(args.clip_id, ripple=args.ripple):
        print(f"Error: no clip with id {args.clip_id}.", file=sys.stderr)
        sys.exit(1)
    print(f"Deleted {args.clip_id}{' (ripple)' if args.ripple else ''}")
    _save(store, args)


def cmd_serve(args: argparse.Namespace) -> None:
    from reeltime.web import create_app

    projects = {}
    if args.project:
        projects[args.project.stem] = _load(args.project)
    app = create_app(projects)
    print(f"reeltime API: http://{args.host}:{args.port}/api")
    for project_id in projects:
        print(f"  loaded project '{project_id}'")
    app.run(host=args.host, port=args.port, debug=False)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="reeltime",
        description="reeltime: multi-track timeline editing for non-linear video projects.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    inspect = sub.add_parser("inspect", help="List tracks and clips of a project")
    inspect.add_argument("project", type=Path, help="Project JSON file")
    inspect.set_defaults(func=cmd_inspect)

    gaps = sub.add_parser("gaps", help="Report empty stretches on every track")
    gaps.add_argument("project", type=Path, help="Project JSON file")
    gaps.set_defaults(func=cmd_gaps)

    split = sub.add_parser("split", help="Split a clip at a timeline position")
    split.add_argument("project", type=Path, help="Project JSON file")
    split.add_argument("clip_id", help="Id of the clip to split")
    split.add_argument("time", type=int, help="Split position in ms on the timeline")
    split.add_argument("--output", "-o", type=Path, help="Write the result here instead of in place")
    split.set_defaults(func=cmd_split)

    delete = sub.add_parser("delete", help="Delete a clip")
    delete.add_argument("project", type=Path, help="Project JSON file")
    delete.add_argument("clip_id", help="Id of the clip to delete")
    delete.add_argument("--ripple", action="store_true", help="Shift later clips left to close the gap")
    delete.add_argument("--output", "-o", type=Path, help="Write the result here instead of in place")
    delete.set_defaults(func=cmd_delete)

    serve = sub.add_parser("serve", help="Launch the JSON editing API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    serve.add_argument("--project", type=Path, help="Project JSON file to preload")
    serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)
