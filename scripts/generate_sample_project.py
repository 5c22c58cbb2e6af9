#!/usr/bin/env python3
"""Generate a sample reeltime project for manual testing of the CLI and API.

Produces a two-track project with gaps at every position:
  video  Track 1   0-3s intro.mp4 | 3-5s gap | 5-9s main.mp4 (trimmed) | 12-15s outro.mp4
  audio  Track 2   2-20s music.wav (fades in and out)
"""

import sys
from pathlib import Path

from reeltime.models import Clip
from reeltime.project import save_project
from reeltime.store import CompositionStore


def generate_sample_project(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    store = CompositionStore()
    video = store.tracks[0].id
    audio = store.add_track("audio", "Music")

    store.add_clip(video, Clip("intro.mp4", start_time=0, source_duration=3000))
    store.add_clip(video, Clip("main.mp4", start_time=5000, source_duration=10000, trim_in=2000, trim_out=6000))
    store.add_clip(video, Clip("outro.mp4", start_time=12000, source_duration=3000, fade_out=500))
    store.add_clip(audio, Clip("music.wav", start_time=2000, source_duration=18000, fade_in=1000, fade_out=2000))

    out = save_project(store.to_project(), output)
    print(f"Generated: {out} ({store.total_duration} ms)")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("sample_project.json")
    generate_sample_project(out)
