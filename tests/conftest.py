"""Shared test fixtures."""

from pathlib import Path

import pytest

from reeltime.models import Clip, Timeline, Track
from reeltime.project import load_project
from reeltime.store import CompositionStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_clip(start: int, duration: int, clip_id: str | None = None, **kwargs) -> Clip:
    """An untrimmed clip of ``duration`` ms placed at ``start``."""
    source_path = kwargs.pop("source_path", "clip.mp4")
    clip = Clip(source_path=source_path, start_time=start, source_duration=duration, **kwargs)
    if clip_id is not None:
        clip.id = clip_id
    return clip


def make_track(*clips: Clip, track_id: str = "t1", track_type: str = "video", number: int = 1) -> Track:
    return Track(id=track_id, track_type=track_type, track_number=number, label=f"Track {number}", clips=list(clips))


@pytest.fixture
def sample_project_path() -> Path:
    return FIXTURES_DIR / "sample_project.json"


@pytest.fixture
def sample_store(sample_project_path) -> CompositionStore:
    return CompositionStore.from_project(load_project(sample_project_path))


@pytest.fixture
def three_clip_track() -> Track:
    """[0,5000) [5000,8000) [8000,10000), touching end to end."""
    return make_track(
        make_clip(0, 5000, "a"),
        make_clip(5000, 3000, "b"),
        make_clip(8000, 2000, "c"),
    )


@pytest.fixture
def store() -> CompositionStore:
    return CompositionStore(Timeline(tracks=[make_track(track_id="v1")]))
