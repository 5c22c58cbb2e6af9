"""Bounded linear undo history."""

import copy
from collections import deque
from dataclasses import dataclass

from reeltime.models import Track

DEFAULT_CAPACITY = 10


@dataclass(frozen=True)
class HistoryEntry:
    """A full snapshot of the composition taken before a committed change."""

    tracks: tuple[Track, ...]
    total_duration: int
    selected_clip_id: str | None

    @classmethod
    def capture(
        cls,
        tracks: list[Track],
        total_duration: int,
        selected_clip_id: str | None,
    ) -> "HistoryEntry":
        return cls(tuple(copy.deepcopy(tracks)), total_duration, selected_clip_id)

    def restore_tracks(self) -> list[Track]:
        """A fresh copy of the tracks, so the entry itself is never mutated."""
        return copy.deepcopy(list(self.tracks))


class History:
    """Fixed-capacity ring of snapshots with a cursor.

    ``cursor`` indexes the entry the next ``undo`` returns; -1 means there is
    nothing to undo. Entries after the cursor are the undone "future" and are
    dropped on the next ``record``. When full, the oldest entry falls off.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)
        self._cursor = -1

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: HistoryEntry) -> None:
        while len(self._entries) > self._cursor + 1:
            self._entries.pop()
        self._entries.append(entry)
        self._cursor = len(self._entries) - 1

    def undo(self) -> HistoryEntry | None:
        if self._cursor < 0:
            return None
        entry = self._entries[self._cursor]
        self._cursor -= 1
        return entry
