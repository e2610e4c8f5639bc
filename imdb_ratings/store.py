# imdb_ratings/store.py
from __future__ import annotations

import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Optional

from .models import CacheSnapshot, EpisodeKey, RatingRecord


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore:
    """
    Holds the published CacheSnapshot.

    Readers take the current reference and work on it; a refresh builds new
    dicts elsewhere and swaps a whole new snapshot in. A snapshot is never
    mutated after publish, so a reader holding an old one keeps seeing a
    consistent pair of mappings until it lets go of it.
    """

    def __init__(self) -> None:
        self._snapshot = CacheSnapshot.empty()
        self._publish_lock = threading.Lock()

    def current_snapshot(self) -> CacheSnapshot:
        # single reference read, no lock needed
        return self._snapshot

    def publish(self,
                ratings: Dict[str, RatingRecord],
                episodes: Dict[EpisodeKey, str],
                timestamp: Optional[datetime] = None) -> CacheSnapshot:
        snap = CacheSnapshot(
            ratings=MappingProxyType(ratings),
            episodes=MappingProxyType(episodes),
            last_updated=timestamp or _now_utc(),
            ratings_count=len(ratings),
            episodes_count=len(episodes),
        )
        with self._publish_lock:
            self._snapshot = snap
        return snap

    def is_loaded(self) -> bool:
        return self._snapshot.loaded
