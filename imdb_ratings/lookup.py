# imdb_ratings/lookup.py
from __future__ import annotations

from .errors import (
    EPISODE_NOT_MAPPED,
    EPISODE_NOT_RATED,
    TITLE_NOT_RATED,
    InvalidArgument,
    NotFound,
)
from .models import EpisodeRating, RatingRecord, TITLE_PREFIX, is_title_id
from .store import CacheStore


class LookupEngine:
    """
    Point lookups over the published snapshot.
    Every call grabs the snapshot once, so an episode is always resolved
    against the ratings of the same refresh.
    """

    def __init__(self, store: CacheStore):
        self.store = store

    def lookup_title(self, title_id: str) -> RatingRecord:
        if not is_title_id(title_id):
            raise InvalidArgument(f'Invalid ID. Must start with "{TITLE_PREFIX}"', title_id)
        snap = self.store.current_snapshot()
        rec = snap.ratings.get(title_id)
        if rec is None:
            raise NotFound(TITLE_NOT_RATED, "Rating not found for the specified ID", title_id=title_id)
        return rec

    def lookup_episode(self, series_id: str, season: str, episode: str) -> EpisodeRating:
        if not is_title_id(series_id):
            raise InvalidArgument(f'Invalid series ID. Must start with "{TITLE_PREFIX}"', series_id)
        snap = self.store.current_snapshot()
        episode_id = snap.episodes.get((series_id, season, episode))
        if episode_id is None:
            raise NotFound(
                EPISODE_NOT_MAPPED, "Episode not found",
                series_id=series_id, season=season, episode=episode,
            )
        rec = snap.ratings.get(episode_id)
        if rec is None:
            raise NotFound(EPISODE_NOT_RATED, "Rating not found for episode", episode_id=episode_id)
        return EpisodeRating(episode_id, rec)
