# imdb_ratings/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple

TITLE_PREFIX = "tt"
NULL_SENTINEL = "\\N"

# (series_id, season, episode) exactly as they appear in the dataset
EpisodeKey = Tuple[str, str, str]


class RatingRecord(NamedTuple):
    # a tuple per title keeps millions of entries cheap
    title_id: str
    rating: str
    votes: str


class EpisodeRating(NamedTuple):
    episode_id: str
    record: RatingRecord


@dataclass(frozen=True)
class Dataset:
    """Remote gzip TSV resource: a short name (used for the temp file) and its URL."""
    name: str
    url: str


@dataclass(frozen=True)
class CacheSnapshot:
    ratings: Mapping[str, RatingRecord]
    episodes: Mapping[EpisodeKey, str]
    last_updated: Optional[datetime] = None
    ratings_count: int = 0
    episodes_count: int = 0

    @classmethod
    def empty(cls) -> "CacheSnapshot":
        return cls(ratings=MappingProxyType({}), episodes=MappingProxyType({}))

    @property
    def loaded(self) -> bool:
        return self.ratings_count > 0 and self.episodes_count > 0


def is_title_id(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith(TITLE_PREFIX)
