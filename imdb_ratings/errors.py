# imdb_ratings/errors.py
from __future__ import annotations

from typing import Any, Dict

TITLE_NOT_RATED = "title_not_rated"
EPISODE_NOT_MAPPED = "episode_not_mapped"
EPISODE_NOT_RATED = "episode_not_rated"


class RatingsError(Exception):
    """Base class for everything this package raises on purpose."""


class InvalidArgument(RatingsError):
    """A lookup was called with an identifier that does not look like a title id."""

    def __init__(self, message: str, value: str = ""):
        super().__init__(message)
        self.value = value


class NotFound(RatingsError):
    """
    A well-formed lookup with no answer. `reason` tells the three cases apart:
      - title_not_rated:    direct title has no rating
      - episode_not_mapped: (series, season, episode) is unknown
      - episode_not_rated:  episode is known but has no rating
    Extra keyword context (series_id, episode_id, ...) is kept in `context`.
    """

    def __init__(self, reason: str, message: str = "", **context: Any):
        super().__init__(message or reason)
        self.reason = reason
        self.context: Dict[str, Any] = context


class FetchError(RatingsError):
    """Network or decompression failure while pulling a dataset."""
