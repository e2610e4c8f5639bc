from __future__ import annotations

from .config import Config
from .errors import FetchError, InvalidArgument, NotFound, RatingsError
from .lookup import LookupEngine
from .models import CacheSnapshot, Dataset, EpisodeRating, RatingRecord
from .refresh import RefreshOrchestrator, RefreshResult, RefreshScheduler
from .store import CacheStore

__version__ = "1.0.0"

__all__ = [
    "CacheSnapshot",
    "CacheStore",
    "Config",
    "Dataset",
    "EpisodeRating",
    "FetchError",
    "InvalidArgument",
    "LookupEngine",
    "NotFound",
    "RatingRecord",
    "RatingsError",
    "RefreshOrchestrator",
    "RefreshResult",
    "RefreshScheduler",
]
