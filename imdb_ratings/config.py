# imdb_ratings/config.py
from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple


def _as_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    return s in ("1", "true", "yes", "y", "on")


def _as_int(v: Any, default: int) -> int:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default


def _as_float(v: Any, default: float) -> float:
    try:
        return float(str(v).strip())
    except (TypeError, ValueError):
        return default


def _as_str(v: Any, default: str) -> str:
    s = "" if v is None else str(v).strip()
    return s or default


class Config:
    """
    Simple config holder that can be constructed from environment variables.
    - Attribute access: cfg.key
    - Mapping access:   cfg["key"], cfg.get("key", default)
    """

    # Defaults used if no environment value is present
    _DEFAULTS: Dict[str, Any] = {
        # dataset sources
        "ratings_url": "https://datasets.imdbws.com/title.ratings.tsv.gz",
        "episodes_url": "https://datasets.imdbws.com/title.episode.tsv.gz",
        "data_dir": "data",

        # network
        "http_connect_timeout": 10.0,
        "http_read_timeout": 120.0,

        # refresh schedule (daily at 02:00)
        "refresh_cron": "0 2 * * *",
        "refresh_timezone": "UTC",
        "refresh_on_start": True,
        "retry_initial_seconds": 300,
        "retry_max_seconds": 4 * 3600,

        # parser breadcrumbs
        "progress_every": 100_000,

        # query surface
        "host": "0.0.0.0",
        "port": 3001,
    }

    # Mapping of ENV -> internal key
    _ENV_MAP: Dict[str, str] = {
        "RATINGS_URL": "ratings_url",
        "EPISODES_URL": "episodes_url",
        "DATA_DIR": "data_dir",

        "HTTP_CONNECT_TIMEOUT": "http_connect_timeout",
        "HTTP_READ_TIMEOUT": "http_read_timeout",

        "REFRESH_CRON": "refresh_cron",
        "REFRESH_TIMEZONE": "refresh_timezone",
        "REFRESH_ON_START": "refresh_on_start",
        "RETRY_INITIAL_SECONDS": "retry_initial_seconds",
        "RETRY_MAX_SECONDS": "retry_max_seconds",

        "PROGRESS_EVERY": "progress_every",

        "HOST": "host",
        "PORT": "port",
    }

    # Which keys should be cast to which types
    _CASTERS: Dict[str, Any] = {
        "ratings_url": _as_str,
        "episodes_url": _as_str,
        "data_dir": _as_str,
        "http_connect_timeout": _as_float,
        "http_read_timeout": _as_float,
        "refresh_cron": _as_str,
        "refresh_timezone": _as_str,
        "refresh_on_start": _as_bool,
        "retry_initial_seconds": _as_int,
        "retry_max_seconds": _as_int,
        "progress_every": _as_int,
        "host": _as_str,
        "port": _as_int,
    }

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        # merge defaults with provided data
        merged = dict(self._DEFAULTS)
        merged.update(data or {})
        for k, caster in self._CASTERS.items():
            merged[k] = caster(merged.get(k), self._DEFAULTS[k])
        if merged["progress_every"] <= 0:
            merged["progress_every"] = self._DEFAULTS["progress_every"]
        if merged["retry_initial_seconds"] <= 0:
            merged["retry_initial_seconds"] = self._DEFAULTS["retry_initial_seconds"]
        merged["retry_max_seconds"] = max(merged["retry_max_seconds"], merged["retry_initial_seconds"])
        self._d = merged

    # --- construction helpers ---

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Config":
        """
        Build Config from process environment (plus defaults).
        Only whitelisted env vars are read via _ENV_MAP.
        """
        env = environ if environ is not None else os.environ
        data: Dict[str, Any] = {}
        for env_key, cfg_key in cls._ENV_MAP.items():
            if env_key in env:
                data[cfg_key] = env[env_key]
        return cls(data)

    # --- derived values ---

    @property
    def http_timeout(self) -> Tuple[float, float]:
        return (self._d["http_connect_timeout"], self._d["http_read_timeout"])

    # --- dict-like API ---

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._d)

    def get(self, key: str, default: Any = None) -> Any:
        return self._d.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._d[key]

    def __contains__(self, key: str) -> bool:
        return key in self._d

    # --- attribute API ---

    def __getattr__(self, key: str) -> Any:
        # _d is looked up through __dict__ so a half-built instance does not recurse
        d = self.__dict__.get("_d")
        if d is None or key not in d:
            raise AttributeError(key)
        return d[key]

    def __repr__(self) -> str:
        return f"Config({self._d!r})"
