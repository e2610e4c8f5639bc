# imdb_ratings/parsers.py
"""
Line parsers for the two IMDb dumps.

    title.ratings.tsv   tconst  averageRating  numVotes
    title.episode.tsv   tconst  parentTconst   seasonNumber  episodeNumber

Each line is validated on its own by a pure function that returns the parsed
value or None; the collectors fold the accepted values into a fresh dict.
Bad lines are dropped without a trace.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, Tuple

from rich import print as rprint

from .models import NULL_SENTINEL, EpisodeKey, RatingRecord

DEFAULT_PROGRESS_EVERY = 100_000
_ONE_DECIMAL = Decimal("0.1")


def _fields(line: str) -> list:
    return line.rstrip("\r\n").split("\t")


def _present(value: Optional[str]) -> bool:
    return bool(value)


def _field(parts: list, i: int) -> str:
    return parts[i] if i < len(parts) else ""


def format_rating(raw: str) -> Optional[str]:
    """
    '8' -> '8.0', '7.25' -> '7.3'. None for anything that isn't a finite number.
    Ties on the exact float value round up, as JavaScript's toFixed(1) does.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    try:
        return str(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # too many digits for the decimal context, e.g. '1e30'
        return None


def parse_rating_line(line: str) -> Optional[RatingRecord]:
    parts = _fields(line)
    title_id = _field(parts, 0)
    raw_rating = _field(parts, 1)
    votes = _field(parts, 2)
    if not _present(title_id) or not _present(raw_rating) or raw_rating == NULL_SENTINEL:
        return None
    rating = format_rating(raw_rating)
    if rating is None:
        return None
    if not _present(votes) or votes == NULL_SENTINEL:
        votes = "0"
    return RatingRecord(title_id, rating, votes)


def parse_episode_line(line: str) -> Optional[Tuple[EpisodeKey, str]]:
    parts = _fields(line)
    episode_id, series_id, season, episode = (_field(parts, i) for i in range(4))
    if not all(_present(v) for v in (episode_id, series_id, season, episode)):
        return None
    if season == NULL_SENTINEL or episode == NULL_SENTINEL:
        return None
    return (series_id, season, episode), episode_id


def _data_lines(lines: Iterable[str]) -> Iterable[str]:
    it = iter(lines)
    next(it, None)  # header
    return it


def parse_ratings(lines: Iterable[str],
                  progress_every: int = DEFAULT_PROGRESS_EVERY) -> Dict[str, RatingRecord]:
    rprint("[IMDb TSV] processing ratings dataset")
    out: Dict[str, RatingRecord] = {}
    accepted = 0
    for line in _data_lines(lines):
        rec = parse_rating_line(line)
        if rec is None:
            continue
        out[rec.title_id] = rec
        accepted += 1
        if accepted % progress_every == 0:
            rprint(f"   processed {accepted:,} ratings...")
    rprint(f"[green][IMDb TSV] ratings parsed[/green]: {len(out):,}")
    return out


def parse_episodes(lines: Iterable[str],
                   progress_every: int = DEFAULT_PROGRESS_EVERY) -> Dict[EpisodeKey, str]:
    rprint("[IMDb TSV] processing episodes dataset")
    out: Dict[EpisodeKey, str] = {}
    accepted = 0
    for line in _data_lines(lines):
        parsed = parse_episode_line(line)
        if parsed is None:
            continue
        key, episode_id = parsed
        # duplicates: the later line wins
        out[key] = episode_id
        accepted += 1
        if accepted % progress_every == 0:
            rprint(f"   processed {accepted:,} episodes...")
    rprint(f"[green][IMDb TSV] episode mappings parsed[/green]: {len(out):,}")
    return out
