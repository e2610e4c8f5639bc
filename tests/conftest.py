from __future__ import annotations

import gzip
from typing import Dict, List

import pytest

from imdb_ratings.config import Config
from imdb_ratings.store import CacheStore

RATINGS_LINES = [
    "tconst\taverageRating\tnumVotes",
    "tt0111161\t9.3\t2800000\t0",
    "tt0903747\t9.5\t2100000",
    "tt0579539\t8.6\t45000",
    "tt0000001\t5.7\t",
]

EPISODE_LINES = [
    "tconst\tparentTconst\tseasonNumber\tepisodeNumber",
    "tt0579539\ttt0903747\t1\t1",
    "tt0999999\ttt0903747\t1\t2",
    "tt0000002\ttt0000003\t\\N\t\\N",
]


def tsv_gz(lines: List[str]) -> bytes:
    return gzip.compress(("\n".join(lines) + "\n").encode("utf-8"))


def make_fetch(datasets: Dict[str, List[str]], calls: list | None = None):
    """Stand-in for fetcher.fetch keyed by dataset name."""
    def _fetch(dataset, data_dir=None, timeout=None):
        if calls is not None:
            calls.append(dataset.name)
        lines = datasets[dataset.name]
        if isinstance(lines, Exception):
            raise lines
        for line in lines:
            yield line
    return _fetch


@pytest.fixture
def config(tmp_path) -> Config:
    return Config({
        "data_dir": str(tmp_path / "data"),
        "ratings_url": "https://example.test/title.ratings.tsv.gz",
        "episodes_url": "https://example.test/title.episode.tsv.gz",
        "progress_every": 2,
    })


@pytest.fixture
def store() -> CacheStore:
    return CacheStore()


@pytest.fixture
def loaded_store(store: CacheStore) -> CacheStore:
    from imdb_ratings.parsers import parse_episodes, parse_ratings

    store.publish(parse_ratings(RATINGS_LINES), parse_episodes(EPISODE_LINES))
    return store
