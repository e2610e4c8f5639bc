# imdb_ratings/fetcher.py
from __future__ import annotations

import gzip
import zlib
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import requests
from rich import print as rprint
from rich.markup import escape

from .errors import FetchError
from .models import Dataset

UA = {"User-Agent": "imdb-ratings/1.0 (+dataset refresh)"}
CHUNK_SIZE = 1 << 20

Timeout = Union[float, Tuple[float, float]]


def _download(url: str, dest: Path, timeout: Timeout) -> int:
    """
    Stream the remote payload into dest chunk by chunk.
    Returns the number of bytes written.
    """
    rprint(f"[cyan][IMDb TSV] GET {escape(url)}[/cyan]")
    written = 0
    with requests.get(url, headers=UA, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        with dest.open("wb") as fh:
            for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    fh.write(chunk)
                    written += len(chunk)
    return written


def _iter_gz_lines(path: Path) -> Iterator[str]:
    with gzip.open(path, "rt", encoding="utf-8", errors="replace", newline="") as text:
        for line in text:
            yield line.rstrip("\r\n")


def fetch(dataset: Dataset, data_dir: Union[str, Path] = "data",
          timeout: Timeout = (10.0, 120.0)) -> Iterator[str]:
    """
    Download a gzip TSV and yield its decompressed lines, one at a time.

    The compressed file is kept under data_dir only for the life of the
    iteration and is removed when it ends, fails or is closed early.
    Network and gzip errors surface as FetchError.
    """
    work = Path(data_dir)
    gz_path: Optional[Path] = None
    try:
        work.mkdir(parents=True, exist_ok=True)
        gz_path = work / f"{dataset.name}.gz"
        size = _download(dataset.url, gz_path, timeout)
        rprint(f"[cyan][IMDb TSV] {dataset.name}: {size:,} bytes, extracting[/cyan]")
        yield from _iter_gz_lines(gz_path)
    except requests.RequestException as e:
        raise FetchError(f"{dataset.name}: download failed: {e}") from e
    except (OSError, EOFError, zlib.error) as e:
        # gzip.BadGzipFile is an OSError
        raise FetchError(f"{dataset.name}: unreadable payload: {e}") from e
    finally:
        if gz_path is not None:
            gz_path.unlink(missing_ok=True)
