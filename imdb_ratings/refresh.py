# imdb_ratings/refresh.py
from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from croniter import croniter
from rich import print as rprint
from rich.markup import escape

from .config import Config
from .fetcher import fetch
from .models import Dataset
from .parsers import parse_episodes, parse_ratings
from .store import CacheStore
from .telemetry import RefreshStats

RATINGS_FILE = "title.ratings.tsv"
EPISODES_FILE = "title.episode.tsv"

FetchFn = Callable[..., Iterator[str]]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    PUBLISHING = "publishing"


@dataclass
class RefreshResult:
    ok: bool
    skipped: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    ratings_count: int = 0
    episodes_count: int = 0
    error: Optional[str] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "skipped": self.skipped,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "ratingsCount": self.ratings_count,
            "episodesCount": self.episodes_count,
            "error": self.error,
            "stats": self.stats,
        }


class RefreshOrchestrator:
    """
    One refresh cycle = ratings (fetch, parse), then episodes (fetch, parse),
    then a single publish of both mappings. Only one cycle runs at a time;
    a trigger while a cycle is in flight is dropped. Any failure before the
    publish leaves the store exactly as it was.
    """

    def __init__(self, store: CacheStore, config: Optional[Config] = None,
                 fetch_fn: FetchFn = fetch,
                 clock: Callable[[], datetime] = _now_utc):
        self.store = store
        self.config = config or Config()
        self.fetch_fn = fetch_fn
        self.clock = clock
        self.ratings_dataset = Dataset(RATINGS_FILE, self.config.ratings_url)
        self.episodes_dataset = Dataset(EPISODES_FILE, self.config.episodes_url)
        self.last_result: Optional[RefreshResult] = None
        self.last_success: Optional[RefreshResult] = None
        self._state = RefreshState.IDLE
        self._flight = threading.Lock()

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def running(self) -> bool:
        return self._flight.locked()

    # ---------- triggers ----------

    def refresh(self) -> RefreshResult:
        """Run a cycle on the calling thread. Returns a skipped result if one is already running."""
        if not self._flight.acquire(blocking=False):
            rprint("[yellow][Refresh] already in progress, trigger ignored[/yellow]")
            return RefreshResult(ok=False, skipped=True)
        return self._run_locked()

    def refresh_in_background(self) -> bool:
        if not self._flight.acquire(blocking=False):
            rprint("[yellow][Refresh] already in progress, trigger ignored[/yellow]")
            return False
        try:
            t = threading.Thread(target=self._run_locked, name="imdb-refresh", daemon=True)
            t.start()
        except BaseException:
            self._flight.release()
            raise
        return True

    def status(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "running": self.running,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
            "lastSuccessAt": (self.last_success.finished_at.isoformat()
                              if self.last_success and self.last_success.finished_at else None),
        }

    # ---------- cycle ----------

    def _run_locked(self) -> RefreshResult:
        try:
            result = self._run_cycle()
            self.last_result = result
            if result.ok:
                self.last_success = result
            return result
        finally:
            self._state = RefreshState.IDLE
            self._flight.release()

    def _load(self, dataset: Dataset, parser: Callable[..., dict],
              stats: RefreshStats, label: str) -> dict:
        self._state = RefreshState.FETCHING
        stats.begin(f"{label}_fetch")
        lines = iter(self.fetch_fn(dataset, data_dir=self.config.data_dir,
                                   timeout=self.config.http_timeout))
        try:
            # pulling the header forces the download before we call it parsing
            head = list(itertools.islice(lines, 1))
            self._state = RefreshState.PARSING
            stats.begin(f"{label}_parse")
            body: Iterable[str] = itertools.chain(head, lines)
            mapping = parser(body, progress_every=self.config.progress_every)
        finally:
            close = getattr(lines, "close", None)
            if close is not None:
                close()
        stats.end()
        stats.mark(label, len(mapping))
        return mapping

    def _run_cycle(self) -> RefreshResult:
        stats = RefreshStats()
        started = self.clock()
        t0 = time.monotonic()
        rprint("[bold][Refresh] starting IMDb dataset refresh[/bold]")
        try:
            ratings = self._load(self.ratings_dataset, parse_ratings, stats, "ratings")
            episodes = self._load(self.episodes_dataset, parse_episodes, stats, "episodes")
            self._state = RefreshState.PUBLISHING
            stats.begin("publish")
            snap = self.store.publish(ratings, episodes, self.clock())
            stats.end()
        except Exception as e:
            stats.end()
            msg = f"{type(e).__name__}: {e}"
            stats.add_note("error", msg)
            rprint(f"[red][Refresh] failed after {time.monotonic() - t0:.1f}s, "
                   f"keeping last snapshot: {escape(msg)}[/red]")
            return RefreshResult(ok=False, started_at=started, finished_at=self.clock(),
                                 error=msg, stats=stats.to_dict())

        stats.add_note("duration_sec", round(time.monotonic() - t0, 3))
        rprint(f"[green][Refresh] done[/green]: ratings={snap.ratings_count:,} "
               f"episodes={snap.episodes_count:,} in {time.monotonic() - t0:.1f}s")
        return RefreshResult(ok=True, started_at=started, finished_at=snap.last_updated,
                             ratings_count=snap.ratings_count,
                             episodes_count=snap.episodes_count,
                             stats=stats.to_dict())


def next_cron_run(cron_expr: str, tz_name: str, from_dt: datetime) -> datetime:
    """Next fire time of a 5-field cron expression evaluated in tz_name, returned in UTC."""
    if from_dt.tzinfo is None:
        from_dt = from_dt.replace(tzinfo=timezone.utc)
    tz = ZoneInfo(tz_name or "UTC")
    itr = croniter(cron_expr, from_dt.astimezone(tz))
    nxt = itr.get_next(datetime)
    return nxt.astimezone(timezone.utc)


class RefreshScheduler:
    """
    Background thread that keeps the cache fresh:
      - on start, refreshes right away if nothing is loaded yet
      - then fires on the cron schedule (daily by default)
      - while the cache is still empty after a failure, retries with a
        doubling delay that never goes past the next scheduled run
    """

    def __init__(self, orchestrator: RefreshOrchestrator, config: Optional[Config] = None,
                 clock: Callable[[], datetime] = _now_utc):
        self.orchestrator = orchestrator
        self.config = config or orchestrator.config
        self.clock = clock
        if not croniter.is_valid(self.config.refresh_cron):
            raise ValueError(f"Invalid cron expression: {self.config.refresh_cron}")
        self.tz = ZoneInfo(self.config.refresh_timezone)
        self._retry_delay: Optional[float] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def retry_delay(self) -> Optional[float]:
        return self._retry_delay

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="imdb-refresh-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def next_due(self, now: Optional[datetime] = None) -> datetime:
        now = now or self.clock()
        due = next_cron_run(self.config.refresh_cron, self.config.refresh_timezone, now)
        if self._retry_delay is not None:
            due = min(due, now + timedelta(seconds=self._retry_delay))
        return due

    def trigger(self) -> RefreshResult:
        result = self.orchestrator.refresh()
        if result.skipped:
            return result
        if result.ok or self.orchestrator.store.is_loaded():
            self._retry_delay = None
        elif self._retry_delay is None:
            self._retry_delay = float(self.config.retry_initial_seconds)
        else:
            self._retry_delay = min(self._retry_delay * 2, float(self.config.retry_max_seconds))
        return result

    def _loop(self) -> None:
        if self.config.refresh_on_start and not self.orchestrator.store.is_loaded():
            rprint("[cyan][Refresh] no data loaded yet, refreshing now[/cyan]")
            self.trigger()
        while not self._stop.is_set():
            now = self.clock()
            due = self.next_due(now)
            rprint(f"[Refresh] next run at {due.isoformat()}")
            if self._stop.wait(max(0.0, (due - now).total_seconds())):
                break
            rprint("[cyan][Refresh] running scheduled update of IMDb datasets[/cyan]")
            self.trigger()
