# imdb_ratings/__main__.py
from __future__ import annotations

import uvicorn
from rich import print as rprint

from .api import create_app
from .config import Config
from .refresh import RefreshOrchestrator, RefreshScheduler
from .store import CacheStore


def build_app(config: Config):
    store = CacheStore()
    orchestrator = RefreshOrchestrator(store, config)
    scheduler = RefreshScheduler(orchestrator, config)
    return create_app(config, store=store, orchestrator=orchestrator, scheduler=scheduler)


def main() -> None:
    cfg = Config.from_env()
    app = build_app(cfg)
    rprint(f"[green]IMDb Ratings API on http://{cfg.host}:{cfg.port}[/green]")
    rprint("   movie:   /api/rating/tt0111161")
    rprint("   episode: /api/episode/tt0903747/1/1")
    rprint(f"   refresh: '{cfg.refresh_cron}' ({cfg.refresh_timezone})")
    uvicorn.run(app, host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    main()
