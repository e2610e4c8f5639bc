# imdb_ratings/api.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Config
from .errors import InvalidArgument, NotFound
from .lookup import LookupEngine
from .refresh import RefreshOrchestrator, RefreshScheduler
from .store import CacheStore

SERVICE_NAME = "IMDb Ratings API"

_CAMEL = {
    "title_id": "titleId",
    "series_id": "seriesId",
    "episode_id": "episodeId",
}


class TitleRatingResponse(BaseModel):
    titleId: str
    rating: str
    voteCount: str
    kind: Literal["direct"] = "direct"


class EpisodeRatingResponse(BaseModel):
    seriesId: str
    season: str
    episode: str
    episodeId: str
    rating: str
    voteCount: str
    kind: Literal["episode"] = "episode"


class RefreshTriggerResponse(BaseModel):
    started: bool
    running: bool


router = APIRouter(tags=["ratings"])


def _lookup(request: Request) -> LookupEngine:
    return request.app.state.lookup


def _store(request: Request) -> CacheStore:
    return request.app.state.store


def _iso(dt) -> Optional[str]:
    return dt.isoformat() if dt else None


@router.get("/api/rating/{title_id}", response_model=TitleRatingResponse)
def title_rating(title_id: str, request: Request):
    rec = _lookup(request).lookup_title(title_id)
    return TitleRatingResponse(titleId=rec.title_id, rating=rec.rating, voteCount=rec.votes)


@router.get("/api/episode/{series_id}/{season}/{episode}", response_model=EpisodeRatingResponse)
def episode_rating(series_id: str, season: str, episode: str, request: Request):
    hit = _lookup(request).lookup_episode(series_id, season, episode)
    return EpisodeRatingResponse(
        seriesId=series_id,
        season=season,
        episode=episode,
        episodeId=hit.episode_id,
        rating=hit.record.rating,
        voteCount=hit.record.votes,
    )


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    snap = _store(request).current_snapshot()
    orchestrator: Optional[RefreshOrchestrator] = request.app.state.orchestrator
    return {
        "status": "healthy",
        "dataLoaded": snap.loaded,
        "lastUpdated": _iso(snap.last_updated),
        "ratingsCount": snap.ratings_count,
        "episodesCount": snap.episodes_count,
        "refresh": orchestrator.status() if orchestrator else None,
    }


@router.get("/")
def service_status(request: Request) -> Dict[str, Any]:
    snap = _store(request).current_snapshot()
    return {
        "service": SERVICE_NAME,
        "status": "active" if snap.loaded else "loading",
        "lastUpdated": _iso(snap.last_updated),
        "data": {
            "ratings": snap.ratings_count,
            "episodes": snap.episodes_count,
        },
        "endpoints": {
            "movieRating": "/api/rating/{imdb_id}",
            "episodeRating": "/api/episode/{series_id}/{season}/{episode}",
            "health": "/health",
            "refresh": "/api/refresh",
        },
        "examples": {
            "movie": "/api/rating/tt0111161",
            "episode": "/api/episode/tt0903747/1/1",
        },
    }


@router.post("/api/refresh", status_code=status.HTTP_202_ACCEPTED,
             response_model=RefreshTriggerResponse)
def trigger_refresh(request: Request):
    orchestrator: Optional[RefreshOrchestrator] = request.app.state.orchestrator
    if orchestrator is None:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            content={"error": "Refresh is not configured"})
    started = orchestrator.refresh_in_background()
    return RefreshTriggerResponse(started=started, running=orchestrator.running)


def _not_found_payload(exc: NotFound) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": str(exc), "reason": exc.reason}
    for k, v in exc.context.items():
        body[_CAMEL.get(k, k)] = v
    return body


def create_app(config: Optional[Config] = None,
               store: Optional[CacheStore] = None,
               orchestrator: Optional[RefreshOrchestrator] = None,
               scheduler: Optional[RefreshScheduler] = None) -> FastAPI:
    """
    Build the query surface. The scheduler (if any) is started and stopped
    with the application lifespan; everything else is plain state on the app.
    """
    config = config or Config.from_env()
    store = store or CacheStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await run_in_threadpool(scheduler.stop)

    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.lookup = LookupEngine(store)
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler

    @app.exception_handler(InvalidArgument)
    async def _invalid_argument(request: Request, exc: InvalidArgument):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                            content={"error": str(exc), "reason": "invalid_argument"})

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_not_found_payload(exc))

    app.include_router(router)
    return app
