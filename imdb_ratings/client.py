# imdb_ratings/client.py
from __future__ import annotations

from typing import Any, Dict, Optional

import requests
from rich import print as rprint
from rich.markup import escape

UA = {"User-Agent": "imdb-ratings-client/1.0"}


class RatingsClient:
    """
    Consumer side of the ratings API, for the addon that shows ratings.

    resolve() implements the series fallback: when an episode has no rating
    (not mapped, or mapped but unrated) it asks for the series itself and
    tags the answer kind="series_fallback".
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, headers=UA, timeout=self.timeout)
        except requests.RequestException as e:
            rprint(f"[red][Client] GET {escape(url)} failed: {escape(str(e))}[/red]")
            return None
        if r.status_code in (400, 404):
            return None
        if r.status_code != 200:
            rprint(f"[yellow][Client] GET {escape(url)} -> {r.status_code}[/yellow]")
            return None
        try:
            return r.json()
        except ValueError:
            return None

    def rating(self, title_id: str) -> Optional[Dict[str, Any]]:
        return self._get(f"/api/rating/{title_id}")

    def episode_rating(self, series_id: str, season: str, episode: str) -> Optional[Dict[str, Any]]:
        return self._get(f"/api/episode/{series_id}/{season}/{episode}")

    def resolve(self, media_type: str, item_id: str) -> Optional[Dict[str, Any]]:
        """
        media_type is 'movie' or 'series'. Series ids come as 'tt123:1:2'.
        Returns the API payload (kind direct/episode/series_fallback) or None.
        """
        if media_type == "movie":
            return self.rating(item_id)
        if media_type != "series":
            return None

        parts = item_id.split(":")
        if len(parts) != 3 or not all(parts):
            return None
        series_id, season, episode = parts

        data = self.episode_rating(series_id, season, episode)
        if data is not None:
            return data

        data = self.rating(series_id)
        if data is None:
            return None
        data = dict(data)
        data["kind"] = "series_fallback"
        data["seriesId"] = series_id
        return data
