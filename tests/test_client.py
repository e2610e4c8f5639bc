import requests

from imdb_ratings.client import RatingsClient


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.payload = payload

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        hit = self.routes.get(url)
        if isinstance(hit, Exception):
            raise hit
        return hit or FakeResponse(404, {"error": "not found"})


BASE = "http://ratings.local"
DIRECT = {"titleId": "tt0903747", "rating": "9.5", "voteCount": "2100000", "kind": "direct"}
EPISODE = {"seriesId": "tt0903747", "season": "1", "episode": "1", "episodeId": "tt0579539",
           "rating": "8.6", "voteCount": "45000", "kind": "episode"}


def test_movie_lookup():
    session = FakeSession({f"{BASE}/api/rating/tt0903747": FakeResponse(200, DIRECT)})
    client = RatingsClient(BASE + "/", session=session)
    assert client.resolve("movie", "tt0903747") == DIRECT


def test_episode_hit_has_no_fallback():
    session = FakeSession({f"{BASE}/api/episode/tt0903747/1/1": FakeResponse(200, EPISODE)})
    client = RatingsClient(BASE, session=session)
    assert client.resolve("series", "tt0903747:1:1") == EPISODE
    assert session.calls == [f"{BASE}/api/episode/tt0903747/1/1"]


def test_series_fallback_when_episode_missing():
    session = FakeSession({f"{BASE}/api/rating/tt0903747": FakeResponse(200, DIRECT)})
    client = RatingsClient(BASE, session=session)
    data = client.resolve("series", "tt0903747:9:9")
    assert data["kind"] == "series_fallback"
    assert data["rating"] == "9.5"
    assert data["seriesId"] == "tt0903747"
    assert session.calls == [
        f"{BASE}/api/episode/tt0903747/9/9",
        f"{BASE}/api/rating/tt0903747",
    ]


def test_nothing_found():
    client = RatingsClient(BASE, session=FakeSession({}))
    assert client.resolve("series", "tt1:1:1") is None
    assert client.resolve("movie", "tt1") is None


def test_unsupported_type_and_bad_ids():
    session = FakeSession({})
    client = RatingsClient(BASE, session=session)
    assert client.resolve("channel", "tt1") is None
    assert client.resolve("series", "tt1:1") is None
    assert session.calls == []


def test_network_error_is_none():
    session = FakeSession({f"{BASE}/api/rating/tt1": requests.ConnectionError("refused")})
    assert RatingsClient(BASE, session=session).rating("tt1") is None


def test_server_error_is_none():
    session = FakeSession({f"{BASE}/api/rating/tt1": FakeResponse(500)})
    assert RatingsClient(BASE, session=session).rating("tt1") is None


def test_series_id_without_episode_is_none():
    session = FakeSession({f"{BASE}/api/rating/tt0903747": FakeResponse(200, DIRECT)})
    client = RatingsClient(BASE, session=session)
    assert client.resolve("series", "tt0903747") is None
    assert session.calls == []
