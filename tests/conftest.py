import threading
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import pytest

from taste_mixer.core import Credentials
from taste_mixer.spotify import CredentialStore, SpotifyGateway, TokenManager

API_BASE = "https://api.spotify.com/v1"
TOKEN_URL = "https://accounts.spotify.com/api/token"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON payload")
        return self._payload


class FakeSession:
    """
    Minimal stand-in for requests.Session.

    `handler(method, path, kwargs)` returns a FakeResponse (or raises);
    `path` is the URL path relative to the API base, or "TOKEN" for the
    accounts token endpoint.
    """

    def __init__(self, handler: Callable[[str, str, Dict[str, Any]], FakeResponse]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def _record(self, method: str, url: str, kwargs: Dict[str, Any]) -> str:
        if url == TOKEN_URL:
            path = "TOKEN"
        else:
            path = urlparse(url).path.replace("/v1", "", 1)
        with self._lock:
            self.calls.append({"method": method, "path": path, **kwargs})
        return path

    def post(self, url: str, **kwargs) -> FakeResponse:
        path = self._record("POST", url, kwargs)
        return self.handler("POST", path, kwargs)

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        path = self._record(method, url, kwargs)
        return self.handler(method, path, kwargs)

    def calls_to(self, path: str, method: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            c
            for c in self.calls
            if c["path"] == path and (method is None or c["method"] == method)
        ]


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def token_response(access: str = "new-access", refresh: Optional[str] = None, expires_in: int = 3600):
    payload: Dict[str, Any] = {
        "access_token": access,
        "token_type": "Bearer",
        "expires_in": expires_in,
    }
    if refresh:
        payload["refresh_token"] = refresh
    return FakeResponse(200, payload)


def spotify_track(track_id: str, name: Optional[str] = None, artist: str = "Artist") -> Dict[str, Any]:
    return {
        "id": track_id,
        "name": name or f"Track {track_id}",
        "artists": [{"name": artist}],
        "album": {"images": [{"url": f"https://img/{track_id}.jpg"}]},
        "duration_ms": 180000,
        "uri": f"spotify:track:{track_id}",
    }


def audio_features(track_id: str, **values: float) -> Dict[str, Any]:
    payload = {
        "id": track_id,
        "energy": 0.5,
        "valence": 0.5,
        "danceability": 0.5,
        "acousticness": 0.3,
    }
    payload.update(values)
    return payload


def build_gateway(
    handler: Callable[[str, str, Dict[str, Any]], FakeResponse],
    credentials: Optional[Credentials] = None,
    clock: Optional[FakeClock] = None,
    store: Optional[CredentialStore] = None,
):
    clock = clock or FakeClock()
    store = store or CredentialStore()
    if credentials is not None:
        store.replace(credentials)
    session = FakeSession(handler)
    manager = TokenManager(
        store,
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://127.0.0.1:8888/auth/callback",
        session=session,
        clock=clock,
    )
    gateway = SpotifyGateway(manager, session=session)
    return gateway, session, manager, store, clock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def valid_credentials(clock: FakeClock) -> Credentials:
    return Credentials(
        access_token="access-1",
        refresh_token="refresh-1",
        expires_at=clock.now + 3600,
    )
