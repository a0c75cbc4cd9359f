"""Single chokepoint for authenticated Spotify Web API calls.

Ordinary failures never raise across this boundary: callers get a
GatewayResult (or None from `request`) and treat it as "unavailable".
A 401 triggers exactly one token refresh and one retry of the same request.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from taste_mixer.config import (
    ERROR_DETAIL_MAX_CHARS,
    HTTP_TIMEOUT_SECONDS,
    SPOTIFY_API_BASE,
)
from taste_mixer.core import log_warning

from .auth import TokenManager


@dataclass
class GatewayResult:
    status: Optional[int]
    data: Optional[Dict[str, Any]] = None
    detail: str = ""
    reauth_required: bool = False

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 300


class SpotifyGateway:
    def __init__(
        self,
        token_manager: TokenManager,
        session: Optional[requests.Session] = None,
        base_url: str = SPOTIFY_API_BASE,
    ):
        self.token_manager = token_manager
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    def _send(
        self,
        token: str,
        method: str,
        url: str,
        body: Optional[Dict[str, Any]],
        params: Optional[Dict[str, Any]],
    ) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        return self.session.request(
            method,
            url,
            headers=headers,
            json=body,
            params=params,
            timeout=HTTP_TIMEOUT_SECONDS,
        )

    def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> GatewayResult:
        token = self.token_manager.get_valid_access_token()
        if not token:
            log_warning(f"No valid Spotify token for {method} {endpoint}.")
            cleared = self.token_manager.store.get() is None
            return GatewayResult(
                status=None,
                detail="unauthenticated" if cleared else "token refresh unavailable",
                reauth_required=cleared,
            )

        url = f"{self.base_url}{endpoint}"
        try:
            r = self._send(token, method, url, body, params)

            if r.status_code == 401:
                log_warning(f"{method} {endpoint} returned 401; refreshing token once.")
                token = self.token_manager.refresh_after_rejection(token)
                if not token:
                    # Credentials survive a transient refresh failure.
                    cleared = self.token_manager.store.get() is None
                    return GatewayResult(
                        status=401 if cleared else None,
                        detail="unauthenticated" if cleared else "token refresh unavailable",
                        reauth_required=cleared,
                    )
                r = self._send(token, method, url, body, params)
        except requests.RequestException as e:
            log_warning(f"Spotify request {method} {endpoint} failed: {e}")
            return GatewayResult(status=None, detail=str(e)[:ERROR_DETAIL_MAX_CHARS])

        if r.status_code == 204:
            return GatewayResult(status=204, data={})

        if not r.ok:
            log_warning(f"Spotify API error ({method} {endpoint}, status {r.status_code}).")
            return GatewayResult(
                status=r.status_code,
                detail=(r.text or "")[:ERROR_DETAIL_MAX_CHARS],
                reauth_required=r.status_code == 401,
            )

        try:
            data = r.json()
        except ValueError:
            data = {}
        return GatewayResult(status=r.status_code, data=data)

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """JSON payload of a successful call, or None when unavailable."""
        result = self.call(endpoint, method=method, body=body, params=params)
        return result.data if result.ok else None
