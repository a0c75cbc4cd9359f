"""OAuth 2.0 authorization-code flow and token lifecycle for Spotify.

TokenManager is the only writer of the CredentialStore. It performs the
Basic-Auth code exchange and refresh against the accounts service and hands
out access tokens that are valid for at least TOKEN_EXPIRY_MARGIN_SECONDS.

State machine:

    UNAUTHENTICATED --exchange--> VALID --time--> EXPIRING --refresh--> VALID
                                                       \\--rejected--> UNAUTHENTICATED
"""

import base64
import secrets
import string
import threading
import time
from collections import OrderedDict
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from taste_mixer.config import (
    ERROR_DETAIL_MAX_CHARS,
    HTTP_TIMEOUT_SECONDS,
    MAX_PENDING_AUTH_STATES,
    SCOPES,
    SPOTIFY_AUTH_URL,
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_TOKEN_URL,
    TOKEN_EXPIRY_MARGIN_SECONDS,
)
from taste_mixer.core import (
    AuthStateError,
    ConfigError,
    Credentials,
    ProviderRejected,
    ProviderUnavailable,
    log_info,
    log_step,
    log_success,
    log_warning,
)

from .credentials import CredentialStore

STATE_LENGTH = 16
_STATE_ALPHABET = string.ascii_letters + string.digits


class TokenState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALID = "valid"
    EXPIRING = "expiring"


def generate_state(length: int = STATE_LENGTH) -> str:
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))


class AuthStateStore:
    """
    Remembers issued OAuth `state` values; each one validates exactly once.

    Only the `max_pending` most recent states are kept. Issuing a new one
    evicts the oldest, so abandoned logins do not accumulate.
    """

    def __init__(self, max_pending: int = MAX_PENDING_AUTH_STATES) -> None:
        self.max_pending = max_pending
        self._issued: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def issue(self) -> str:
        state = generate_state()
        with self._lock:
            self._issued[state] = None
            while len(self._issued) > self.max_pending:
                self._issued.popitem(last=False)
        return state

    def consume(self, state: Optional[str]) -> None:
        with self._lock:
            if not state or state not in self._issued:
                raise AuthStateError("OAuth state mismatch or missing.")
            del self._issued[state]

    def __len__(self) -> int:
        with self._lock:
            return len(self._issued)


def build_spotify_auth_url(
    state: str,
    client_id: Optional[str] = None,
    redirect_uri: Optional[str] = None,
) -> str:
    client_id = client_id or SPOTIFY_CLIENT_ID
    redirect_uri = redirect_uri or SPOTIFY_REDIRECT_URI
    if not client_id or not redirect_uri:
        raise ConfigError("SPOTIFY_CLIENT_ID and SPOTIFY_REDIRECT_URI must be set.")

    auth_query_parameters = {
        "response_type": "code",
        "client_id": client_id,
        "scope": " ".join(SCOPES),
        "redirect_uri": redirect_uri,
        "state": state,
        "show_dialog": "true",
    }
    return f"{SPOTIFY_AUTH_URL}?{urlencode(auth_query_parameters)}"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class TokenManager:
    def __init__(
        self,
        store: CredentialStore,
        client_id: Optional[str] = SPOTIFY_CLIENT_ID,
        client_secret: Optional[str] = SPOTIFY_CLIENT_SECRET,
        redirect_uri: Optional[str] = SPOTIFY_REDIRECT_URI,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        token_url: str = SPOTIFY_TOKEN_URL,
        margin_seconds: float = TOKEN_EXPIRY_MARGIN_SECONDS,
    ):
        self.store = store
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.session = session or requests.Session()
        self.clock = clock
        self.token_url = token_url
        self.margin_seconds = margin_seconds
        self._refresh_lock = threading.Lock()

    # ---------- Token endpoint ----------

    def _client_auth_header(self) -> str:
        if not self.client_id or not self.client_secret:
            raise ConfigError("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set.")
        return basic_auth_header(self.client_id, self.client_secret)

    def _post_token(self, form: Dict[str, str]) -> Dict:
        headers = {
            "Authorization": self._client_auth_header(),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            r = self.session.post(
                self.token_url,
                data=form,
                headers=headers,
                timeout=HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise ProviderUnavailable(f"Token endpoint unreachable: {e}") from e

        if r.status_code >= 500:
            raise ProviderUnavailable(
                f"Token endpoint failed with status {r.status_code}."
            )
        if not r.ok:
            detail = (r.text or "")[:ERROR_DETAIL_MAX_CHARS]
            raise ProviderRejected(
                f"Spotify rejected the {form['grant_type']} request.",
                status=r.status_code,
                detail=detail,
            )

        try:
            token_info = r.json()
        except ValueError as e:
            raise ProviderUnavailable("Token endpoint returned a non-JSON body.") from e
        if not isinstance(token_info, dict):
            raise ProviderUnavailable("Token endpoint returned an unexpected payload.")
        return token_info

    def _credentials_from_response(
        self, token_info: Dict, previous_refresh_token: Optional[str] = None
    ) -> Credentials:
        refresh_token = token_info.get("refresh_token") or previous_refresh_token
        if not token_info.get("access_token") or not refresh_token:
            raise ProviderRejected("Token response is missing required fields.")
        try:
            expires_in = float(token_info.get("expires_in", 3600))
        except (TypeError, ValueError) as e:
            raise ProviderUnavailable("Token response has an invalid expires_in.") from e
        return Credentials(
            access_token=token_info["access_token"],
            refresh_token=refresh_token,
            expires_at=self.clock() + expires_in,
        )

    def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> Credentials:
        """
        Exchange an authorization code for a credential set and store it.
        """
        redirect_uri = redirect_uri or self.redirect_uri
        if not redirect_uri:
            raise ConfigError("SPOTIFY_REDIRECT_URI must be set.")

        log_step("Exchanging Spotify authorization code for tokens...")
        token_info = self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            }
        )
        credentials = self._credentials_from_response(token_info)
        self.store.replace(credentials)
        log_success("Spotify authorization complete.")
        return credentials

    def refresh(self, refresh_token: str) -> Credentials:
        """
        Exchange a refresh token for a new access token and store it.

        The provider may rotate the refresh token; when it does not, the
        current one is kept.
        """
        log_step("Refreshing Spotify access token...")
        token_info = self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )
        credentials = self._credentials_from_response(
            token_info, previous_refresh_token=refresh_token
        )
        self.store.replace(credentials)
        log_info("Spotify access token refreshed.")
        return credentials

    # ---------- Lifecycle ----------

    def _needs_refresh(self, credentials: Credentials) -> bool:
        return self.clock() >= credentials.expires_at - self.margin_seconds

    @property
    def state(self) -> TokenState:
        credentials = self.store.get()
        if credentials is None:
            return TokenState.UNAUTHENTICATED
        if self._needs_refresh(credentials):
            return TokenState.EXPIRING
        return TokenState.VALID

    def _try_refresh(self, credentials: Credentials) -> Optional[str]:
        try:
            return self.refresh(credentials.refresh_token).access_token
        except ProviderRejected as e:
            log_warning(f"Refresh token rejected ({e.status}); re-authentication required.")
            self.store.clear()
        except (ProviderUnavailable, ConfigError) as e:
            log_warning(f"Could not refresh Spotify token: {e}")
        return None

    def get_valid_access_token(self) -> Optional[str]:
        """
        Return an access token valid for at least the safety margin, or None
        when the user must re-authenticate.
        """
        credentials = self.store.get()
        if credentials is None:
            return None
        if not self._needs_refresh(credentials):
            return credentials.access_token

        with self._refresh_lock:
            # Another caller may have refreshed while we waited.
            credentials = self.store.get()
            if credentials is None:
                return None
            if not self._needs_refresh(credentials):
                return credentials.access_token
            return self._try_refresh(credentials)

    def refresh_after_rejection(self, rejected_token: str) -> Optional[str]:
        """
        Recover from a 401 on `rejected_token`.

        Concurrent callers holding the same rejected token share one refresh.
        """
        with self._refresh_lock:
            credentials = self.store.get()
            if credentials is None:
                return None
            if credentials.access_token != rejected_token:
                return credentials.access_token
            return self._try_refresh(credentials)

    def logout(self) -> None:
        self.store.clear()
        log_info("Spotify credentials cleared.")


# ---------- Local callback server (CLI login) ----------


class _SpotifyAuthHandler(BaseHTTPRequestHandler):
    """
    Captures `code` and `state` from the redirect URI query string.
    """

    authorization_code: Optional[str] = None
    state: Optional[str] = None

    def do_GET(self):
        qs = parse_qs(urlparse(self.path).query)
        code = qs.get("code", [None])[0]

        if code:
            _SpotifyAuthHandler.authorization_code = code
            _SpotifyAuthHandler.state = qs.get("state", [None])[0]
            message = (
                "<h1>Spotify authorization complete</h1>"
                "<p>You can close this window and return to the application.</p>"
            )
        else:
            message = (
                "<h1>Spotify authorization callback</h1>"
                "<p>No authorization code was found in the URL.</p>"
            )

        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(message.encode("utf-8"))

    def log_message(self, format, *args):
        return


def wait_for_authorization_code(
    redirect_uri: str = SPOTIFY_REDIRECT_URI, timeout: int = 180
) -> Tuple[str, Optional[str]]:
    """
    Serve the redirect URI locally until Spotify redirects back with a code.

    Returns (code, state). Raises TimeoutError if nothing arrives.
    """
    parsed = urlparse(redirect_uri)
    host = parsed.hostname or "127.0.0.1"
    port = parsed.port or 8888

    _SpotifyAuthHandler.authorization_code = None
    _SpotifyAuthHandler.state = None
    httpd = HTTPServer((host, port), _SpotifyAuthHandler)

    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()

    try:
        start = time.time()
        while time.time() - start < timeout:
            if _SpotifyAuthHandler.authorization_code:
                return _SpotifyAuthHandler.authorization_code, _SpotifyAuthHandler.state
            time.sleep(0.2)
    finally:
        httpd.shutdown()
        httpd.server_close()

    raise TimeoutError("Timed out waiting for Spotify authorization.")
