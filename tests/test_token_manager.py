import base64
from typing import Dict, List

import pytest
import requests

from conftest import FakeClock, FakeResponse, FakeSession, token_response
from taste_mixer.core import (
    AuthStateError,
    ConfigError,
    Credentials,
    ProviderRejected,
    ProviderUnavailable,
)
from taste_mixer.spotify import AuthStateStore, CredentialStore, TokenManager, TokenState


def _manager(handler, store=None, clock=None, **kwargs) -> tuple:
    store = store or CredentialStore()
    clock = clock or FakeClock()
    session = FakeSession(handler)
    params = {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "redirect_uri": "http://127.0.0.1:8888/auth/callback",
    }
    params.update(kwargs)
    manager = TokenManager(store, session=session, clock=clock, **params)
    return manager, session, store, clock


def test_exchange_code_uses_basic_auth_and_form_body() -> None:
    manager, session, store, clock = _manager(
        lambda m, p, kw: token_response("access-1", refresh="refresh-1", expires_in=3600)
    )

    credentials = manager.exchange_code("the-code")

    call = session.calls_to("TOKEN")[0]
    expected = base64.b64encode(b"client-id:client-secret").decode("ascii")
    assert call["headers"]["Authorization"] == f"Basic {expected}"
    assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert call["data"] == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "redirect_uri": "http://127.0.0.1:8888/auth/callback",
    }
    assert credentials.access_token == "access-1"
    assert credentials.refresh_token == "refresh-1"
    assert credentials.expires_at == clock.now + 3600
    assert store.get() == credentials


def test_exchange_code_without_client_secret_raises_config_error() -> None:
    manager, session, store, _ = _manager(
        lambda m, p, kw: token_response(), client_secret=None
    )

    with pytest.raises(ConfigError):
        manager.exchange_code("the-code")

    assert session.calls == []
    assert store.get() is None


def test_exchange_code_rejected_by_provider() -> None:
    manager, _, store, _ = _manager(
        lambda m, p, kw: FakeResponse(400, {"error": "invalid_grant"}, text='{"error":"invalid_grant"}')
    )

    with pytest.raises(ProviderRejected) as exc_info:
        manager.exchange_code("expired-code")

    assert exc_info.value.status == 400
    assert "invalid_grant" in exc_info.value.detail
    assert store.get() is None


def test_refresh_keeps_refresh_token_when_not_rotated(clock: FakeClock) -> None:
    manager, session, store, _ = _manager(
        lambda m, p, kw: token_response("access-2"), clock=clock
    )

    credentials = manager.refresh("refresh-1")

    assert session.calls_to("TOKEN")[0]["data"] == {
        "grant_type": "refresh_token",
        "refresh_token": "refresh-1",
    }
    assert credentials.access_token == "access-2"
    assert credentials.refresh_token == "refresh-1"
    assert store.get() == credentials


def test_refresh_stores_rotated_refresh_token() -> None:
    manager, _, store, _ = _manager(
        lambda m, p, kw: token_response("access-2", refresh="refresh-2")
    )

    manager.refresh("refresh-1")

    assert store.get().refresh_token == "refresh-2"


def test_get_valid_access_token_without_credentials_returns_none() -> None:
    manager, session, _, _ = _manager(lambda m, p, kw: token_response())

    assert manager.get_valid_access_token() is None
    assert manager.state == TokenState.UNAUTHENTICATED
    assert session.calls == []


@pytest.mark.parametrize(
    "seconds_before_expiry, expect_refresh",
    [
        (3600, False),
        (5.001, False),
        (5, True),
        (1, True),
        (0, True),
        (-60, True),
    ],
)
def test_refresh_happens_iff_within_safety_margin(
    seconds_before_expiry: float, expect_refresh: bool
) -> None:
    clock = FakeClock(1_000_000.0)
    store = CredentialStore()
    store.replace(
        Credentials(
            access_token="old-access",
            refresh_token="refresh-1",
            expires_at=clock.now + seconds_before_expiry,
        )
    )
    manager, session, _, _ = _manager(
        lambda m, p, kw: token_response("new-access"), store=store, clock=clock
    )

    token = manager.get_valid_access_token()

    refreshed = len(session.calls_to("TOKEN")) == 1
    assert refreshed is expect_refresh
    assert token == ("new-access" if expect_refresh else "old-access")


def test_state_transitions_from_valid_to_expiring(clock: FakeClock) -> None:
    store = CredentialStore()
    store.replace(Credentials("access-1", "refresh-1", clock.now + 60))
    manager, _, _, _ = _manager(lambda m, p, kw: token_response(), store=store, clock=clock)

    assert manager.state == TokenState.VALID
    clock.now += 56
    assert manager.state == TokenState.EXPIRING


def test_rejected_refresh_clears_credentials() -> None:
    clock = FakeClock()
    store = CredentialStore()
    store.replace(Credentials("old-access", "revoked", clock.now - 1))
    manager, session, _, _ = _manager(
        lambda m, p, kw: FakeResponse(400, {"error": "invalid_grant"}, text="invalid_grant"),
        store=store,
        clock=clock,
    )

    assert manager.get_valid_access_token() is None
    assert store.get() is None
    assert manager.state == TokenState.UNAUTHENTICATED

    # Nothing left to refresh with: no further token calls.
    assert manager.get_valid_access_token() is None
    assert len(session.calls_to("TOKEN")) == 1


def test_unreachable_token_endpoint_keeps_credentials() -> None:
    clock = FakeClock()
    store = CredentialStore()
    credentials = Credentials("old-access", "refresh-1", clock.now - 1)
    store.replace(credentials)

    def handler(method, path, kwargs):
        raise requests.ConnectionError("boom")

    manager, _, _, _ = _manager(handler, store=store, clock=clock)

    assert manager.get_valid_access_token() is None
    assert store.get() == credentials


def test_server_error_on_refresh_is_unavailable() -> None:
    manager, _, _, _ = _manager(lambda m, p, kw: FakeResponse(503, None, text="down"))

    with pytest.raises(ProviderUnavailable):
        manager.refresh("refresh-1")


def test_refresh_after_rejection_reuses_token_refreshed_by_another_caller() -> None:
    clock = FakeClock()
    store = CredentialStore()
    store.replace(Credentials("fresh-access", "refresh-1", clock.now + 3600))
    manager, session, _, _ = _manager(lambda m, p, kw: token_response(), store=store, clock=clock)

    token = manager.refresh_after_rejection("stale-access")

    assert token == "fresh-access"
    assert session.calls_to("TOKEN") == []


def test_logout_clears_store(valid_credentials: Credentials) -> None:
    store = CredentialStore()
    store.replace(valid_credentials)
    manager, _, _, _ = _manager(lambda m, p, kw: token_response(), store=store)

    manager.logout()

    assert store.get() is None


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, None, text="<html>proxy</html>"),
        FakeResponse(200, {"access_token": "a", "expires_in": "soon"}),
        FakeResponse(200, ["not", "an", "object"]),
    ],
)
def test_malformed_refresh_response_keeps_credentials(response: FakeResponse) -> None:
    clock = FakeClock()
    store = CredentialStore()
    credentials = Credentials("old-access", "refresh-1", clock.now - 1)
    store.replace(credentials)
    manager, _, _, _ = _manager(lambda m, p, kw: response, store=store, clock=clock)

    assert manager.get_valid_access_token() is None
    assert store.get() == credentials


def test_malformed_exchange_response_is_unavailable() -> None:
    manager, _, store, _ = _manager(
        lambda m, p, kw: FakeResponse(200, None, text="<html>proxy</html>")
    )

    with pytest.raises(ProviderUnavailable):
        manager.exchange_code("the-code")

    assert store.get() is None


def test_auth_state_store_keeps_only_recent_states() -> None:
    states = AuthStateStore(max_pending=3)

    issued = [states.issue() for _ in range(50)]

    assert len(states) == 3
    with pytest.raises(AuthStateError):
        states.consume(issued[0])
    states.consume(issued[-1])
    with pytest.raises(AuthStateError):
        states.consume(issued[-1])
    assert len(states) == 2
