import requests

from conftest import FakeResponse, build_gateway, token_response
from taste_mixer.core import Credentials


def test_no_credentials_makes_no_network_call() -> None:
    gateway, session, _, _, _ = build_gateway(lambda m, p, kw: FakeResponse(200, {}))

    result = gateway.call("/me")

    assert result.status is None
    assert result.reauth_required
    assert not result.ok
    assert session.calls == []
    assert gateway.request("/me") is None


def test_call_sends_bearer_token_and_json_body(valid_credentials: Credentials) -> None:
    gateway, session, _, _, _ = build_gateway(
        lambda m, p, kw: FakeResponse(201, {"id": "pl1"}), credentials=valid_credentials
    )

    result = gateway.call("/users/u1/playlists", method="POST", body={"name": "x"})

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["path"] == "/users/u1/playlists"
    assert call["headers"]["Authorization"] == "Bearer access-1"
    assert call["json"] == {"name": "x"}
    assert result.ok
    assert result.data == {"id": "pl1"}


def test_no_content_is_empty_success(valid_credentials: Credentials) -> None:
    gateway, _, _, _, _ = build_gateway(
        lambda m, p, kw: FakeResponse(204), credentials=valid_credentials
    )

    assert gateway.request("/me/player/pause", method="PUT") == {}


def test_server_error_is_unavailable_with_truncated_detail(valid_credentials: Credentials) -> None:
    gateway, _, _, store, _ = build_gateway(
        lambda m, p, kw: FakeResponse(500, None, text="x" * 500),
        credentials=valid_credentials,
    )

    result = gateway.call("/me")

    assert result.status == 500
    assert not result.reauth_required
    assert len(result.detail) == 100
    assert gateway.request("/me") is None
    assert store.get() == valid_credentials


def test_transport_error_is_unavailable(valid_credentials: Credentials) -> None:
    def handler(method, path, kwargs):
        raise requests.Timeout("timed out")

    gateway, _, _, _, _ = build_gateway(handler, credentials=valid_credentials)

    result = gateway.call("/me")

    assert result.status is None
    assert not result.ok
    assert "timed out" in result.detail


def test_401_refreshes_once_and_retries_with_new_token(valid_credentials: Credentials) -> None:
    def handler(method, path, kwargs):
        if path == "TOKEN":
            return token_response("access-2")
        if kwargs["headers"]["Authorization"] == "Bearer access-1":
            return FakeResponse(401, None, text="expired")
        return FakeResponse(200, {"id": "user-1"})

    gateway, session, _, store, _ = build_gateway(handler, credentials=valid_credentials)

    assert gateway.request("/me") == {"id": "user-1"}
    assert len(session.calls_to("TOKEN")) == 1
    assert len(session.calls_to("/me")) == 2
    assert store.get().access_token == "access-2"


def test_repeated_401_is_retried_exactly_once(valid_credentials: Credentials) -> None:
    def handler(method, path, kwargs):
        if path == "TOKEN":
            return token_response("access-2")
        return FakeResponse(401, None, text="nope")

    gateway, session, _, _, _ = build_gateway(handler, credentials=valid_credentials)

    result = gateway.call("/me")

    assert result.status == 401
    assert result.reauth_required
    assert len(session.calls_to("TOKEN")) == 1
    assert len(session.calls_to("/me")) == 2


def test_401_with_rejected_refresh_requires_reauth(valid_credentials: Credentials) -> None:
    def handler(method, path, kwargs):
        if path == "TOKEN":
            return FakeResponse(400, None, text="invalid_grant")
        return FakeResponse(401, None, text="expired")

    gateway, session, _, store, _ = build_gateway(handler, credentials=valid_credentials)

    result = gateway.call("/me")

    assert result.reauth_required
    assert len(session.calls_to("/me")) == 1
    assert store.get() is None


def test_expired_token_is_refreshed_before_the_request(clock) -> None:
    expired = Credentials("old-access", "refresh-1", clock.now - 10)

    def handler(method, path, kwargs):
        if path == "TOKEN":
            return token_response("fresh-access", expires_in=3600)
        return FakeResponse(200, {"id": "user-1"})

    gateway, session, _, store, _ = build_gateway(handler, credentials=expired, clock=clock)

    assert gateway.request("/me") == {"id": "user-1"}
    assert session.calls[0]["path"] == "TOKEN"
    assert session.calls_to("/me")[0]["headers"]["Authorization"] == "Bearer fresh-access"
    assert store.get().expires_at == clock.now + 3600
    assert store.get().refresh_token == "refresh-1"


def test_params_are_forwarded(valid_credentials: Credentials) -> None:
    gateway, session, _, _, _ = build_gateway(
        lambda m, p, kw: FakeResponse(200, {"ok": True}), credentials=valid_credentials
    )

    gateway.request("/search", params={"q": "x", "type": "artist"})

    assert session.calls[0]["params"] == {"q": "x", "type": "artist"}


def test_transient_refresh_failure_after_401_is_not_reauth(
    valid_credentials: Credentials,
) -> None:
    def handler(method, path, kwargs):
        if path == "TOKEN":
            return FakeResponse(503, None, text="down")
        return FakeResponse(401, None, text="expired")

    gateway, session, _, store, _ = build_gateway(handler, credentials=valid_credentials)

    result = gateway.call("/me")

    assert not result.ok
    assert not result.reauth_required
    assert store.get() == valid_credentials
    assert len(session.calls_to("/me")) == 1


def test_malformed_refresh_response_does_not_escape_gateway(clock) -> None:
    expired = Credentials("old-access", "refresh-1", clock.now - 10)

    def handler(method, path, kwargs):
        if path == "TOKEN":
            return FakeResponse(200, None, text="<html>proxy</html>")
        return FakeResponse(200, {"id": "user-1"})

    gateway, session, _, store, _ = build_gateway(handler, credentials=expired, clock=clock)

    result = gateway.call("/me")

    assert result.status is None
    assert not result.reauth_required
    assert gateway.request("/me") is None
    assert store.get() == expired
    assert session.calls_to("/me") == []
