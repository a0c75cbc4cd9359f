from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse

from taste_mixer.core import (
    AuthStateError,
    ConfigError,
    ProviderRejected,
    ProviderUnavailable,
    log_warning,
)
from taste_mixer.spotify import TokenState, build_spotify_auth_url

from ..errors import raise_misconfigured, raise_unauth
from ..services import Services, get_services
from .schemas import AuthStatusResponse, AuthUrlResponse, ProfileResponse

router = APIRouter()


@router.get("/url", response_model=AuthUrlResponse)
def get_auth_url(services: Services = Depends(get_services)) -> AuthUrlResponse:
    """
    Spotify authorization URL, carrying a fresh single-use CSRF state.
    """
    try:
        url = build_spotify_auth_url(services.auth_states.issue())
    except ConfigError:
        raise_misconfigured()
    return AuthUrlResponse(auth_url=url)


@router.get("/callback", response_class=HTMLResponse)
def auth_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    services: Services = Depends(get_services),
):
    """
    Spotify redirect target: validate state, exchange the code, store tokens.
    """
    if error:
        raise HTTPException(
            status_code=400, detail=f"Spotify authorization failed: {error}"
        )

    try:
        services.auth_states.consume(state)
    except AuthStateError as e:
        log_warning(str(e))
        raise HTTPException(status_code=400, detail="Security check failed (state).")

    if not code:
        raise HTTPException(status_code=400, detail="Missing 'code' parameter.")

    try:
        services.token_manager.exchange_code(code)
    except ConfigError:
        raise_misconfigured()
    except ProviderRejected as e:
        raise HTTPException(
            status_code=400,
            detail={"message": "Spotify token exchange failed.", "detail": e.detail},
        )
    except ProviderUnavailable:
        raise HTTPException(status_code=502, detail="Spotify is unavailable.")

    return """
    <html>
      <body>
        <h1>Spotify authorization complete ✅</h1>
        <p>You can close this window and return to the application.</p>
      </body>
    </html>
    """


@router.get("/status", response_model=AuthStatusResponse)
def auth_status(services: Services = Depends(get_services)) -> AuthStatusResponse:
    state = services.token_manager.state
    credentials = services.store.get()
    expires_at = (
        datetime.fromtimestamp(credentials.expires_at, tz=timezone.utc)
        if credentials
        else None
    )
    return AuthStatusResponse(
        authenticated=state != TokenState.UNAUTHENTICATED,
        state=state.value,
        expires_at=expires_at,
    )


@router.get("/profile", response_model=ProfileResponse)
def auth_profile(services: Services = Depends(get_services)) -> ProfileResponse:
    result = services.gateway.call("/me")
    if result.reauth_required:
        raise_unauth(services)
    profile = result.data or {}
    if not result.ok or not profile.get("id"):
        raise HTTPException(status_code=502, detail="Spotify profile unavailable.")

    images = profile.get("images") or []
    return ProfileResponse(
        id=profile["id"],
        display_name=profile.get("display_name"),
        email=profile.get("email"),
        image_url=images[0].get("url") if images else None,
    )


@router.post("/logout")
def logout(services: Services = Depends(get_services)) -> dict:
    services.token_manager.logout()
    return {"authenticated": False}
