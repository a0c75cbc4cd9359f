from typing import NoReturn, Optional

from fastapi import HTTPException

from taste_mixer.core import ConfigError
from taste_mixer.spotify import build_spotify_auth_url

from .services import Services


def auth_url_or_none(services: Services) -> Optional[str]:
    try:
        return build_spotify_auth_url(services.auth_states.issue())
    except ConfigError:
        return None


def raise_unauth(services: Services, message: str = "") -> NoReturn:
    raise HTTPException(
        status_code=401,
        detail={
            "status": "unauthenticated",
            "message": message or "Spotify authorization required.",
            "auth_url": auth_url_or_none(services),
        },
    )


def raise_misconfigured() -> NoReturn:
    raise HTTPException(
        status_code=500,
        detail={"status": "error", "message": "Server configuration error."},
    )


def require_token(services: Services) -> None:
    """
    401 when the user must log in again, 502 when a refresh failed but the
    stored credentials were kept.
    """
    if services.token_manager.get_valid_access_token() is not None:
        return
    if services.store.get() is None:
        raise_unauth(services)
    raise HTTPException(status_code=502, detail="Spotify is unavailable.")
