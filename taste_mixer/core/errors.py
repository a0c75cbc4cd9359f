"""Exception taxonomy for the Taste Mixer core.

Ordinary HTTP failures on resource endpoints never surface as exceptions:
the provider gateway absorbs them into a failed GatewayResult. The classes
below cover the failures callers are expected to react to.
"""

from typing import Any, Dict, List, Optional


class TasteMixerError(Exception):
    """Base class for all Taste Mixer errors."""


class ConfigError(TasteMixerError):
    """Client id, client secret or redirect URI is not configured."""


class ProviderRejected(TasteMixerError):
    """The provider refused a token operation (bad code, revoked refresh token)."""

    def __init__(self, message: str, status: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status = status
        self.detail = detail


class ProviderUnavailable(TasteMixerError):
    """The token endpoint could not be reached or answered with a server error."""


class AuthStateError(TasteMixerError):
    """The OAuth `state` returned by the provider was unknown or already used."""


class GenerationCancelled(TasteMixerError):
    """A newer generation request superseded this one."""


class PublishError(TasteMixerError):
    """
    Publishing a playlist failed.

    `detail` holds the provider's error body, truncated for display.
    """

    def __init__(
        self,
        message: str,
        detail: str = "",
        status: Optional[int] = None,
        reauth_required: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status = status
        self.reauth_required = reauth_required


class PartialPublishFailure(PublishError):
    """
    The remote playlist was created but one or more add-tracks chunks failed.

    The playlist is left as-is on the provider (no rollback, no retry);
    `failed_chunks` lists what was not added so the caller can report it.
    """

    def __init__(
        self,
        playlist_id: str,
        playlist_url: Optional[str],
        failed_chunks: List[Dict[str, Any]],
        tracks_added: int,
    ):
        first = failed_chunks[0] if failed_chunks else {}
        super().__init__(
            f"{len(failed_chunks)} add-tracks chunk(s) failed for playlist {playlist_id}.",
            detail=first.get("detail", ""),
            status=first.get("status"),
        )
        self.playlist_id = playlist_id
        self.playlist_url = playlist_url
        self.failed_chunks = failed_chunks
        self.tracks_added = tracks_added
