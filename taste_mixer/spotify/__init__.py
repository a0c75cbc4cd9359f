"""Public façade for the taste_mixer.spotify package.

This module exposes the Spotify Web API integration: the credential store,
the token lifecycle manager, the authenticated gateway, catalog lookups and
the playlist publisher. Callers should import these symbols from this façade
instead of the internal modules.
"""

from .auth import (
    AuthStateStore,
    TokenManager,
    TokenState,
    basic_auth_header,
    build_spotify_auth_url,
    wait_for_authorization_code,
)
from .catalog import (
    TIME_RANGES,
    TOP_ITEM_KINDS,
    get_artist_top_tracks,
    get_audio_features,
    get_current_user,
    get_top_items,
    search,
)
from .credentials import CredentialStore
from .gateway import GatewayResult, SpotifyGateway
from .playlists import PlaylistPublisher, chunk_uris, default_playlist_name

__all__ = [
    "CredentialStore",
    "TokenManager",
    "TokenState",
    "AuthStateStore",
    "basic_auth_header",
    "build_spotify_auth_url",
    "wait_for_authorization_code",
    "SpotifyGateway",
    "GatewayResult",
    "get_current_user",
    "search",
    "get_artist_top_tracks",
    "get_audio_features",
    "get_top_items",
    "TOP_ITEM_KINDS",
    "TIME_RANGES",
    "PlaylistPublisher",
    "chunk_uris",
    "default_playlist_name",
]
