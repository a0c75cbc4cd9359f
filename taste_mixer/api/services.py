"""Process-wide service wiring for the HTTP API.

One CredentialStore is created per process and loaded from its JSON mirror
at startup; every collaborator receives it (or the TokenManager built on it)
explicitly. Routers obtain the container through the `get_services`
dependency, which tests override.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

import requests

from taste_mixer.config import FAVORITES_FILE, SPOTIFY_TOKEN_FILE
from taste_mixer.data import FavoritesStore
from taste_mixer.pipeline import PlaylistGenerator, RequestSupersession
from taste_mixer.spotify import (
    AuthStateStore,
    CredentialStore,
    PlaylistPublisher,
    SpotifyGateway,
    TokenManager,
)


@dataclass
class Services:
    store: CredentialStore
    token_manager: TokenManager
    gateway: SpotifyGateway
    generator: PlaylistGenerator
    publisher: PlaylistPublisher
    favorites: FavoritesStore
    auth_states: AuthStateStore = field(default_factory=AuthStateStore)
    generations: RequestSupersession = field(default_factory=RequestSupersession)


def build_services(
    token_path: Optional[str | Path] = SPOTIFY_TOKEN_FILE,
    favorites_path: str | Path = FAVORITES_FILE,
    session: Optional[requests.Session] = None,
    **token_manager_kwargs,
) -> Services:
    session = session or requests.Session()
    store = CredentialStore(token_path)
    store.load()
    token_manager = TokenManager(store, session=session, **token_manager_kwargs)
    gateway = SpotifyGateway(token_manager, session=session)
    return Services(
        store=store,
        token_manager=token_manager,
        gateway=gateway,
        generator=PlaylistGenerator(gateway),
        publisher=PlaylistPublisher(gateway),
        favorites=FavoritesStore(favorites_path),
    )


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services()
