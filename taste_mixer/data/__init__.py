"""Public façade for the taste_mixer.data package.

This module exposes the JSON-backed favourites store and the genre catalog.
Callers should use this façade instead of importing the internal modules.
"""

from .favorites import FAVORITE_FIELDS, FavoriteSeeds, FavoritesStore
from .genres import AVAILABLE_GENRES, search_genres

__all__ = [
    "FAVORITE_FIELDS",
    "FavoriteSeeds",
    "FavoritesStore",
    "AVAILABLE_GENRES",
    "search_genres",
]
