"""Favourite seeds, persisted as a small JSON document.

Each seed kind maps to one fixed field of the document:

    {"artists": [...], "tracks": [...], "genres": [...]}
"""

from pathlib import Path
from typing import Dict, List, Union

from pydantic import BaseModel, Field, ValidationError

from taste_mixer.config import FAVORITES_FILE
from taste_mixer.core import (
    ArtistSeed,
    GenreSeed,
    SeedKind,
    TrackSeed,
    delete_file,
    log_warning,
    read_json,
    write_json,
)

FAVORITE_FIELDS: Dict[SeedKind, str] = {
    SeedKind.ARTIST: "artists",
    SeedKind.TRACK: "tracks",
    SeedKind.GENRE: "genres",
}


class FavoriteSeeds(BaseModel):
    artists: List[ArtistSeed] = Field(default_factory=list)
    tracks: List[TrackSeed] = Field(default_factory=list)
    genres: List[GenreSeed] = Field(default_factory=list)


class FavoritesStore:
    def __init__(self, path: str | Path = FAVORITES_FILE):
        self.path = path

    def load(self) -> FavoriteSeeds:
        """
        Load favourites; a missing or corrupted file yields an empty set.
        """

        def _on_error(e: Exception) -> None:
            log_warning("Favourites file is corrupted; ignoring it.")

        data = read_json(self.path, default={}, on_error=_on_error)
        if not isinstance(data, dict):
            return FavoriteSeeds()
        try:
            return FavoriteSeeds.model_validate(data)
        except ValidationError:
            log_warning("Favourites file has an invalid structure; ignoring it.")
            return FavoriteSeeds()

    def save(self, favorites: FavoriteSeeds) -> None:
        write_json(self.path, favorites.model_dump(mode="json"))

    def toggle(self, seed: Union[ArtistSeed, GenreSeed, TrackSeed]) -> FavoriteSeeds:
        """
        Add `seed` to its favourites list, or remove it if already present.
        """
        favorites = self.load()
        field_name = FAVORITE_FIELDS[SeedKind(seed.kind)]
        current = list(getattr(favorites, field_name))

        if any(s.identity == seed.identity for s in current):
            updated = [s for s in current if s.identity != seed.identity]
        else:
            updated = current + [seed]

        favorites = favorites.model_copy(update={field_name: updated})
        self.save(favorites)
        return favorites

    def is_favorite(self, seed: Union[ArtistSeed, GenreSeed, TrackSeed]) -> bool:
        field_name = FAVORITE_FIELDS[SeedKind(seed.kind)]
        return any(
            s.identity == seed.identity for s in getattr(self.load(), field_name)
        )

    def clear(self) -> None:
        delete_file(self.path)
