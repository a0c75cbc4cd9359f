from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from taste_mixer.config import DEFAULT_TRACK_DURATION_MS, MAX_SEEDS_PER_CATEGORY


@dataclass(frozen=True)
class Credentials:
    """
    OAuth credential set.

    expires_at is an absolute instant (epoch seconds), not a TTL, so that a
    suspended process does not drift.
    """

    access_token: str
    refresh_token: str
    expires_at: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["Credentials"]:
        try:
            return cls(
                access_token=str(data["access_token"]),
                refresh_token=str(data["refresh_token"]),
                expires_at=float(data["expires_at"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


class SeedKind(str, Enum):
    ARTIST = "artist"
    GENRE = "genre"
    TRACK = "track"


class ArtistSeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["artist"] = "artist"
    id: str
    name: str

    @property
    def identity(self) -> str:
        return self.id


class GenreSeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["genre"] = "genre"
    name: str

    @property
    def identity(self) -> str:
        return self.name


class TrackSeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["track"] = "track"
    id: str
    name: str
    artist_name: str = ""
    image_url: Optional[str] = None
    duration_ms: Optional[int] = None

    @property
    def identity(self) -> str:
        return self.id


Seed = Annotated[Union[ArtistSeed, GenreSeed, TrackSeed], Field(discriminator="kind")]

_SELECTION_FIELDS = {
    SeedKind.ARTIST: "artists",
    SeedKind.GENRE: "genres",
    SeedKind.TRACK: "tracks",
}


class SeedSelection(BaseModel):
    """
    User-chosen seeds, capped per category by the provider's limit.

    Seeds are immutable; with_seed / without_seed return a new selection.
    """

    artists: List[ArtistSeed] = Field(
        default_factory=list, max_length=MAX_SEEDS_PER_CATEGORY
    )
    genres: List[GenreSeed] = Field(
        default_factory=list, max_length=MAX_SEEDS_PER_CATEGORY
    )
    tracks: List[TrackSeed] = Field(
        default_factory=list, max_length=MAX_SEEDS_PER_CATEGORY
    )

    def is_empty(self) -> bool:
        return not (self.artists or self.genres or self.tracks)

    def with_seed(self, seed: Union[ArtistSeed, GenreSeed, TrackSeed]) -> "SeedSelection":
        """
        Return a selection including `seed`.

        Adding an already-selected seed is a no-op; adding past the cap raises
        ValueError.
        """
        field_name = _SELECTION_FIELDS[SeedKind(seed.kind)]
        current = list(getattr(self, field_name))
        if any(s.identity == seed.identity for s in current):
            return self
        if len(current) >= MAX_SEEDS_PER_CATEGORY:
            raise ValueError(
                f"At most {MAX_SEEDS_PER_CATEGORY} {field_name} can be selected."
            )
        current.append(seed)
        return self.model_copy(update={field_name: current})

    def without_seed(self, kind: SeedKind, identity: str) -> "SeedSelection":
        field_name = _SELECTION_FIELDS[SeedKind(kind)]
        remaining = [s for s in getattr(self, field_name) if s.identity != identity]
        return self.model_copy(update={field_name: remaining})


class MoodTarget(BaseModel):
    """Midpoint of the desired mood range; each value lies in [0, 1]."""

    energy: float = Field(0.5, ge=0.0, le=1.0)
    valence: float = Field(0.5, ge=0.0, le=1.0)
    danceability: float = Field(0.5, ge=0.0, le=1.0)
    acousticness: float = Field(0.5, ge=0.0, le=1.0)

    @classmethod
    def neutral(cls) -> "MoodTarget":
        return cls(energy=0.5, valence=0.5, danceability=0.5, acousticness=0.5)


@dataclass
class CandidateTrack:
    id: Optional[str]
    name: str
    artists: List[str] = field(default_factory=list)
    album_image_url: Optional[str] = None
    duration_ms: int = DEFAULT_TRACK_DURATION_MS

    @property
    def uri(self) -> str:
        return f"spotify:track:{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_spotify(cls, payload: Dict[str, Any]) -> "CandidateTrack":
        """Build a candidate from a Spotify track object."""
        album = payload.get("album") or {}
        images = album.get("images") or []
        return cls(
            id=payload.get("id"),
            name=payload.get("name") or "",
            artists=[a.get("name", "") for a in payload.get("artists") or []],
            album_image_url=images[0].get("url") if images else None,
            duration_ms=payload.get("duration_ms") or DEFAULT_TRACK_DURATION_MS,
        )

    @classmethod
    def from_seed(cls, seed: TrackSeed) -> "CandidateTrack":
        """Promote a track seed; missing fields get fixed defaults."""
        return cls(
            id=seed.id,
            name=seed.name,
            artists=[seed.artist_name] if seed.artist_name else [],
            album_image_url=seed.image_url,
            duration_ms=seed.duration_ms or DEFAULT_TRACK_DURATION_MS,
        )


@dataclass(frozen=True)
class AudioFeatures:
    id: str
    energy: float
    valence: float
    danceability: float
    acousticness: float

    @classmethod
    def from_spotify(cls, payload: Dict[str, Any]) -> Optional["AudioFeatures"]:
        try:
            return cls(
                id=payload["id"],
                energy=float(payload["energy"]),
                valence=float(payload["valence"]),
                danceability=float(payload["danceability"]),
                acousticness=float(payload["acousticness"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


@dataclass
class PublishResult:
    playlist_id: str
    playlist_url: Optional[str]
    tracks_added: int
