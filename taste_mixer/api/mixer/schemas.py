from typing import List, Optional

from pydantic import BaseModel, Field

from taste_mixer.config import DEFAULT_TRACK_DURATION_MS, MAX_PLAYLIST_SIZE
from taste_mixer.core import CandidateTrack, MoodTarget, SeedSelection
from taste_mixer.pipeline import PlaylistMode


class TrackOut(BaseModel):
    id: str
    name: str
    artists: List[str] = Field(default_factory=list)
    album_image_url: Optional[str] = None
    duration_ms: int = DEFAULT_TRACK_DURATION_MS

    @classmethod
    def from_candidate(cls, track: CandidateTrack) -> "TrackOut":
        return cls(
            id=track.id,
            name=track.name,
            artists=track.artists,
            album_image_url=track.album_image_url,
            duration_ms=track.duration_ms,
        )

    def to_candidate(self) -> CandidateTrack:
        return CandidateTrack(
            id=self.id,
            name=self.name,
            artists=list(self.artists),
            album_image_url=self.album_image_url,
            duration_ms=self.duration_ms,
        )


class GenerateRequest(BaseModel):
    selection: SeedSelection
    mood: MoodTarget = Field(default_factory=MoodTarget.neutral)
    mode: PlaylistMode = PlaylistMode.REPLACE
    existing: List[TrackOut] = Field(default_factory=list, max_length=MAX_PLAYLIST_SIZE)


class GenerateResponse(BaseModel):
    mode: PlaylistMode
    count: int
    tracks: List[TrackOut]


class PublishRequest(BaseModel):
    name: Optional[str] = None
    track_ids: List[str]


class PublishResponse(BaseModel):
    playlist_id: str
    playlist_url: Optional[str] = None
    tracks_added: int


class SearchItem(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    artist_name: Optional[str] = None
    duration_ms: Optional[int] = None


class SearchResponse(BaseModel):
    type: str
    items: List[SearchItem]


class GenresResponse(BaseModel):
    genres: List[str]
