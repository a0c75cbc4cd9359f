"""Playlist generation: seeds -> candidates -> dedup -> mood filter -> bound.

Stages run strictly in sequence, each consuming the whole output of the
previous one. A cancellation token is checked between stages so a superseded
request stops before doing more provider calls.
"""

from typing import Iterable, List, Optional

from taste_mixer.config import MAX_PLAYLIST_SIZE, MOOD_TOLERANCE
from taste_mixer.core import (
    CandidateTrack,
    MoodTarget,
    SeedSelection,
    log_info,
    log_section,
    log_step,
    log_success,
)
from taste_mixer.spotify import SpotifyGateway, get_audio_features

from .aggregation import aggregate
from .assembler import PlaylistMode, assemble
from .cancellation import CancellationToken
from .mood_filter import filter_by_mood
from .seeds import SeedResolver


class PlaylistGenerator:
    def __init__(
        self,
        gateway: SpotifyGateway,
        resolver: Optional[SeedResolver] = None,
        tolerance: float = MOOD_TOLERANCE,
        max_size: int = MAX_PLAYLIST_SIZE,
    ):
        self.gateway = gateway
        self.resolver = resolver or SeedResolver(gateway)
        self.tolerance = tolerance
        self.max_size = max_size

    def generate(
        self,
        selection: SeedSelection,
        mood: MoodTarget,
        mode: PlaylistMode = PlaylistMode.REPLACE,
        existing: Iterable[CandidateTrack] = (),
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[CandidateTrack]:
        """
        Build the new working playlist for `selection` and `mood`.

        Returns an empty list (REPLACE) or `existing` unchanged (APPEND) when
        nothing matched. Raises GenerationCancelled if superseded.
        """
        token = cancel_token or CancellationToken()
        existing = list(existing)
        if selection.is_empty():
            log_info("No seeds selected; nothing to generate.")
            return assemble([], mode, existing, self.max_size)

        log_section(f"Generating playlist ({PlaylistMode(mode).value})")

        per_seed = self.resolver.resolve(selection, cancel_token=token)
        token.raise_if_cancelled()

        candidates = aggregate(per_seed)
        log_step(f"{len(candidates)} unique candidates after deduplication.")

        features = get_audio_features(self.gateway, [t.id for t in candidates])
        token.raise_if_cancelled()

        filtered = filter_by_mood(candidates, mood, features, self.tolerance)
        log_step(f"{len(filtered)} candidates match the mood target.")

        playlist = assemble(filtered, mode, existing, self.max_size)
        token.raise_if_cancelled()

        log_success(f"Working playlist now has {len(playlist)} tracks.")
        return playlist
