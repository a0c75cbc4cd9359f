"""Seed resolution: turn artist, track and genre seeds into candidate tracks.

Each seed kind has its own strategy:

  - track seed  -> promoted directly into a candidate (no network call)
  - artist seed -> the artist's market-scoped top tracks
  - genre seed  -> a track search scoped to `genre:"<name>"`

Network fetches for one request run concurrently on a thread pool and the
resolver waits for all of them. A failing fetch degrades to an empty list for
its seed instead of aborting the whole generation.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from taste_mixer.config import FETCH_WORKERS, GENRE_SEARCH_LIMIT, SPOTIFY_MARKET
from taste_mixer.core import (
    ArtistSeed,
    CandidateTrack,
    GenreSeed,
    SeedSelection,
    log_info,
    log_step,
    log_warning,
)
from taste_mixer.spotify import SpotifyGateway, get_artist_top_tracks, search

from .cancellation import CancellationToken


class SeedResolver:
    def __init__(
        self,
        gateway: SpotifyGateway,
        market: str = SPOTIFY_MARKET,
        max_workers: int = FETCH_WORKERS,
    ):
        self.gateway = gateway
        self.market = market
        self.max_workers = max_workers

    def artist_candidates(self, seed: ArtistSeed) -> List[CandidateTrack]:
        tracks = get_artist_top_tracks(self.gateway, seed.id, market=self.market)
        return [CandidateTrack.from_spotify(t) for t in tracks if isinstance(t, dict)]

    def genre_candidates(self, seed: GenreSeed) -> List[CandidateTrack]:
        data = search(
            self.gateway,
            f'genre:"{seed.name}"',
            search_type="track",
            limit=GENRE_SEARCH_LIMIT,
        )
        items = ((data or {}).get("tracks") or {}).get("items") or []
        return [CandidateTrack.from_spotify(t) for t in items if isinstance(t, dict)]

    def _safe_fetch(
        self,
        label: str,
        fetch: Callable[[], List[CandidateTrack]],
        cancel_token: Optional[CancellationToken],
    ) -> List[CandidateTrack]:
        if cancel_token is not None and cancel_token.cancelled:
            return []
        try:
            return fetch()
        except Exception as e:
            log_warning(f"Seed fetch failed for {label}: {e}")
            return []

    def resolve(
        self,
        selection: SeedSelection,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[List[CandidateTrack]]:
        """
        One candidate list per seed: track seeds first, then artists, then
        genres, each in selection order.
        """
        results: List[List[CandidateTrack]] = [
            [CandidateTrack.from_seed(seed)] for seed in selection.tracks
        ]

        jobs = [
            (f"artist {seed.name}", lambda seed=seed: self.artist_candidates(seed))
            for seed in selection.artists
        ] + [
            (f"genre {seed.name}", lambda seed=seed: self.genre_candidates(seed))
            for seed in selection.genres
        ]
        if not jobs:
            return results

        log_step(f"Resolving {len(jobs)} seeds concurrently...")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as executor:
            futures = [
                executor.submit(self._safe_fetch, label, fetch, cancel_token)
                for label, fetch in jobs
            ]
            for future in futures:
                results.append(future.result())

        log_info(f"Seed resolution produced {sum(len(r) for r in results)} candidates.")
        return results
