from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from taste_mixer.config import (
    AUDIO_FEATURES_BATCH_SIZE,
    FETCH_WORKERS,
    SEARCH_LIMIT,
    SPOTIFY_MARKET,
)
from taste_mixer.core import AudioFeatures, log_info, log_step

from .gateway import SpotifyGateway

TOP_ITEM_KINDS = ("artists", "tracks")
TIME_RANGES = ("short_term", "medium_term", "long_term")


def get_current_user(gateway: SpotifyGateway) -> Optional[Dict]:
    return gateway.request("/me")


def search(
    gateway: SpotifyGateway,
    query: str,
    search_type: str = "artist",
    limit: int = SEARCH_LIMIT,
) -> Optional[Dict]:
    """
    Search the catalog. Returns the raw search payload or None.
    """
    if not query:
        return None
    return gateway.request(
        "/search",
        params={"q": query, "type": search_type, "limit": limit},
    )


def get_artist_top_tracks(
    gateway: SpotifyGateway, artist_id: str, market: str = SPOTIFY_MARKET
) -> List[Dict]:
    data = gateway.request(f"/artists/{artist_id}/top-tracks", params={"market": market})
    if data and data.get("tracks"):
        return data["tracks"]
    return []


def get_top_items(
    gateway: SpotifyGateway,
    kind: str,
    time_range: str = "medium_term",
    limit: int = 5,
) -> Optional[Dict]:
    """
    Current user's top artists or tracks ("wrapped" view).
    """
    if kind not in TOP_ITEM_KINDS:
        raise ValueError(f"kind must be one of {TOP_ITEM_KINDS}")
    if time_range not in TIME_RANGES:
        raise ValueError(f"time_range must be one of {TIME_RANGES}")
    return gateway.request(
        f"/me/top/{kind}",
        params={"time_range": time_range, "limit": limit},
    )


def _fetch_audio_features_batch(
    gateway: SpotifyGateway, ids: List[str]
) -> List[AudioFeatures]:
    data = gateway.request("/audio-features", params={"ids": ",".join(ids)})
    if not data:
        return []
    features: List[AudioFeatures] = []
    for item in data.get("audio_features") or []:
        # Spotify returns null for ids it has no analysis for.
        if not isinstance(item, dict):
            continue
        parsed = AudioFeatures.from_spotify(item)
        if parsed is not None:
            features.append(parsed)
    return features


def get_audio_features(
    gateway: SpotifyGateway,
    track_ids: List[str],
    batch_size: int = AUDIO_FEATURES_BATCH_SIZE,
) -> Dict[str, AudioFeatures]:
    """
    Audio features keyed by track id.

    The endpoint accepts at most `batch_size` ids per call; batches are
    fetched concurrently. Failed batches contribute nothing.
    """
    ids = [tid for tid in track_ids if tid]
    if not ids:
        return {}

    batches = [ids[i : i + batch_size] for i in range(0, len(ids), batch_size)]
    log_step(f"Fetching audio features for {len(ids)} tracks ({len(batches)} batches)...")

    result: Dict[str, AudioFeatures] = {}
    with ThreadPoolExecutor(max_workers=min(FETCH_WORKERS, len(batches))) as executor:
        for features in executor.map(
            lambda batch: _fetch_audio_features_batch(gateway, batch), batches
        ):
            for f in features:
                result[f.id] = f

    log_info(f"Audio features available for {len(result)}/{len(ids)} tracks.")
    return result
