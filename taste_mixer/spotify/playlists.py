"""Publishing a finalized track list as a new Spotify playlist."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

from taste_mixer.config import (
    FETCH_WORKERS,
    PLAYLIST_CHUNK_SIZE,
    PLAYLIST_DESCRIPTION,
    PLAYLIST_NAME_PREFIX,
)
from taste_mixer.core import (
    PartialPublishFailure,
    PublishError,
    PublishResult,
    log_error,
    log_progress,
    log_step,
    log_success,
)

from .gateway import GatewayResult, SpotifyGateway


def default_playlist_name(track_count: int, now: Optional[datetime] = None) -> str:
    """
    Name used when the user leaves it blank, e.g. "Taste Mixer (19 Oct - 30 tracks)".
    """
    now = now or datetime.now()
    return f"{PLAYLIST_NAME_PREFIX} ({now.strftime('%d %b')} - {track_count} tracks)"


def chunk_uris(uris: List[str], size: int = PLAYLIST_CHUNK_SIZE) -> List[List[str]]:
    return [uris[i : i + size] for i in range(0, len(uris), size)]


class PlaylistPublisher:
    def __init__(self, gateway: SpotifyGateway, chunk_size: int = PLAYLIST_CHUNK_SIZE):
        self.gateway = gateway
        self.chunk_size = chunk_size

    def _verified_user_id(self) -> str:
        # The owner always comes from the token, never from the caller.
        result = self.gateway.call("/me")
        user_id = (result.data or {}).get("id") if result.ok else None
        if not user_id:
            raise PublishError(
                "Could not verify the Spotify user for this token.",
                detail=result.detail,
                status=result.status,
                reauth_required=result.reauth_required,
            )
        return user_id

    def _create_playlist(self, user_id: str, name: str) -> Dict[str, Any]:
        result = self.gateway.call(
            f"/users/{user_id}/playlists",
            method="POST",
            body={
                "name": name,
                "description": PLAYLIST_DESCRIPTION,
                "public": True,
            },
        )
        if not result.ok or not (result.data or {}).get("id"):
            log_error(f"Playlist creation failed (status {result.status}).")
            raise PublishError(
                "Failed to create the playlist on Spotify.",
                detail=result.detail,
                status=result.status,
                reauth_required=result.reauth_required,
            )
        return result.data

    def _add_chunk(self, playlist_id: str, uris: List[str]) -> GatewayResult:
        return self.gateway.call(
            f"/playlists/{playlist_id}/tracks",
            method="POST",
            body={"uris": uris},
        )

    def publish(
        self,
        name: Optional[str],
        track_ids: List[str],
        now: Optional[datetime] = None,
    ) -> PublishResult:
        """
        Create a playlist owned by the authenticated user and fill it.

        Add-tracks chunks are posted concurrently. If any chunk fails the
        created playlist is kept and PartialPublishFailure lists the failed
        chunks.
        """
        ids = [tid for tid in track_ids if tid]
        if not ids:
            raise PublishError("The playlist is empty. Generate tracks first.")

        final_name = (name or "").strip() or default_playlist_name(len(ids), now)
        log_step(f"Publishing playlist '{final_name}' ({len(ids)} tracks)...")

        user_id = self._verified_user_id()
        playlist = self._create_playlist(user_id, final_name)
        playlist_id = playlist["id"]
        playlist_url = (playlist.get("external_urls") or {}).get("spotify")

        chunks = chunk_uris([f"spotify:track:{tid}" for tid in ids], self.chunk_size)
        with ThreadPoolExecutor(max_workers=min(FETCH_WORKERS, len(chunks))) as executor:
            results = list(
                executor.map(lambda uris: self._add_chunk(playlist_id, uris), chunks)
            )

        failed_chunks: List[Dict[str, Any]] = []
        tracks_added = 0
        for index, (uris, result) in enumerate(zip(chunks, results)):
            log_progress(index + 1, len(chunks), prefix="  Add-tracks chunks")
            if result.ok:
                tracks_added += len(uris)
                continue
            failed_chunks.append(
                {
                    "index": index,
                    "uris": uris,
                    "status": result.status,
                    "detail": result.detail,
                }
            )

        if failed_chunks:
            log_error(
                f"{len(failed_chunks)}/{len(chunks)} add-tracks chunks failed "
                f"for playlist {playlist_id}."
            )
            raise PartialPublishFailure(
                playlist_id=playlist_id,
                playlist_url=playlist_url,
                failed_chunks=failed_chunks,
                tracks_added=tracks_added,
            )

        log_success(f"Playlist '{final_name}' published with {tracks_added} tracks.")
        return PublishResult(
            playlist_id=playlist_id,
            playlist_url=playlist_url,
            tracks_added=tracks_added,
        )
