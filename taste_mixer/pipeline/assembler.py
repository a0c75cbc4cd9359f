from enum import Enum
from typing import Iterable, List

from taste_mixer.config import MAX_PLAYLIST_SIZE
from taste_mixer.core import CandidateTrack


class PlaylistMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"


def assemble(
    filtered: List[CandidateTrack],
    mode: PlaylistMode,
    existing: Iterable[CandidateTrack] = (),
    max_size: int = MAX_PLAYLIST_SIZE,
) -> List[CandidateTrack]:
    """
    Bound the generated tracks and merge them into the working playlist.

    The first `max_size` generated tracks are kept in aggregation order (no
    popularity ranking). REPLACE discards `existing`. APPEND keeps the first
    `max_size` entries of `existing` in order and fills the remaining capacity
    with generated tracks whose id it does not contain yet.
    """
    batch = list(filtered[:max_size])
    if PlaylistMode(mode) == PlaylistMode.REPLACE:
        return batch

    result = list(existing)[:max_size]
    seen = {t.id for t in result}
    for track in batch:
        if len(result) >= max_size:
            break
        if track.id in seen:
            continue
        seen.add(track.id)
        result.append(track)
    return result


def remove_track(playlist: List[CandidateTrack], track_id: str) -> List[CandidateTrack]:
    """Working playlist without the entry `track_id`."""
    return [t for t in playlist if t.id != track_id]
