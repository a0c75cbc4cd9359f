from typing import Dict, Iterable, List

from taste_mixer.core import CandidateTrack


def aggregate(lists: Iterable[Iterable[CandidateTrack]]) -> List[CandidateTrack]:
    """
    Merge per-seed candidate lists into one flat pool keyed by track id.

    - tracks without an id are dropped
    - on duplicate ids the later copy replaces the earlier one (last write wins)
    - order is the insertion order of each id's first occurrence
    """
    unique: Dict[str, CandidateTrack] = {}
    for candidates in lists:
        for track in candidates:
            if track is None or not track.id:
                continue
            unique[track.id] = track
    return list(unique.values())
