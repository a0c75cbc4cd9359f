from typing import List, Mapping

from taste_mixer.config import MOOD_TOLERANCE
from taste_mixer.core import AudioFeatures, CandidateTrack, MoodTarget


def matches_mood(
    features: AudioFeatures,
    target: MoodTarget,
    tolerance: float = MOOD_TOLERANCE,
) -> bool:
    """
    Fixed-tolerance band match.

    Energy, valence and danceability must lie within ±tolerance of the target.
    Acousticness is bounded from above only: less acoustic than requested
    always passes.
    """
    return (
        abs(features.energy - target.energy) <= tolerance
        and abs(features.valence - target.valence) <= tolerance
        and abs(features.danceability - target.danceability) <= tolerance
        and features.acousticness <= target.acousticness + tolerance
    )


def filter_by_mood(
    tracks: List[CandidateTrack],
    target: MoodTarget,
    features: Mapping[str, AudioFeatures],
    tolerance: float = MOOD_TOLERANCE,
) -> List[CandidateTrack]:
    """
    Keep the tracks whose audio features match the mood target.

    With no feature data at all the filter cannot judge and returns the input
    unchanged; a track missing from a non-empty feature map is excluded.
    """
    if not features:
        return list(tracks)

    kept: List[CandidateTrack] = []
    for track in tracks:
        track_features = features.get(track.id)
        if track_features is None:
            continue
        if matches_mood(track_features, target, tolerance):
            kept.append(track)
    return kept
