"""Public façade for the taste_mixer.pipeline package.

This module exposes the generation stages (seed resolution, aggregation,
mood filtering, assembly) and the orchestrating PlaylistGenerator. Other
packages should import pipeline behaviour from this façade instead of the
internal submodules.
"""

from .aggregation import aggregate
from .assembler import PlaylistMode, assemble, remove_track
from .cancellation import CancellationToken, RequestSupersession
from .generation import PlaylistGenerator
from .mood_filter import filter_by_mood, matches_mood
from .seeds import SeedResolver

__all__ = [
    "SeedResolver",
    "aggregate",
    "filter_by_mood",
    "matches_mood",
    "PlaylistMode",
    "assemble",
    "remove_track",
    "CancellationToken",
    "RequestSupersession",
    "PlaylistGenerator",
]
