"""Public façade for the taste_mixer.core package.

This module exposes logging helpers, filesystem utilities, the error taxonomy
and the base models that are safe to import from other packages. Callers
should import these cross-cutting concerns from this façade instead of the
internal submodules.
"""

from .errors import (
    AuthStateError,
    ConfigError,
    GenerationCancelled,
    PartialPublishFailure,
    ProviderRejected,
    ProviderUnavailable,
    PublishError,
    TasteMixerError,
)
from .fs_utils import delete_file, ensure_parent_dir, read_json, write_json
from .logging_config import configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_progress,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import (
    ArtistSeed,
    AudioFeatures,
    CandidateTrack,
    Credentials,
    GenreSeed,
    MoodTarget,
    PublishResult,
    Seed,
    SeedKind,
    SeedSelection,
    TrackSeed,
)

__all__ = [
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "log_progress",
    "ensure_parent_dir",
    "write_json",
    "read_json",
    "delete_file",
    "TasteMixerError",
    "ConfigError",
    "ProviderRejected",
    "ProviderUnavailable",
    "AuthStateError",
    "GenerationCancelled",
    "PublishError",
    "PartialPublishFailure",
    "Credentials",
    "SeedKind",
    "ArtistSeed",
    "GenreSeed",
    "TrackSeed",
    "Seed",
    "SeedSelection",
    "MoodTarget",
    "CandidateTrack",
    "AudioFeatures",
    "PublishResult",
]
