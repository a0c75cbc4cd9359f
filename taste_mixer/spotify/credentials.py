"""Credential store for the OAuth token set.

The store owns a single Credentials reference. Readers always see either the
previous or the new credential set: the reference is swapped in one
assignment under a lock, and the optional JSON mirror is written atomically.
"""

import threading
from pathlib import Path
from typing import Optional

from taste_mixer.core import (
    Credentials,
    delete_file,
    log_info,
    log_warning,
    read_json,
    write_json,
)


class CredentialStore:
    def __init__(self, path: Optional[str | Path] = None):
        self._path = path
        self._credentials: Optional[Credentials] = None
        self._lock = threading.Lock()

    def load(self) -> Optional[Credentials]:
        """
        Initialise the store from its JSON mirror (startup).

        A missing or malformed file leaves the store empty.
        """
        if self._path is None:
            return self.get()

        def _on_error(e: Exception) -> None:
            log_warning("Stored Spotify token is corrupted; ignoring it.")

        data = read_json(self._path, default=None, on_error=_on_error)
        credentials = Credentials.from_dict(data) if isinstance(data, dict) else None
        with self._lock:
            self._credentials = credentials
        if credentials is not None:
            log_info("Loaded stored Spotify credentials.")
        return credentials

    def get(self) -> Optional[Credentials]:
        with self._lock:
            return self._credentials

    def replace(self, credentials: Credentials) -> None:
        with self._lock:
            self._credentials = credentials
            if self._path is not None:
                write_json(self._path, credentials.to_dict())

    def clear(self) -> None:
        """Drop all credentials (logout or irrecoverable refresh failure)."""
        with self._lock:
            self._credentials = None
            if self._path is not None:
                delete_file(self._path)

    @property
    def is_empty(self) -> bool:
        return self.get() is None
