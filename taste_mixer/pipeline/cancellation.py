import threading
from typing import Optional

from taste_mixer.core import GenerationCancelled


class CancellationToken:
    """Cooperative cancellation flag passed through a generation fan-out."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled("Generation superseded by a newer request.")


class RequestSupersession:
    """
    Hands out one token per request and cancels the previous one, so that a
    newer generation invalidates a stale in-flight one.
    """

    def __init__(self) -> None:
        self._current: Optional[CancellationToken] = None
        self._lock = threading.Lock()

    def begin(self) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._current = token
        return token

    def finish(self, token: CancellationToken) -> None:
        with self._lock:
            if self._current is token:
                self._current = None
