"""Cooperative cancellation for install runs."""

import threading

from easyinstaller.errors import InstallCancelled


class CancellationToken:
    """Thread-safe flag the caller sets and the engine checks.

    The engine only looks at the token between stages and between items,
    so a cancel request takes effect at the next checkpoint.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InstallCancelled()


__all__ = ["CancellationToken"]
