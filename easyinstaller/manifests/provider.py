"""Manifest discovery and change notification.

The provider reads every ``*.json`` file of one flat directory and returns
the manifests that validate. It holds no installation state: ``load()`` can
be called any number of times and never writes to disk.

Change detection
----------------
The directory is polled on a daemon thread (``manifest-watcher``) by
comparing the ``(mtime, size)`` of each manifest file with the previous
cycle. Any difference in the file set produces exactly one
:class:`ManifestsChanged` event describing every file that was added,
removed or modified since the last cycle. Consumers either register a
callback with :meth:`ManifestProvider.subscribe` or pull events from the
queue returned by :meth:`ManifestProvider.watch`. :meth:`dispose` stops the
thread and detaches every consumer.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from easyinstaller.config import ConfigError

from .loader import load_manifest_file
from .models import ManifestDescriptor

_logging = logging.getLogger(__name__)

POLL_INTERVAL_S = 1.0

_Snapshot = dict[str, tuple[int, int]]


@dataclass(frozen=True)
class ManifestsChanged:
    """The manifest file set of ``directory`` changed."""

    directory: Path
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()


class ManifestSubscription:
    """Pull-style consumer of change events.

    ``poll()`` returns the next event or None on timeout or after
    ``close()``. Iterating yields events until the subscription is closed.
    """

    def __init__(self, on_close: Callable[[], None]):
        self._queue: queue.Queue[ManifestsChanged | None] = queue.Queue()
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: ManifestsChanged) -> None:
        if not self._closed:
            self._queue.put(event)

    def poll(self, timeout: float | None = None) -> ManifestsChanged | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def __iter__(self) -> Iterator[ManifestsChanged]:
        while True:
            event = self._queue.get()
            if event is None:
                return
            yield event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close()
        self._queue.put(None)

    def __enter__(self) -> ManifestSubscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _is_manifest_file(entry: os.DirEntry) -> bool:
    return entry.name.lower().endswith(".json") and entry.is_file()


class ManifestProvider:
    """Source of validated manifest descriptors for one directory."""

    def __init__(self, directory: Path | str, poll_interval: float = POLL_INTERVAL_S):
        if not str(directory).strip():
            raise ValueError("Manifest directory must be provided")

        self._directory = Path(directory).expanduser().resolve()
        self._directory.mkdir(parents=True, exist_ok=True)
        self._poll_interval = poll_interval

        self._lock = threading.Lock()
        self._listeners: list[Callable[[ManifestsChanged], None]] = []
        self._subscriptions: list[ManifestSubscription] = []
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._disposed = False
        self._snapshot = self._scan()

    @property
    def directory(self) -> Path:
        return self._directory

    def load(self) -> list[ManifestDescriptor]:
        """Read, validate and return every usable manifest.

        Files are processed in case-insensitive filename order. A file that
        cannot be parsed or validated is skipped with one warning; a file
        whose ``id`` repeats an earlier manifest's is skipped the same way.
        """
        self._ensure_open()

        try:
            with os.scandir(self._directory) as entries:
                paths = [Path(e.path) for e in entries if _is_manifest_file(e)]
        except FileNotFoundError:
            return []

        descriptors: list[ManifestDescriptor] = []
        seen_ids: set[str] = set()
        for path in sorted(paths, key=lambda p: p.name.lower()):
            try:
                descriptor = load_manifest_file(path)
            except (ConfigError, OSError) as e:
                _logging.warning("Skipping manifest %s: %s", path.name, e)
                continue

            key = descriptor.id.casefold()
            if key in seen_ids:
                _logging.warning(
                    "Skipping manifest %s: duplicate id '%s'", path.name, descriptor.id
                )
                continue

            seen_ids.add(key)
            descriptors.append(descriptor)

        _logging.debug("Loaded %d manifest(s) from %s", len(descriptors), self._directory)
        return descriptors

    def get(self, manifest_id: str) -> ManifestDescriptor | None:
        """Return the manifest whose id matches ``manifest_id`` (case-insensitive)."""
        wanted = manifest_id.casefold()
        return next((d for d in self.load() if d.id.casefold() == wanted), None)

    def subscribe(
        self, callback: Callable[[ManifestsChanged], None]
    ) -> Callable[[], None]:
        """Register ``callback`` for change events and start watching.

        Returns:
            A function that removes the callback again
        """
        self._ensure_open()
        with self._lock:
            self._listeners.append(callback)
        self._start()

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def watch(self) -> ManifestSubscription:
        """Return a queue-backed subscription to change events."""
        unsubscribe: Callable[[], None] = lambda: None

        def on_close() -> None:
            unsubscribe()
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        subscription = ManifestSubscription(on_close)
        with self._lock:
            self._subscriptions.append(subscription)
        unsubscribe = self.subscribe(subscription._deliver)
        return subscription

    def check_for_changes(self) -> ManifestsChanged | None:
        """Run one polling cycle and notify listeners if anything changed."""
        current = self._scan()
        with self._lock:
            previous = self._snapshot
            self._snapshot = current
            listeners = list(self._listeners)

        if current == previous:
            return None

        event = ManifestsChanged(
            directory=self._directory,
            added=tuple(sorted(current.keys() - previous.keys())),
            removed=tuple(sorted(previous.keys() - current.keys())),
            modified=tuple(
                sorted(
                    name
                    for name in current.keys() & previous.keys()
                    if current[name] != previous[name]
                )
            ),
        )
        _logging.debug(
            "Manifest directory changed: +%s -%s ~%s",
            event.added,
            event.removed,
            event.modified,
        )

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                _logging.exception("Manifest change listener failed")

        return event

    def dispose(self) -> None:
        """Stop watching and detach all consumers. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        self._stop.set()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(self._poll_interval * 2, 1.0))

        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()

        with self._lock:
            self._listeners.clear()
            self._subscriptions.clear()

    def __enter__(self) -> ManifestProvider:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def _ensure_open(self) -> None:
        if self._disposed:
            raise RuntimeError("ManifestProvider has been disposed")

    def _start(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._poll_loop, daemon=True, name="manifest-watcher"
            )
        self._thread.start()
        _logging.debug(
            "Watching %s (poll every %.1fs)", self._directory, self._poll_interval
        )

    def _poll_loop(self) -> None:
        while not self._stop.wait(self._poll_interval):
            try:
                self.check_for_changes()
            except OSError as e:
                _logging.warning("Unable to scan %s: %s", self._directory, e)

    def _scan(self) -> _Snapshot:
        snapshot: _Snapshot = {}
        try:
            with os.scandir(self._directory) as entries:
                for entry in entries:
                    try:
                        if not _is_manifest_file(entry):
                            continue
                        stat = entry.stat()
                    except FileNotFoundError:
                        continue
                    snapshot[entry.name] = (stat.st_mtime_ns, stat.st_size)
        except FileNotFoundError:
            return {}
        return snapshot


__all__ = [
    "POLL_INTERVAL_S",
    "ManifestsChanged",
    "ManifestSubscription",
    "ManifestProvider",
]
