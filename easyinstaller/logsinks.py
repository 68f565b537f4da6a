"""Install log sinks.

An install run writes its user-facing log through a :class:`LogSink`. The
sinks compose: a run usually logs to a ``CompositeLogSink`` that fans out to
an in-memory ``BufferingLogSink`` (for the caller to display or inspect) and
a ``FileLogSink`` (the persisted install log).

Every rendered line has the form ``[yyyy-MM-dd HH:mm:ss] LEVEL: message``.
"""

from __future__ import annotations

import logging
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable

_logging = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogLevel(Enum):
    VERBOSE = "verbose"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def python_level(self) -> int:
        return _PYTHON_LEVELS[self]


_PYTHON_LEVELS = {
    LogLevel.VERBOSE: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogMessage:
    timestamp: datetime
    level: LogLevel
    text: str

    @classmethod
    def create(cls, level: LogLevel, text: str) -> LogMessage:
        return cls(timestamp=datetime.now(), level=level, text=text)

    def format(self) -> str:
        return f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] {self.level.name}: {self.text}"

    def __str__(self) -> str:
        return self.format()


class LogSink(ABC):
    """Destination for install log messages.

    Subclasses implement :meth:`log`; the level helpers accept
    ``%``-style arguments the same way :mod:`logging` does.
    """

    @abstractmethod
    def log(self, level: LogLevel, text: str) -> None:
        ...

    def verbose(self, message: str, *args: object) -> None:
        self.log(LogLevel.VERBOSE, message % args if args else message)

    def info(self, message: str, *args: object) -> None:
        self.log(LogLevel.INFO, message % args if args else message)

    def warn(self, message: str, *args: object) -> None:
        self.log(LogLevel.WARNING, message % args if args else message)

    def error(self, message: str, *args: object) -> None:
        self.log(LogLevel.ERROR, message % args if args else message)


class BufferingLogSink(LogSink):
    """Keeps every message in memory and notifies listeners per write.

    Appends never take a lock, so the install thread is never held up by a
    reader taking a snapshot. Listeners run synchronously on the logging
    thread; an exception in one listener is logged and does not reach the
    others or the caller.
    """

    def __init__(self) -> None:
        self._messages: list[LogMessage] = []
        self._listeners: list[Callable[[LogMessage], None]] = []
        self._listeners_lock = threading.Lock()

    def log(self, level: LogLevel, text: str) -> None:
        message = LogMessage.create(level, text)
        self._messages.append(message)

        for listener in tuple(self._listeners):
            try:
                listener(message)
            except Exception:
                _logging.debug("Log listener %r failed", listener, exc_info=True)

    def subscribe(self, listener: Callable[[LogMessage], None]) -> Callable[[], None]:
        """Call ``listener`` for each new message; returns an unsubscribe function."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def messages(self) -> tuple[LogMessage, ...]:
        """Snapshot of the messages logged so far, in insertion order."""
        return tuple(self._messages)

    def as_text(self) -> str:
        return "\n".join(m.format() for m in self.messages)

    def __len__(self) -> int:
        return len(self._messages)


def _lock_exclusive(file) -> None:
    if sys.platform == "win32":
        return
    import fcntl

    try:
        fcntl.flock(file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError as e:
        raise OSError(f"Log file {file.name} is in use by another writer") from e


class FileLogSink(LogSink):
    """Writes each message to a file as soon as it is logged.

    The file is created (or truncated) on construction and closed by
    :meth:`close` or on leaving a ``with`` block. On POSIX systems the sink
    holds an exclusive advisory lock on the file while it is open; a second
    sink for the same path fails with :class:`OSError`.
    """

    def __init__(self, path: Path | str):
        if path is None or not str(path).strip():
            raise ValueError("File path must be provided")

        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        # Truncated only after the lock is held.
        self._file = open(self._path, "a", encoding="utf-8")
        try:
            _lock_exclusive(self._file)
        except OSError:
            self._file.close()
            raise
        self._file.seek(0)
        self._file.truncate()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._file.closed

    def log(self, level: LogLevel, text: str) -> None:
        line = LogMessage.create(level, text).format()
        with self._lock:
            self._file.write(line + "\n")
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def __enter__(self) -> FileLogSink:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CompositeLogSink(LogSink):
    """Fans every message out to an ordered list of sinks."""

    def __init__(self, *sinks: LogSink):
        self._sinks = tuple(sinks)

    @property
    def sinks(self) -> tuple[LogSink, ...]:
        return self._sinks

    def log(self, level: LogLevel, text: str) -> None:
        for sink in self._sinks:
            try:
                sink.log(level, text)
            except Exception:
                # A failing sink must never fail the installation.
                continue

    def with_sink(self, sink: LogSink) -> CompositeLogSink:
        return CompositeLogSink(*self._sinks, sink)


class LoggingSink(LogSink):
    """Forwards install messages to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("easyinstaller.install")

    def log(self, level: LogLevel, text: str) -> None:
        self._logger.log(level.python_level, "%s", text)


__all__ = [
    "TIMESTAMP_FORMAT",
    "LogLevel",
    "LogMessage",
    "LogSink",
    "BufferingLogSink",
    "FileLogSink",
    "CompositeLogSink",
    "LoggingSink",
]
