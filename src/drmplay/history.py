"""Durable resume/history store keyed by stream URL."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from diskcache import Cache, Timeout

from .models import HistoryEntry

logger = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, Timeout)


class StoreWriteError(RuntimeError):
    """Raised when the history medium cannot be read or written."""


class ResumeStore(Protocol):
    """Interface for remembering titles and playback positions per stream."""

    def record_entry(self, key: str, title: str) -> None:
        """Remember the display title for a stream."""

    def save_position(self, key: str, position_ms: int) -> None:
        """Remember the last playback offset for a stream."""

    def load_position(self, key: str) -> int:
        """Return the last playback offset for a stream, 0 if unknown."""


class DiskResumeStore:
    """ResumeStore persisted in an SQLite-backed diskcache directory.

    Each stream URL maps to one small record holding its title and last
    position. Records never expire; writing a field overwrites it in place
    and leaves the other field untouched.
    """

    def __init__(self, directory: Union[str, Path] = Path("history")) -> None:
        """
        Open (or create) the store.

        Args:
            directory: Directory holding the cache database
        """
        self.directory = Path(directory)
        try:
            self._cache = Cache(str(self.directory))
        except _STORE_ERRORS as exc:
            raise StoreWriteError(f"Failed to open history store at {self.directory}: {exc}") from exc
        logger.debug("Opened history store at %s", self.directory)

    def __enter__(self) -> "DiskResumeStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._cache.close()

    def record_entry(self, key: str, title: str) -> None:
        """
        Store the title for a stream, keeping any saved position.

        Args:
            key: Stream URL
            title: Display title
        """
        self._update(key, title=title)
        logger.info("Recorded history entry %r for %s", title, key)

    def save_position(self, key: str, position_ms: int) -> None:
        """
        Store the playback offset for a stream, keeping its title.

        Args:
            key: Stream URL
            position_ms: Offset in milliseconds
        """
        position_ms = int(position_ms)
        if position_ms < 0:
            raise ValueError("position_ms must not be negative")
        self._update(key, position_ms=position_ms)
        logger.debug("Saved position %d ms for %s", position_ms, key)

    def load_position(self, key: str) -> int:
        """
        Get the saved playback offset for a stream.

        Returns:
            Offset in milliseconds, 0 when nothing was saved
        """
        record = self._read(key)
        return int(record.get("position_ms", 0)) if record else 0

    def get_entry(self, key: str) -> Optional[HistoryEntry]:
        """Get everything remembered about a stream, or None."""
        record = self._read(key)
        return self._to_entry(key, record) if record is not None else None

    def entries(self) -> List[HistoryEntry]:
        """List every remembered stream, ordered by URL."""
        try:
            keys = sorted(self._cache.iterkeys())
            records = [(key, self._cache.get(key)) for key in keys]
        except _STORE_ERRORS as exc:
            raise StoreWriteError(f"Failed to read history: {exc}") from exc
        return [self._to_entry(key, record) for key, record in records if record is not None]

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return self._cache.get(key, default=None)
        except _STORE_ERRORS as exc:
            raise StoreWriteError(f"Failed to read history for {key}: {exc}") from exc

    def _update(self, key: str, **fields: Any) -> None:
        try:
            with self._cache.transact():
                record = dict(self._cache.get(key, default=None) or {})
                record.update(fields)
                self._cache.set(key, record)
        except _STORE_ERRORS as exc:
            raise StoreWriteError(f"Failed to write history for {key}: {exc}") from exc

    @staticmethod
    def _to_entry(key: str, record: Dict[str, Any]) -> HistoryEntry:
        return HistoryEntry(
            key=key,
            title=record.get("title", ""),
            last_position_ms=int(record.get("position_ms", 0)),
        )
