"""Cache of the latest telemetry sample per (path, source)."""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union

from signalk_units.data_interface import DEFAULT_SOURCE, DataPoint

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 30.0

Timestamp = Union[float, int, datetime]
Duration = Union[float, int, timedelta]


class _PathEntry:
    """Samples for one path. ``latest`` is whichever source was written last."""

    __slots__ = ("lock", "samples", "latest", "retired")

    def __init__(self):
        self.lock = threading.Lock()
        self.samples: dict[str, DataPoint] = {}
        self.latest: Optional[DataPoint] = None
        self.retired = False


def _to_seconds(value: Union[Timestamp, Duration]) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class DataPointCache:
    """Thread-safe store of the most recent DataPoint for each (path, source).

    Writes lock only the entry of the path being written; the global lock is
    taken only to create a path entry or to clear the cache. Reads take no
    lock: every DataPoint is immutable and each lookup reads one published
    reference.

    Within a path, writes are applied in arrival order. A later ``put`` always
    replaces the stored sample and becomes the path's default sample, whatever
    its timestamp.
    """

    def __init__(self, default_ttl: Duration = DEFAULT_TTL_S, clock: Callable[[], float] = time.time):
        self.default_ttl = _to_seconds(default_ttl)
        self._clock = clock
        self._entries: dict[str, _PathEntry] = {}
        self._entries_lock = threading.Lock()

    def _entry_for_write(self, path: str) -> _PathEntry:
        entry = self._entries.get(path)
        if entry is None:
            with self._entries_lock:
                entry = self._entries.get(path)
                if entry is None:
                    entry = _PathEntry()
                    self._entries[path] = entry
        return entry

    def put(
        self,
        path: str,
        source: Optional[str],
        value: Any,
        timestamp: Optional[Timestamp] = None,
        source_timestamp: Optional[Timestamp] = None,
    ) -> DataPoint:
        """Install or overwrite the sample for ``(path, source)``.

        Args:
            path: SignalK path.
            source: Source label, or None for single-source paths.
            value: Raw value as received.
            timestamp: Receipt time; defaults to now from the cache clock.
            source_timestamp: Time reported by the server, if any.
        """
        point = DataPoint(
            path=path,
            source=DEFAULT_SOURCE if source is None else source,
            value=value,
            timestamp=self._clock() if timestamp is None else _to_seconds(timestamp),
            source_timestamp=None if source_timestamp is None else _to_seconds(source_timestamp),
        )
        while True:
            entry = self._entry_for_write(path)
            with entry.lock:
                if entry.retired:
                    # cleared while we looked it up, write to the new entry
                    continue
                entry.samples[point.source] = point
                entry.latest = point
                return point

    def get(self, path: str, source: Optional[str] = None) -> Optional[DataPoint]:
        """Exact lookup when ``source`` is given, else the most recently written sample."""
        entry = self._entries.get(path)
        if entry is None:
            return None
        if source is None:
            return entry.latest
        return entry.samples.get(source)

    def age(self, path: str, source: Optional[str] = None) -> Optional[float]:
        """Seconds since the resolved sample was received, or None."""
        point = self.get(path, source)
        if point is None:
            return None
        return self._clock() - point.timestamp

    def is_fresh(self, path: str, source: Optional[str] = None, ttl: Optional[Duration] = None) -> bool:
        """True iff a sample exists and is no older than ``ttl`` (default TTL when omitted)."""
        age = self.age(path, source)
        if age is None:
            return False
        limit = self.default_ttl if ttl is None else _to_seconds(ttl)
        return age <= limit

    def sources(self, path: str) -> list[str]:
        entry = self._entries.get(path)
        if entry is None:
            return []
        with entry.lock:
            return list(entry.samples)

    def paths(self) -> list[str]:
        with self._entries_lock:
            return list(self._entries)

    def snapshot(self) -> dict[str, dict[str, DataPoint]]:
        """Point-in-time copy: path -> source -> DataPoint."""
        with self._entries_lock:
            entries = dict(self._entries)
        result = {}
        for path, entry in entries.items():
            with entry.lock:
                result[path] = dict(entry.samples)
        return result

    def clear(self) -> None:
        """Drop every sample, e.g. on disconnect."""
        with self._entries_lock:
            old = self._entries
            self._entries = {}
        for entry in old.values():
            with entry.lock:
                entry.retired = True
        logger.debug("Data point cache cleared (%d paths)", len(old))

    def __len__(self) -> int:
        with self._entries_lock:
            entries = list(self._entries.values())
        return sum(len(entry.samples) for entry in entries)

    def __repr__(self) -> str:
        return f"DataPointCache({len(self._entries)} paths)"
