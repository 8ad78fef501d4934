"""In-memory key cache with per-entry max age and bounded size.

Two disciplines share one interface:

- bounded: only the requested key is cached, entries expire after
  ``max_age`` and the oldest entry is evicted once ``max_size`` is exceeded;
- persistent (unbounded size): every key of every downloaded key set is
  cached.
"""

from __future__ import annotations

import abc
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Iterable

from .jwk import JSONWebKey


class KeyCacheError(Exception):
    """Base class for key cache lookup failures."""


class KeyNotFoundError(KeyCacheError):
    """Raised when no cached or matching key exists."""

    def __init__(self, message: str = "no keys has been found") -> None:
        super().__init__(message)


class KeyExpiredError(KeyCacheError):
    """Raised when a cached key exists but has aged out."""

    def __init__(self, message: str = "key exists but is expired") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class MaxAge:
    """Maximum residency time of a cache entry, ``None`` for no expiry."""

    seconds: float | None = None

    def __post_init__(self) -> None:
        if self.seconds is not None and self.seconds < 0:
            raise ValueError(f"max age must be >= 0, got {self.seconds}")

    @classmethod
    def of(cls, value: "MaxAge | float | timedelta") -> "MaxAge":
        if isinstance(value, MaxAge):
            return value
        if isinstance(value, timedelta):
            return cls(value.total_seconds())
        return cls(float(value))

    @property
    def unbounded(self) -> bool:
        return self.seconds is None


@dataclass(frozen=True)
class MaxSize:
    """Maximum number of cache entries, ``None`` for unbounded."""

    capacity: int | None = None

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 0:
            raise ValueError(f"max size must be >= 0, got {self.capacity}")

    @classmethod
    def of(cls, value: "MaxSize | int") -> "MaxSize":
        if isinstance(value, MaxSize):
            return value
        return cls(int(value))

    @property
    def unbounded(self) -> bool:
        return self.capacity is None


NO_EXPIRY = MaxAge()
UNBOUNDED = MaxSize()


class KeyCacher(abc.ABC):
    """Interface consumed by the JWK client to resolve keys by id."""

    @abc.abstractmethod
    def get(self, key_id: str) -> JSONWebKey:
        """Return the cached key for ``key_id``.

        Raises:
            KeyNotFoundError: If nothing is cached under ``key_id``.
            KeyExpiredError: If the cached key has aged out.
        """

    @abc.abstractmethod
    def add(self, key_id: str, keys: Iterable[JSONWebKey]) -> JSONWebKey:
        """Cache the key matching ``key_id`` from a downloaded key set.

        Raises:
            KeyNotFoundError: If no key in ``keys`` matches ``key_id``.
        """


@dataclass
class _Entry:
    key: JSONWebKey
    added_at: float


class MemoryKeyCacher(KeyCacher):
    """Thread-safe in-memory key cache.

    Args:
        max_age: How long an entry stays valid; ``NO_EXPIRY`` disables the
            age check. Numbers are seconds.
        max_size: How many entries the cache holds; ``UNBOUNDED`` switches
            to persistent mode, where every key of an added key set is kept.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        max_age: MaxAge | float | timedelta = NO_EXPIRY,
        max_size: MaxSize | int = UNBOUNDED,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_age = MaxAge.of(max_age)
        self._max_size = MaxSize.of(max_size)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @property
    def max_age(self) -> MaxAge:
        return self._max_age

    @property
    def max_size(self) -> MaxSize:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key_id: object) -> bool:
        with self._lock:
            return key_id in self._entries

    def get(self, key_id: str) -> JSONWebKey:
        with self._lock:
            entry = self._entries.get(key_id)
            if entry is None:
                raise KeyNotFoundError()
            if self._is_expired(entry):
                del self._entries[key_id]
                raise KeyExpiredError()
            return entry.key

    def add(self, key_id: str, keys: Iterable[JSONWebKey]) -> JSONWebKey:
        persistent = self._max_size.unbounded
        with self._lock:
            target: JSONWebKey | None = None
            for candidate in keys:
                if candidate.key_id == key_id and not candidate.is_empty:
                    target = candidate
                if persistent and candidate.key_id is not None:
                    self._insert(candidate)

            if target is None:
                raise KeyNotFoundError()

            if not persistent:
                self._insert(target)
                self._handle_overflow()
            return target

    def _insert(self, key: JSONWebKey) -> None:
        # Re-inserting moves the entry to the end of the iteration order
        self._entries.pop(key.key_id, None)
        self._entries[key.key_id] = _Entry(key=key, added_at=self._clock())

    def _is_expired(self, entry: _Entry) -> bool:
        if self._max_age.unbounded:
            return False
        return self._clock() - entry.added_at > self._max_age.seconds

    def _handle_overflow(self) -> None:
        """Evict the single oldest entry if the cache is over capacity."""
        if len(self._entries) <= self._max_size.capacity:
            return
        oldest = min(self._entries, key=lambda kid: self._entries[kid].added_at)
        del self._entries[oldest]


def new_persistent_key_cacher() -> MemoryKeyCacher:
    """Return a cache that keeps every key it sees, forever."""
    return MemoryKeyCacher(NO_EXPIRY, UNBOUNDED)
