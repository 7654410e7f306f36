"""Storage port for small pieces of per-user UI state.

Callers receive a `Store` instead of reaching into sessions or other ambient
state, so the analysis code stays storage-agnostic.
"""

from __future__ import annotations

from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


class Store(Protocol[T]):
    """Key/value persistence port."""

    def get(self, key: str, default: T | None = None) -> T | None:
        """Return the stored value for `key`, or `default` when missing."""

    def set(self, key: str, value: T) -> None:
        """Persist `value` under `key`."""


class InMemoryStore(Generic[T]):
    """Dict-backed Store used by tests and offline scripts."""

    def __init__(self, initial: dict[str, T] | None = None) -> None:
        self._values: dict[str, T] = dict(initial or {})

    def get(self, key: str, default: T | None = None) -> T | None:
        return self._values.get(key, default)

    def set(self, key: str, value: T) -> None:
        self._values[key] = value
