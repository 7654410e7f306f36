"""Session-backed implementation of the `analysis.store.Store` port."""

from __future__ import annotations

from typing import Any

from django.http import HttpRequest


class SessionStore:
    """Store values in the user's session under a key namespace.

    Args:
        request: Request whose session holds the values.
        namespace: Prefix applied to every key.
    """

    def __init__(self, request: HttpRequest, *, namespace: str = "actify") -> None:
        self._session = request.session
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def get(self, key: str, default: Any = None) -> Any:
        return self._session.get(self._key(key), default)

    def set(self, key: str, value: Any) -> None:
        self._session[self._key(key)] = value
        self._session.modified = True
