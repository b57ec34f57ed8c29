"""Local caches for the current user's profile record."""

from collections.abc import MutableMapping
from typing import Any

import orjson
import structlog

from config.constants import CACHE_KEY

log = structlog.get_logger(__name__)


class MemoryProfileCache:
    """Process-local single-slot cache."""

    def __init__(self, record: dict[str, Any] | None = None) -> None:
        self._record = dict(record) if record is not None else None

    def read(self) -> dict[str, Any] | None:
        return dict(self._record) if self._record is not None else None

    def write(self, record: dict[str, Any]) -> None:
        self._record = dict(record)

    def clear(self) -> None:
        self._record = None


class CookieProfileCache:
    """Profile record kept as a JSON string under one key of a client-side session.

    Works on any mutable mapping; the web layer hands in ``quart.session``.
    """

    def __init__(self, storage: MutableMapping[str, Any], key: str = CACHE_KEY) -> None:
        self._storage = storage
        self._key = key

    def read(self) -> dict[str, Any] | None:
        raw = self._storage.get(self._key)
        if raw is None:
            return None
        try:
            record = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            log.error("cached_profile_unreadable", key=self._key, error=str(e))
            return None
        if not isinstance(record, dict):
            log.error("cached_profile_not_a_record", key=self._key, kind=type(record).__name__)
            return None
        return record

    def write(self, record: dict[str, Any]) -> None:
        self._storage[self._key] = orjson.dumps(record).decode()
