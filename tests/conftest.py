"""Shared test fixtures for the profile edit test suite."""

import asyncio
import pytest
from config.constants import Destination
from storage.profile_cache import MemoryProfileCache


# ── Database Pool Mock ──


class FakeRecord(dict):
    """Mimics asyncpg.Record: supports both dict-style and attribute access."""
    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError:
            raise AttributeError(key)


class FakeConnection:
    """Mock asyncpg connection with configurable return values."""

    def __init__(self):
        self.execute_results: list[str] = ["UPDATE 1"]
        self.fetch_results: list[list[dict]] = [[]]
        self.fetchrow_result: dict | None = None
        self.errors: list[Exception] = []
        self._execute_calls: list[tuple] = []
        self._fetch_calls: list[tuple] = []
        self._fetchrow_calls: list[tuple] = []

    def _maybe_raise(self):
        if self.errors:
            raise self.errors.pop(0)

    async def execute(self, query, *args):
        self._execute_calls.append((query, args))
        self._maybe_raise()
        return self.execute_results.pop(0) if len(self.execute_results) > 1 else self.execute_results[0]

    async def fetch(self, query, *args):
        self._fetch_calls.append((query, args))
        self._maybe_raise()
        result = self.fetch_results.pop(0) if self.fetch_results else []
        return [FakeRecord(r) for r in result]

    async def fetchrow(self, query, *args):
        self._fetchrow_calls.append((query, args))
        self._maybe_raise()
        return FakeRecord(self.fetchrow_result) if self.fetchrow_result else None

    def transaction(self):
        return FakeTransaction()


class FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class FakePool:
    """Mock asyncpg.Pool that yields a FakeConnection."""

    def __init__(self):
        self.conn = FakeConnection()

    def acquire(self):
        return FakePoolContext(self.conn)


class FakePoolContext:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def fake_pool():
    """Provide a mock database pool."""
    return FakePool()


@pytest.fixture
def fake_conn(fake_pool):
    """Direct access to the underlying FakeConnection."""
    return fake_pool.conn


# ── Session collaborators ──


class FakeRecordStore:
    """In-memory record store that records every call.

    Set ``lookup_error``/``update_error`` to make the next calls raise, or
    ``lookup_gate``/``gate`` to hold ``lookup``/``update`` until the event is set.
    """

    def __init__(self, records=None):
        self.records = {key: dict(value) for key, value in (records or {}).items()}
        self.lookup_calls: list[str] = []
        self.update_calls: list[tuple[str, dict]] = []
        self.lookup_error: Exception | None = None
        self.update_error: Exception | None = None
        self.lookup_gate: asyncio.Event | None = None
        self.gate: asyncio.Event | None = None

    async def lookup(self, key):
        self.lookup_calls.append(key)
        if self.lookup_gate is not None:
            await self.lookup_gate.wait()
        if self.lookup_error is not None:
            raise self.lookup_error
        record = self.records.get(key)
        return dict(record) if record is not None else None

    async def update(self, key, partial):
        self.update_calls.append((key, dict(partial)))
        if self.gate is not None:
            await self.gate.wait()
        if self.update_error is not None:
            raise self.update_error
        self.records.setdefault(key, {}).update(partial)


class RecordingNavigator:
    def __init__(self):
        self.destinations: list[Destination] = []

    async def redirect_to(self, destination):
        self.destinations.append(destination)


@pytest.fixture
def store():
    return FakeRecordStore({
        "a@x.com": {"email": "a@x.com", "password": "old", "address": "221B Baker St", "city": "London"},
    })


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def cache():
    return MemoryProfileCache({
        "email": "a@x.com",
        "name": "Ada",
        "address": "221B Baker St",
        "apartment": "",
        "city": "London",
        "state": "",
        "country": "UK",
        "zip": "NW1",
    })
