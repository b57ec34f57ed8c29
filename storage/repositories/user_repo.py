"""User profile repository: the remote record store, keyed by email."""

import asyncpg
import structlog
from typing import Any
from config.constants import UPDATABLE_COLUMNS
from config.settings import settings
from profile_edit.protocols import RemoteStoreError
from utils.retry import async_retry, sanitize_error

log = structlog.get_logger(__name__)

# Faults worth another attempt: dropped or refused connections
_TRANSIENT_ERRORS = (
    OSError,
    asyncpg.CannotConnectNowError,
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.TooManyConnectionsError,
)
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

_retry = async_retry(retries=settings.remote_retry_attempts, exceptions=_TRANSIENT_ERRORS)


class UserRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @_retry
    async def _fetch(self, email: str) -> dict[str, Any] | None:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT email, address, apartment, city, state, country, zip
                FROM users WHERE email = $1
                """,
                email,
            )
        return dict(row) if row else None

    @_retry
    async def _execute(self, query: str, *args: Any) -> str:
        async with self._pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def lookup(self, email: str) -> dict[str, Any] | None:
        """Fetch the profile record for an email, or None if there is none."""
        try:
            return await self._fetch(email)
        except _STORE_ERRORS as e:
            log.error("user_lookup_failed", error=sanitize_error(str(e)))
            raise RemoteStoreError("lookup failed", key=email) from e

    async def update(self, email: str, partial: dict[str, str]) -> None:
        """Write a partial record. Only whitelisted columns may be set."""
        if not partial:
            raise ValueError("partial update needs at least one field")
        unknown = set(partial) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"columns not updatable: {sorted(unknown)}")

        columns = sorted(partial)
        assignments = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=2))
        query = f"UPDATE users SET {assignments}, updated_at = NOW() WHERE email = $1"
        try:
            result = await self._execute(query, email, *(partial[c] for c in columns))
        except _STORE_ERRORS as e:
            log.error("user_update_failed", columns=columns, error=sanitize_error(str(e)))
            raise RemoteStoreError("update failed", key=email) from e

        if int(result.split()[-1]) == 0:
            log.warning("user_update_no_match", columns=columns)
            raise RemoteStoreError("no record matched", key=email)
        log.info("user_updated", columns=columns)
