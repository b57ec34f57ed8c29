"""PostgreSQL pool setup and schema migrations for the users store."""

import asyncpg
import structlog
from pathlib import Path
from config.settings import settings

log = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_LEDGER_DDL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        name       TEXT PRIMARY KEY,
        applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


async def create_pool(dsn: str | None = None) -> asyncpg.Pool:
    """Open a pool sized for request-scoped lookups and updates. The caller owns it."""
    pool = await asyncpg.create_pool(
        dsn or settings.database_url,
        min_size=1,
        max_size=settings.database_pool_size,
    )
    log.info("database_pool_created", max_size=settings.database_pool_size)
    return pool


def pending_migrations(applied: set[str]) -> list[Path]:
    """Migration files not yet recorded in the ledger, in file-name order."""
    return [path for path in sorted(MIGRATIONS_DIR.glob("*.sql")) if path.name not in applied]


async def run_migrations(pool: asyncpg.Pool) -> list[str]:
    """Apply pending migrations, each in its own transaction. Returns the names applied."""
    async with pool.acquire() as conn:
        await conn.execute(_LEDGER_DDL)
        rows = await conn.fetch("SELECT name FROM schema_migrations")
        names: list[str] = []
        for path in pending_migrations({row["name"] for row in rows}):
            async with conn.transaction():
                await conn.execute(path.read_text())
                await conn.execute("INSERT INTO schema_migrations (name) VALUES ($1)", path.name)
            log.info("migration_applied", name=path.name)
            names.append(path.name)
    return names
