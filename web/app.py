"""Quart app factory for the profile edit screens."""

import asyncio
import structlog
from quart import Quart
from config.settings import settings
from config.logging_config import setup_logging
from profile_edit.protocols import RecordStore

log = structlog.get_logger(__name__)


def create_app(store: RecordStore | None = None) -> Quart:
    """Create and configure the Quart web application.

    When no record store is given, a PostgreSQL-backed one is built on startup.
    """
    app = Quart(
        __name__,
        template_folder="templates",
    )
    app.secret_key = settings.web_secret_key
    app.record_store = store  # type: ignore[attr-defined]

    from web.routes.profile import profile_bp

    app.register_blueprint(profile_bp)

    @app.before_serving
    async def open_store() -> None:
        if app.record_store is not None:  # type: ignore[attr-defined]
            return
        from storage.database import create_pool, run_migrations
        from storage.repositories.user_repo import UserRepository

        app.db_pool = await create_pool()  # type: ignore[attr-defined]
        await run_migrations(app.db_pool)  # type: ignore[attr-defined]
        app.record_store = UserRepository(app.db_pool)  # type: ignore[attr-defined]

    @app.after_serving
    async def close_store() -> None:
        pool = getattr(app, "db_pool", None)
        if pool is not None:
            await pool.close()
            app.db_pool = None  # type: ignore[attr-defined]
            log.info("database_pool_closed")

    @app.route("/health")
    async def health():
        return {"status": "ok"}, 200

    return app


async def start_web() -> None:
    """Start the web server."""
    app = create_app()
    log.info("starting_profile_edit_web", port=settings.web_port)
    await app.run_task(host="0.0.0.0", port=settings.web_port)


def main() -> None:
    setup_logging()
    asyncio.run(start_web())


if __name__ == "__main__":
    main()
