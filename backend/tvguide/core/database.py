from sqlalchemy.orm import sessionmaker
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
import asyncio
import logging

from tvguide.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for Postgres (production) or SQLite (local runs and tests).

    SQLite needs foreign keys switched on per connection so that
    ON DELETE CASCADE behaves the same as on Postgres.
    """
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # pool_recycle: recycle connections after N seconds to prevent stale connections
    # pool_pre_ping: verify connections before using them
    return create_engine(
        database_url,
        pool_size=kwargs.pop("pool_size", 10),
        max_overflow=kwargs.pop("max_overflow", 20),
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        **kwargs,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def init_db():
    from tvguide.models import Base
    loop = asyncio.get_running_loop()

    def _create_schema():
        try:
            Base.metadata.create_all(bind=engine)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database schema ready")
        except Exception as e:
            # Never fail startup on schema errors; requests will surface the real problem
            logger.warning(f"Schema creation failed or partially applied: {e}", exc_info=True)

    await loop.run_in_executor(None, _create_schema)
