import logging
import time
from collections.abc import Callable, Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        # SQLite ignores pool sizing; in-memory databases must share one connection.
        if url.database in (None, "", ":memory:"):
            return create_engine(
                url, connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
        connect_args={"connect_timeout": settings.db_connect_timeout},
    )


class Database:
    """Owns the engine (and its connection pool) for the lifetime of the process."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = build_engine(settings)
        logger.info("Database configured: %s", engine.url.render_as_string(hide_password=True))
        return cls(engine)

    def ping(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def wait_until_ready(
        self,
        attempts: int,
        backoff_seconds: float,
        backoff_factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        attempts = max(1, attempts)
        delay = backoff_seconds
        for attempt in range(1, attempts + 1):
            try:
                self.ping()
            except SQLAlchemyError as exc:
                if attempt == attempts:
                    logger.error("Database unreachable after %d attempts: %s", attempts, exc)
                    raise
                logger.warning(
                    "Database not reachable (attempt %d/%d): %s; retrying in %.1fs",
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
                sleep(delay)
                delay *= backoff_factor
            else:
                logger.info("Database connection established")
                return

    def create_schema(self) -> None:
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection pool closed")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session_factory()
    try:
        yield db
    finally:
        db.close()
