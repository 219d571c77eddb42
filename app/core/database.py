"""Database handle with an explicit open/close lifecycle and the session dependency."""

import json
import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine and session factory for one application instance.

    Constructed by the app factory, opened in the lifespan startup hook and
    closed on shutdown. Nothing in the app reaches for a module-level engine.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        kwargs: dict = {
            "echo": self.echo,
            # Keep non-ASCII tags readable so substring search over the JSON column matches them.
            "json_serializer": lambda obj: json.dumps(obj, ensure_ascii=False),
        }
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory databases live as long as their single connection.
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self._engine = create_engine(self.url, **kwargs)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self._engine
        )
        logger.info("Database opened: dialect=%s", self._engine.dialect.name)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database closed")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def create_all(self) -> None:
        """Create all tables (dev and tests; production uses alembic)."""
        Base.metadata.create_all(self.engine)

    def is_connected(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session from the app's handle and closes it when done."""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
