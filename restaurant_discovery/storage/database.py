from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DATABASE_CONFIG, DatabaseConfig
from .tables import Base

logger = logging.getLogger(__name__)


class Database:
    """Engine plus session factory for one relational store."""

    def __init__(self, config: DatabaseConfig = DEFAULT_DATABASE_CONFIG) -> None:
        self.config = config
        engine_kwargs: dict = {"echo": config.echo}
        if config.url.startswith("sqlite"):
            # Request handlers run in a threadpool.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        if config.is_in_memory_sqlite:
            # One shared connection, otherwise each session gets an empty database.
            engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(config.url, **engine_kwargs)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info("Database tables ready at %s", self.engine.url)

    def drop_tables(self) -> None:
        Base.metadata.drop_all(self.engine)

    def reset(self) -> None:
        self.drop_tables()
        self.create_tables()
