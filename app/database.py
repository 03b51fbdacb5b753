"""Database engine, session factory and request-scoped sessions."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owned connection pool handle.

    One instance is created per process (or per test) and handed to whoever
    needs sessions. Nothing here touches the network until ``connect`` is
    called.
    """

    def __init__(
        self,
        url: str,
        connect_retries: int = 5,
        connect_backoff_max: int = 10,
        logger: Optional[logging.Logger] = None,
        **engine_kwargs,
    ):
        self.url = url
        self.connect_retries = max(1, connect_retries)
        self.connect_backoff_max = connect_backoff_max
        self.logger = logger or logging.getLogger(__name__)

        if url.startswith("sqlite"):
            # Sessions are used from FastAPI's threadpool
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def connect(self) -> None:
        """Probe the database with exponential backoff, re-raising the last failure."""
        retrying = Retrying(
            stop=stop_after_attempt(self.connect_retries),
            wait=wait_exponential(multiplier=1, min=1, max=self.connect_backoff_max),
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                self.ping()
        self.logger.info(f"Database connected: {self.engine.url.render_as_string(hide_password=True)}")

    def is_available(self) -> bool:
        """Check database reachability without retrying."""
        try:
            self.ping()
        except Exception as e:
            self.logger.warning(f"Database ping failed: {e}")
            return False
        return True

    def create_all(self) -> None:
        """Create missing tables."""
        # Register models on Base.metadata
        from app import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session for scripts and the CLI."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    database: Database = request.app.state.database
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
