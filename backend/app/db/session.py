"""
Database session management.
"""
import logging
import time
from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from app.db.base import Base
import app.models  # noqa: F401  register models on Base.metadata

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Built once by the application factory, connected on startup and
    disposed on shutdown. Tests pass their own instance (e.g. in-memory SQLite).
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # needed for SQLite + FastAPI
        self.url = url
        self.engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args=connect_args,
            **engine_kwargs
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def connect(self, retries: int = 5, interval: float = 5.0) -> None:
        """Check connectivity with a fixed backoff, then create missing tables."""
        for attempt in range(1, retries + 1):
            try:
                with self.engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                break
            except OperationalError as e:
                logger.error(f"Database connection attempt {attempt}/{retries} failed: {e}")
                if attempt == retries:
                    raise RuntimeError("Failed to connect to the database after multiple attempts") from e
                logger.info(f"Retrying in {interval} seconds...")
                time.sleep(interval)

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database connected")

    def close(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Session:
    """Dependency for getting database session."""
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
