"""
Database initialization script.
"""
import logging
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.session import Database

logger = logging.getLogger("app.db.init_db")


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    logger.info("Initializing database...")
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    database.connect(retries=settings.DB_CONNECT_RETRIES, interval=settings.DB_CONNECT_INTERVAL)
    database.close()
    logger.info("Database initialized successfully!")
