"""
Database initialization and migration utilities.
"""
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from specgraph.db.models import Base
from specgraph.config import get_db_components

logger = logging.getLogger(__name__)


def create_database_if_not_exists():
    """Create the database if it doesn't exist (PostgreSQL only)."""
    db_components = get_db_components()
    if make_url(db_components["db_url"]).get_backend_name() != "postgresql":
        logger.info("Non-PostgreSQL database, skipping database creation")
        return

    db_name = db_components["db_name"]
    engine = create_engine(db_components["db_url_without_name"], isolation_level="AUTOCOMMIT")

    with engine.connect() as conn:
        # Check if database exists
        result = conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": db_name}
        )

        if not result.fetchone():
            logger.info(f"Creating database: {db_name}")
            # Note: Database names cannot be parameterized in PostgreSQL
            # db_name comes from the parsed DATABASE_URL
            conn.execute(text(f'CREATE DATABASE "{db_name}"'))
            logger.info(f"Database {db_name} created successfully")
        else:
            logger.info(f"Database {db_name} already exists")

    engine.dispose()


def create_tables(url: str | None = None):
    """Create all tables defined in models."""
    engine = create_engine(url or get_db_components()["db_url"])

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")

    engine.dispose()


def drop_all_tables(url: str | None = None):
    """Drop all tables (useful for testing)."""
    engine = create_engine(url or get_db_components()["db_url"])

    logger.info("Dropping all database tables...")
    Base.metadata.drop_all(bind=engine)
    logger.info("All tables dropped successfully")

    engine.dispose()


def init_database():
    """Complete database initialization."""
    logger.info("Initializing database...")
    create_database_if_not_exists()
    create_tables()
    logger.info("Database initialization complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
