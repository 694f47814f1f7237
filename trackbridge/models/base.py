"""Database base configuration for the SQL mapping store"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if "sqlite" in database_url else {},
    )


def make_session_factory(engine: Engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine):
    """Create tables (idempotent)"""
    # Ensure all models are imported so SQLAlchemy metadata is populated.
    import trackbridge.models.synced_issue  # noqa: F401  (import for side-effects)

    Base.metadata.create_all(bind=engine)
