"""
Database setup using SQLAlchemy.

We create:
- an Engine bound to the DATABASE_URL from config
- a session factory for API and collector sessions
- a Base class to declare ORM models
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for all ORM models
Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """Create the engine for `database_url` and make sure tables exist."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # The API hands sessions to worker threads
        connect_args["check_same_thread"] = False

    engine = create_engine(
        database_url,
        future=True,
        echo=False,  # set True if you want to see SQL in the logs
        connect_args=connect_args,
    )

    # Create tables on startup (no-op if they already exist)
    from resource_monitor import models  # noqa: F401  (registers the tables)

    Base.metadata.create_all(bind=engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory: each "unit of work" gets its own session."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        future=True,
    )
