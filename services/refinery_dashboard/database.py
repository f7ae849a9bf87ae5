# services/refinery_dashboard/database.py

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from config import settings

DATABASE_URL = settings.DATABASE_URL

IS_SQLITE = DATABASE_URL.startswith("sqlite")

# SQLite has no schemas, tables live in the default namespace there
REFINERY_SCHEMA = None if IS_SQLITE else settings.DB_SCHEMA


def _engine_kwargs() -> dict:
    if not IS_SQLITE:
        return {"pool_pre_ping": True}
    kwargs = {"connect_args": {"check_same_thread": False}}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty db
        kwargs["poolclass"] = StaticPool
    return kwargs


# SQLAlchemy engine
engine = create_engine(DATABASE_URL, future=True, **_engine_kwargs())

# Session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


class Base(DeclarativeBase):
    """Base class of the dashboard ORM models."""
    pass


def ensure_schema() -> None:
    """Creates the refinery schema if it does not exist yet."""
    if REFINERY_SCHEMA is None:
        return
    with engine.begin() as conn:
        conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{REFINERY_SCHEMA}"'))


def get_db():
    """FastAPI dependency yielding a DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
