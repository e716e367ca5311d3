"""
Engine and session factory for the results/feedback datastore.

The engine is built once per process from `Settings`; pool tuning only
applies to server databases, SQLite gets a shared-thread connection instead.
"""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from authenticity.config import Settings, get_settings
from authenticity.storage.base import Base

# Ensure models are imported so Base.metadata has tables.
from authenticity.storage import models as _models  # noqa: F401,E402


def engine_options(settings: Settings) -> Dict[str, Any]:
    if settings.database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
    }


def build_engine(settings: Settings) -> Engine:
    return create_engine(settings.database_url, **engine_options(settings))


engine = build_engine(get_settings())
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
