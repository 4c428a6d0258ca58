"""
Database engine, session factory, and metadata shared across the application.

Each table stands in for one collection of the document store.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from carenow.core.config import settings

logger = logging.getLogger(__name__)


Base: DeclarativeMeta = declarative_base()


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.database_echo, "future": True}
    if db_url.startswith("sqlite"):
        # Sessions are used from the store executor thread, not the loop thread
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for the configured document store."""
    db_url = url or settings.database_url
    engine = create_engine(db_url, **_build_engine_kwargs(db_url))
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory; objects stay usable after commit so flows can hold them."""
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


def init_db(engine: Engine) -> None:
    """Create every table registered on ``Base``."""
    import carenow.models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))


__all__ = ["Base", "create_db_engine", "create_session_factory", "init_db"]
