from __future__ import annotations

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from ..config import DEFAULT_DATABASE_URL

# User-created prompts live here. DATABASE_URL picks the backend; the default
# is a SQLite file in the working directory.
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite must share one connection or each thread sees an empty DB
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, echo=False, future=True, **_engine_kwargs(DATABASE_URL))
SessionLocal = scoped_session(sessionmaker(bind=engine, autocommit=False, autoflush=False))

Base = declarative_base()


def init_db():
    """Call once on startup to create tables."""
    from . import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=engine)
