"""Database helpers for the contract store."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from econtract_app.api.limits import DB_TIMEOUT_S

from .tables import Base

DEFAULT_DSN = "sqlite:///var/contracts.db"


def get_engine(dsn: str | None = None, echo: bool = False) -> Engine:
    """Return SQLAlchemy engine.

    Defaults to a SQLite database under ``var/``.  In-memory SQLite shares a
    single connection so every session sees the same tables.
    """

    dsn = dsn or DEFAULT_DSN
    if dsn.startswith("sqlite"):
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                dsn,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        if dsn.startswith("sqlite:///"):
            db_path = Path(dsn.replace("sqlite:///", "", 1))
            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path
            db_path.parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            dsn,
            echo=echo,
            connect_args={"timeout": DB_TIMEOUT_S, "check_same_thread": False},
        )
    return create_engine(
        dsn,
        echo=echo,
        pool_pre_ping=True,
        connect_args={"connect_timeout": DB_TIMEOUT_S},
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine | None = None) -> Engine:
    """Create the ``contracts`` and ``rate_limit_counters`` tables."""

    e = engine or get_engine()
    Base.metadata.create_all(e)
    return e


__all__ = ["DEFAULT_DSN", "get_engine", "make_session_factory", "init_db"]
