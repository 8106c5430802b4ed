"""Database engine, session management and raw snapshot slot access."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from barcoder.config import get_settings
from barcoder.db.models import Base, SnapshotORM

_engines: Dict[Path, Engine] = {}
_session_factories: Dict[Path, sessionmaker[Session]] = {}
logger = logging.getLogger(__name__)


def _resolve_path(database_path: Path | None) -> Path:
    return (database_path or get_settings().database_path).expanduser()


def get_engine(database_path: Path | None = None) -> Engine:
    """Return the SQLite engine for ``database_path`` (settings default), creating tables once."""

    db_path = _resolve_path(database_path)
    engine = _engines.get(db_path)
    if engine is not None:
        return engine

    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}", future=True, echo=False)
    Base.metadata.create_all(engine)
    logger.debug("Opened snapshot database %s", db_path)

    _engines[db_path] = engine
    _session_factories[db_path] = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, future=True
    )
    return engine


@contextmanager
def session_scope(database_path: Path | None = None) -> Generator[Session, None, None]:
    """Context manager yielding a session with automatic commit/rollback."""

    db_path = _resolve_path(database_path)
    if db_path not in _session_factories:
        get_engine(db_path)
    session = _session_factories[db_path]()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def read_slot(slot: str, database_path: Path | None = None) -> Optional[str]:
    """Return the raw JSON payload stored under ``slot``, or None when never written."""

    with session_scope(database_path) as session:
        row = session.get(SnapshotORM, slot)
        return row.payload if row is not None else None


def write_slot(slot: str, payload: str, database_path: Path | None = None) -> None:
    """Overwrite ``slot`` with ``payload`` wholesale."""

    with session_scope(database_path) as session:
        session.merge(SnapshotORM(slot=slot, payload=payload))


def reset_repository_state() -> None:
    """Dispose cached engines (intended for testing)."""

    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
    _session_factories.clear()


__all__ = ["get_engine", "read_slot", "reset_repository_state", "session_scope", "write_slot"]
