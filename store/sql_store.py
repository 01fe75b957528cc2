"""SQLite SQLAlchemy store wrapper."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from core.errors import StorageError
from store.migrations import run_migrations

logger = logging.getLogger("tg.store")


def _configure_sqlite(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


class SQLStore:
    """Owns the SQLite engine and hands out transactional sessions.

    Lifecycle is explicit: construct to open, ``migrate()`` to bring the
    schema up to date, ``close()`` to dispose pooled connections. Components
    receive the store through their constructors; there is no global handle.
    """

    def __init__(self, db_path: Path, timeout: float = 30.0) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(
            f"sqlite+pysqlite:///{self.db_path}",
            connect_args={"timeout": timeout},
        )
        event.listen(self.engine, "connect", _configure_sqlite)
        self._session_factory = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )
        logger.info("SQLStore opened db=%s", self.db_path)

    def migrate(self) -> int:
        """Create missing tables and apply pending migrations."""
        try:
            version = run_migrations(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Schema migration failed: {exc}") from exc
        logger.info("SQLStore schema ready db=%s version=%s", self.db_path, version)
        return version

    def close(self) -> None:
        """Dispose pooled connections."""
        self.engine.dispose()
        logger.info("SQLStore closed db=%s", self.db_path)

    def __enter__(self) -> SQLStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager that commits on success and rolls back on error.

        Driver and SQL failures surface as ``StorageError``; engine
        validation errors raised inside the block propagate unchanged.
        """
        sess = self._session_factory()
        try:
            yield sess
            sess.commit()
        except SQLAlchemyError as exc:
            sess.rollback()
            logger.warning("Storage failure, transaction rolled back: %s", exc)
            raise StorageError(str(exc)) from exc
        except Exception:
            sess.rollback()
            raise
        finally:
            sess.close()
