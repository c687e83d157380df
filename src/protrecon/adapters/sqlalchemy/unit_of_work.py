"""SQLAlchemy-backed unit of work for reconciliation runs.

The adapter owns one process-wide engine. ``startup`` binds it (migrating the
schema to head), after which every ``SqlAlchemyUpdateUnitOfWork`` opens its own
session. Units of work never share sessions, so worker threads can each run one.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from protrecon.adapters.sqlalchemy.migrations import upgrade_head
from protrecon.adapters.sqlalchemy.repositories import (
    SqlAlchemyOrganismRepository,
    SqlAlchemyProteinRepository,
)
from protrecon.config.storage import get_database_config
from protrecon.domain.ports.unit_of_work import UpdateRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


class _AdapterState:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.engine: Engine | None = None
        self.session_factory: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self.session_factory = (
            sessionmaker(bind=engine, expire_on_commit=False) if engine is not None else None
        )


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the adapter to ``engine`` (or a new one for ``database_uri``/config)."""

    with _STATE.lock:
        if _STATE.engine is not None and not force:
            raise StartupError(
                "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
            )
        resolved = engine or create_engine(database_uri or get_database_config().uri, future=True)
        upgrade_head(engine=resolved)
        _STATE.bind(resolved)
    return resolved


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    with _STATE.lock:
        if _STATE.engine is not None:
            _STATE.engine.dispose()
        _STATE.bind(None)


class SqlAlchemyUpdateUnitOfWork:
    """Session and repositories for one reconciliation unit (accession group or import).

    Leaving the block without ``commit`` discards the changes; leaving it through an
    exception rolls back explicitly before the session is closed.
    """

    def __init__(self) -> None:
        if _STATE.session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call protrecon.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self._session_factory = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: UpdateRepositories | None = None

    def __enter__(self) -> SqlAlchemyUpdateUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self._session_factory()
        self._repositories = UpdateRepositories(
            proteins=SqlAlchemyProteinRepository(self._session),
            organisms=SqlAlchemyOrganismRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> UpdateRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories


if TYPE_CHECKING:
    from protrecon.domain.ports.unit_of_work import UpdateUnitOfWork

    _uow_check: UpdateUnitOfWork = SqlAlchemyUpdateUnitOfWork()
