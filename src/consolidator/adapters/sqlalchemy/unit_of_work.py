"""SQLAlchemy-backed unit of work for consolidation runs.

One engine is managed per process. ``startup()`` binds it (and creates any
missing tables), every ``SqlAlchemyConsolidationUnitOfWork`` opens its own
session on it, and ``shutdown()`` disposes it again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from consolidator.adapters.sqlalchemy.mappings import create_all_tables
from consolidator.adapters.sqlalchemy.repositories import (
    SqlAlchemyProposalRepository,
    SqlAlchemyStagingRepository,
)
from consolidator.config.storage import DEFAULT_WRITE_BATCH_SIZE, get_database_config
from consolidator.domain.ports.unit_of_work import ConsolidationRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before ``startup()`` or reconfigured twice."""


@dataclass(slots=True)
class _Binding:
    engine: Engine
    session_factory: sessionmaker[Session]
    write_batch_size: int


_binding: _Binding | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    write_batch_size: int | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to an engine and make sure the schema exists.

    Without ``engine`` or ``database_uri`` the connection string and batch size
    come from the environment (see ``consolidator.config.storage``).
    """

    global _binding  # noqa: PLW0603
    if _binding is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised. Pass force=True to rebind.")

    if engine is None and database_uri is None:
        config = get_database_config()
        database_uri = config.uri
        write_batch_size = write_batch_size or config.write_batch_size
    resolved_engine = engine or create_engine(database_uri, future=True)
    create_all_tables(resolved_engine)

    _binding = _Binding(
        engine=resolved_engine,
        session_factory=sessionmaker(bind=resolved_engine, expire_on_commit=False),
        write_batch_size=write_batch_size or DEFAULT_WRITE_BATCH_SIZE,
    )
    log.debug("SQLAlchemy adapter bound to %s", resolved_engine.url)


def configured_engine() -> Engine | None:
    return _binding.engine if _binding is not None else None


def is_started() -> bool:
    return _binding is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it (primarily for tests)."""

    global _binding  # noqa: PLW0603
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


def _require_binding() -> _Binding:
    if _binding is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call consolidator.adapters.sqlalchemy."
            "unit_of_work.startup() before requesting a unit of work."
        )
    return _binding


class SqlAlchemyConsolidationUnitOfWork:
    """Session-scoped transaction spanning pre-stage flag write-back and staging copies.

    Work that was not committed when the block exits is rolled back.
    """

    def __init__(self) -> None:
        binding = _require_binding()
        self.session_factory = binding.session_factory
        self.write_batch_size = binding.write_batch_size
        self._session: Session | None = None
        self._repositories: ConsolidationRepositories | None = None

    def __enter__(self) -> SqlAlchemyConsolidationUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = ConsolidationRepositories(
            proposals=SqlAlchemyProposalRepository(
                self._session, batch_size=self.write_batch_size
            ),
            staging=SqlAlchemyStagingRepository(self._session, batch_size=self.write_batch_size),
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
                log.debug("Rolling back consolidation unit of work after %s", exc_type.__name__)
            self.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> ConsolidationRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from consolidator.domain.ports.unit_of_work import ConsolidationUnitOfWork

    _uow_check: ConsolidationUnitOfWork = SqlAlchemyConsolidationUnitOfWork()
