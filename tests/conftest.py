from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from consolidator.adapters.sqlalchemy import create_all_tables
from consolidator.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyConsolidationUnitOfWork,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    sqlite_session: Session,
) -> Iterator[Callable[[], SqlAlchemyConsolidationUnitOfWork]]:
    startup(engine=sqlite_engine, write_batch_size=2, force=True)

    def factory() -> SqlAlchemyConsolidationUnitOfWork:
        return SqlAlchemyConsolidationUnitOfWork()

    try:
        yield factory
    finally:
        # Release the shared session's connection before shutdown() disposes the engine.
        sqlite_session.close()
        shutdown()
