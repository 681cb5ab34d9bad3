"""SQLAlchemy adapter package for consolidation persistence."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import SqlAlchemyProposalRepository, SqlAlchemyStagingRepository
from .unit_of_work import (
    SqlAlchemyConsolidationUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyConsolidationUnitOfWork",
    "SqlAlchemyProposalRepository",
    "SqlAlchemyStagingRepository",
    "StartupError",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]
