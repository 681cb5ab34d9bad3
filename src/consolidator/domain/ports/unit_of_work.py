"""Transactional boundary around the repositories of one consolidation run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from consolidator.domain.ports.persistence import ProposalRepository, StagingRepository


@dataclass(slots=True)
class ConsolidationRepositories:
    """Repositories touched by one consolidation run."""

    proposals: ProposalRepository
    staging: StagingRepository


@runtime_checkable
class ConsolidationUnitOfWork(Protocol):
    """Context manager that commits pre-stage flags and staging copies together.

    Leaving the block without ``commit()`` discards every write.
    """

    @property
    def repositories(self) -> ConsolidationRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
