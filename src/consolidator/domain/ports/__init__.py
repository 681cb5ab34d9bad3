"""Domain ports for persistence and transactional boundaries."""

from __future__ import annotations

from .persistence import (
    HierarchyCounts,
    ProposalRepository,
    ProposalStateCounts,
    SplitConfigStats,
    SplitDataCounts,
    StagingRepository,
)
from .unit_of_work import (
    ConsolidationRepositories,
    ConsolidationUnitOfWork,
)

__all__ = [
    "ConsolidationRepositories",
    "ConsolidationUnitOfWork",
    "HierarchyCounts",
    "ProposalRepository",
    "ProposalStateCounts",
    "SplitConfigStats",
    "SplitDataCounts",
    "StagingRepository",
]
