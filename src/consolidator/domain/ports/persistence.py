"""Ports for reading pre-stage proposals and writing consolidation output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from consolidator.domain.model import (
        ConsumptionRecord,
        ProposalId,
        RetainedProposal,
        SourceProposal,
    )


@dataclass(frozen=True, slots=True)
class ProposalStateCounts:
    """Pre-stage proposals split by their consolidation flags."""

    total: int
    retained: int
    consumed: int
    unconsolidated: int


@dataclass(frozen=True, slots=True)
class HierarchyCounts:
    hierarchies: int
    hierarchy_versions: int
    hierarchy_participants: int


@dataclass(frozen=True, slots=True)
class SplitDataCounts:
    split_versions: int
    split_participants: int


@dataclass(frozen=True, slots=True)
class SplitConfigStats:
    """How many pre-stage proposals share each split configuration fingerprint."""

    unique_configs: int
    average_per_config: float
    max_per_config: int


@runtime_checkable
class ProposalRepository(Protocol):
    """Persistence contract for pre-stage proposals."""

    def load_all(self) -> list[SourceProposal]: ...

    def mark_retained(self, proposal_ids: Iterable[ProposalId]) -> int: ...

    def mark_consumed(self, records: Iterable[ConsumptionRecord]) -> int: ...

    def count_by_state(self) -> ProposalStateCounts: ...

    def orphaned_consumption_count(self) -> int: ...

    def consumption_counts(self) -> dict[ProposalId, int]: ...

    def expected_split_version_count(self) -> int: ...

    def expected_split_participant_count(self) -> int: ...

    def split_config_stats(self) -> SplitConfigStats: ...


@runtime_checkable
class StagingRepository(Protocol):
    """Persistence contract for the downstream staging area."""

    def replace_proposals(self, proposals: Iterable[RetainedProposal]) -> int: ...

    def assign_display_names(self) -> int: ...

    def copy_hierarchies(self) -> HierarchyCounts: ...

    def copy_split_data(self) -> SplitDataCounts: ...

    def count_proposals(self) -> int: ...

    def count_split_data(self) -> SplitDataCounts: ...
