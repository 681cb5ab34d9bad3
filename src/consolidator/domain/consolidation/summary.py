"""Statistics describing a finished consolidation run."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from consolidator.domain.model import ProposalId

    from .audit import ConsolidationResult


@dataclass(frozen=True, slots=True)
class ConsolidationSummary:
    total: int
    retained: int
    consumed: int
    consumed_by_retained: dict[ProposalId, int] = field(
        default_factory=dict["ProposalId", int], compare=False
    )

    @classmethod
    def from_result(cls, result: ConsolidationResult) -> ConsolidationSummary:
        counts = Counter(record.retained_id for record in result.consumed.values())
        return cls(
            total=len(result.retained) + len(result.consumed),
            retained=len(result.retained),
            consumed=len(result.consumed),
            consumed_by_retained=dict(counts),
        )

    @property
    def reduction_ratio(self) -> float:
        """Share of input proposals that were folded into another proposal."""

        if self.total == 0:
            return 0.0
        return 1 - (self.retained / self.total)

    def top_absorbers(self, limit: int = 3) -> list[tuple[ProposalId, int]]:
        """Retained ids with the most consumed proposals, ties broken by id."""

        ranked = sorted(self.consumed_by_retained.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]
