"""Audit trail bookkeeping for one consolidation run.

Responsibilities of this stage:
- collect retained proposals in emission order
- collect one flat consumption record per absorbed proposal
- refuse to hand out a result that breaks the partition or points a
  consumption record at something that was not retained
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from consolidator.domain.model import ConsumptionRecord, ProposalId, RetainedProposal


class ConsolidationIntegrityError(RuntimeError):
    """Raised when a run would produce an inconsistent audit trail."""


class DuplicateProposalIdError(ConsolidationIntegrityError):
    """Raised when one proposal id would be emitted more than once."""

    def __init__(self, proposal_id: ProposalId) -> None:
        self.proposal_id = proposal_id
        super().__init__(f"Proposal id emitted more than once: {proposal_id}")


class DanglingConsumptionError(ConsolidationIntegrityError):
    """Raised when a consumption record points at a proposal that was not retained."""

    def __init__(self, *, consumed_id: ProposalId, retained_id: ProposalId) -> None:
        self.consumed_id = consumed_id
        self.retained_id = retained_id
        super().__init__(
            "Consumption record points at a proposal that was not retained: "
            f"consumed={consumed_id}, retained={retained_id}"
        )


class PartitionMismatchError(ConsolidationIntegrityError):
    """Raised when retained and consumed ids do not cover the input exactly."""

    def __init__(
        self,
        *,
        missing: frozenset[ProposalId],
        unexpected: frozenset[ProposalId],
    ) -> None:
        self.missing = missing
        self.unexpected = unexpected
        super().__init__(
            "Consolidation output does not partition the input: "
            f"missing={sorted(missing)}, unexpected={sorted(unexpected)}"
        )


@dataclass(frozen=True, slots=True)
class ConsolidationResult:
    """Retained proposals plus the consumption map keyed by consumed id."""

    retained: tuple[RetainedProposal, ...] = ()
    consumed: dict[ProposalId, ConsumptionRecord] = field(
        default_factory=dict["ProposalId", "ConsumptionRecord"]
    )

    @property
    def retained_ids(self) -> tuple[ProposalId, ...]:
        return tuple(proposal.id for proposal in self.retained)

    def reason_for(self, source_id: ProposalId) -> str | None:
        record = self.consumed.get(source_id)
        return record.reason if record is not None else None

    def retained_for(self, source_id: ProposalId) -> ProposalId:
        """Return the id of the retained proposal that now represents ``source_id``."""

        record = self.consumed.get(source_id)
        return record.retained_id if record is not None else source_id


@dataclass(slots=True)
class AuditTrail:
    """Mutable recorder filled by the consolidation scan."""

    _retained: list[RetainedProposal] = field(
        default_factory=list["RetainedProposal"], repr=False
    )
    _consumed: dict[ProposalId, ConsumptionRecord] = field(
        default_factory=dict["ProposalId", "ConsumptionRecord"], repr=False
    )
    _seen_ids: set[ProposalId] = field(default_factory=set["ProposalId"], repr=False)

    def record_retained(self, proposal: RetainedProposal) -> None:
        self._claim_id(proposal.id)
        self._retained.append(proposal)

    def record_consumed(self, record: ConsumptionRecord) -> None:
        self._claim_id(record.consumed_id)
        self._consumed[record.consumed_id] = record

    def build(self, *, expected_ids: Collection[ProposalId] | None = None) -> ConsolidationResult:
        """Self-check and freeze the collected trail."""

        retained_ids = {proposal.id for proposal in self._retained}
        for record in self._consumed.values():
            if record.retained_id not in retained_ids:
                raise DanglingConsumptionError(
                    consumed_id=record.consumed_id,
                    retained_id=record.retained_id,
                )
        if expected_ids is not None:
            _check_partition(self._seen_ids, expected_ids)
        return ConsolidationResult(retained=tuple(self._retained), consumed=dict(self._consumed))

    def _claim_id(self, proposal_id: ProposalId) -> None:
        if proposal_id in self._seen_ids:
            raise DuplicateProposalIdError(proposal_id)
        self._seen_ids.add(proposal_id)


def _check_partition(seen: set[ProposalId], expected: Iterable[ProposalId]) -> None:
    expected_set = frozenset(expected)
    missing = expected_set - seen
    unexpected = frozenset(seen) - expected_set
    if missing or unexpected:
        raise PartitionMismatchError(missing=missing, unexpected=unexpected)
