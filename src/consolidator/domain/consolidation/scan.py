"""Left-to-right consolidation scan over ordered proposals.

The scan keeps one open accumulator per run of mergeable proposals. Each
incoming proposal either widens the accumulator or closes it and opens a new
one seeded from the incoming proposal:

1) different group          -> close, reopen
2) different fingerprint    -> close, reopen
3) conflicting plan codes   -> close, reopen
4) otherwise                -> merge (widen ranges, union codes, record consumption)

Merging unions date ranges even when they do not touch, so ``[2020, 2021]``
and ``[2022, 2023]`` become ``[2020, 2023]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from consolidator.domain.model import ConsumptionRecord, RetainedProposal

from .audit import AuditTrail
from .conflicts import has_plan_conflict

if TYPE_CHECKING:
    from collections.abc import Iterable

    from consolidator.domain.model import CodeSet, DateRange, GroupId, ProposalId, SourceProposal

    from .ordering import OrderedProposal

log = logging.getLogger(__name__)

MERGE_REASON: Final[str] = "Same split configuration, extended date range and accumulated products"
PROGRESS_INTERVAL: Final[int] = 100


class Boundary(StrEnum):
    """Why the scan closed the open accumulator."""

    GROUP = "group"
    FINGERPRINT = "fingerprint"
    PLAN_CONFLICT = "plan_conflict"


@dataclass(slots=True)
class Accumulator:
    """Retained proposal under construction."""

    seed: SourceProposal
    date_range: DateRange
    effective_date_range: DateRange
    product_codes: CodeSet
    plan_codes: CodeSet
    absorbed_ids: list[ProposalId] = field(default_factory=list["ProposalId"])

    @classmethod
    def open(cls, item: OrderedProposal) -> Accumulator:
        return cls(
            seed=item.proposal,
            date_range=item.proposal.date_range,
            effective_date_range=item.proposal.effective_date_range,
            product_codes=item.product_codes,
            plan_codes=item.plan_codes,
        )

    @property
    def id(self) -> ProposalId:
        return self.seed.id

    def absorb(self, item: OrderedProposal) -> None:
        proposal = item.proposal
        self.date_range = self.date_range.widened(proposal.date_range)
        self.effective_date_range = self.effective_date_range.widened(
            proposal.effective_date_range
        )
        self.product_codes = self.product_codes | item.product_codes
        self.plan_codes = self.plan_codes | item.plan_codes
        self.absorbed_ids.append(proposal.id)

    def close(self) -> RetainedProposal:
        return RetainedProposal(
            source=self.seed,
            date_range=self.date_range,
            effective_date_range=self.effective_date_range,
            product_codes=self.product_codes,
            plan_codes=self.plan_codes,
            absorbed_ids=tuple(self.absorbed_ids),
        )


@dataclass(slots=True)
class ScanState:
    """State threaded through one scan; never shared between runs."""

    trail: AuditTrail = field(default_factory=AuditTrail)
    current_group_id: GroupId | None = None
    accumulator: Accumulator | None = None
    merges: int = 0


def boundary_for(state: ScanState, item: OrderedProposal) -> Boundary | None:
    """Return the boundary ``item`` crosses, or ``None`` if it can be merged."""

    accumulator = state.accumulator
    if accumulator is None or state.current_group_id != item.proposal.group_id:
        return Boundary.GROUP
    if accumulator.seed.split_config_fingerprint != item.proposal.split_config_fingerprint:
        return Boundary.FINGERPRINT
    if has_plan_conflict(accumulator.plan_codes, item.plan_codes):
        return Boundary.PLAN_CONFLICT
    return None


def step(state: ScanState, item: OrderedProposal) -> None:
    """Advance the scan by one ordered proposal."""

    boundary = boundary_for(state, item)
    accumulator = state.accumulator
    if accumulator is None or boundary is not None:
        if accumulator is not None and boundary is not None:
            log.debug(
                "Closing %s at %s boundary before %s",
                accumulator.id,
                boundary.value,
                item.proposal.id,
            )
        _close(state)
        state.current_group_id = item.proposal.group_id
        state.accumulator = Accumulator.open(item)
        return

    accumulator.absorb(item)
    state.trail.record_consumed(
        ConsumptionRecord(
            consumed_id=item.proposal.id,
            retained_id=accumulator.id,
            reason=MERGE_REASON,
        )
    )
    state.merges += 1
    if state.merges % PROGRESS_INTERVAL == 0:
        log.debug("Processed %s consolidations", state.merges)


def finish(state: ScanState) -> AuditTrail:
    """Flush the open accumulator and return the filled audit trail."""

    _close(state)
    state.current_group_id = None
    return state.trail


def scan(items: Iterable[OrderedProposal]) -> AuditTrail:
    """Run the full scan over already-ordered proposals."""

    state = ScanState()
    for item in items:
        step(state, item)
    return finish(state)


def _close(state: ScanState) -> None:
    if state.accumulator is None:
        return
    state.trail.record_retained(state.accumulator.close())
    state.accumulator = None
