"""Proposal records consumed and produced by a consolidation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .primitives import CodeSet, DateRange, Fingerprint, GroupId, ProposalId


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceProposal:
    """One proposed commission-split configuration, exactly as it was read.

    ``product_codes`` and ``plan_codes`` hold the encoded form found in the
    source (``"*"`` or a JSON list). Everything that is not needed by the
    consolidation rules travels in ``attributes`` and is copied unchanged onto
    the surviving record.
    """

    id: ProposalId
    group_id: GroupId
    split_config_fingerprint: Fingerprint | None
    date_range: DateRange
    effective_date_range: DateRange
    product_codes: str | None = None
    plan_codes: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict[str, Any], hash=False, compare=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RetainedProposal:
    """Surviving proposal covering every record it absorbed."""

    source: SourceProposal
    date_range: DateRange
    effective_date_range: DateRange
    product_codes: CodeSet
    plan_codes: CodeSet
    absorbed_ids: tuple[ProposalId, ...] = ()

    @property
    def id(self) -> ProposalId:
        return self.source.id

    @property
    def group_id(self) -> GroupId:
        return self.source.group_id

    @property
    def split_config_fingerprint(self) -> Fingerprint | None:
        return self.source.split_config_fingerprint

    @property
    def attributes(self) -> dict[str, Any]:
        return self.source.attributes


@dataclass(frozen=True, slots=True)
class ConsumptionRecord:
    """Flat edge from an absorbed record to the retained record that absorbed it."""

    consumed_id: ProposalId
    retained_id: ProposalId
    reason: str
