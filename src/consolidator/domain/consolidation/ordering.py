"""Deterministic ordering of source proposals.

The scan relies on a total order: proposals of one group are contiguous,
ordered by effective start instant, then by split fingerprint. A missing fingerprint
sorts as the empty string. The proposal id is the final tie-breaker so that
the surviving record is reproducible across runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from consolidator.domain.model import as_instant

from .codes import decode_codes

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from consolidator.domain.model import CodeSet, SourceProposal

type OrderingKey = tuple[str, datetime, str, str]


@dataclass(frozen=True, slots=True)
class OrderedProposal:
    """A source proposal with its ordering key and decoded code sets."""

    proposal: SourceProposal
    key: OrderingKey
    product_codes: CodeSet
    plan_codes: CodeSet


def ordering_key(proposal: SourceProposal) -> OrderingKey:
    return (
        proposal.group_id,
        as_instant(proposal.effective_date_range.start),
        proposal.split_config_fingerprint or "",
        proposal.id,
    )


def prepare(proposal: SourceProposal) -> OrderedProposal:
    return OrderedProposal(
        proposal=proposal,
        key=ordering_key(proposal),
        product_codes=decode_codes(proposal.product_codes),
        plan_codes=decode_codes(proposal.plan_codes),
    )


def order_proposals(proposals: Iterable[SourceProposal]) -> list[OrderedProposal]:
    """Return the proposals prepared and sorted for the consolidation scan."""

    return sorted((prepare(proposal) for proposal in proposals), key=lambda item: item.key)
