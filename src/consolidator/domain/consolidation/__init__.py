"""Proposal consolidation core.

Layered flow:
1) decode code fields and order proposals (``ordering``)
2) scan the ordered proposals with one open accumulator (``scan``)
3) detect plan-code conflicts while scanning (``conflicts``)
4) record retained/consumed outcomes and self-check them (``audit``)
"""

from __future__ import annotations

from .audit import (
    AuditTrail,
    ConsolidationIntegrityError,
    ConsolidationResult,
    DanglingConsumptionError,
    DuplicateProposalIdError,
    PartitionMismatchError,
)
from .codes import decode_codes, encode_codes
from .conflicts import has_plan_conflict, plan_codes_compatible
from .engine import consolidate_proposals
from .ordering import OrderedProposal, order_proposals, ordering_key
from .scan import MERGE_REASON, Boundary
from .summary import ConsolidationSummary

__all__ = [
    "MERGE_REASON",
    "AuditTrail",
    "Boundary",
    "ConsolidationIntegrityError",
    "ConsolidationResult",
    "ConsolidationSummary",
    "DanglingConsumptionError",
    "DuplicateProposalIdError",
    "OrderedProposal",
    "PartitionMismatchError",
    "consolidate_proposals",
    "decode_codes",
    "encode_codes",
    "has_plan_conflict",
    "order_proposals",
    "ordering_key",
    "plan_codes_compatible",
]
