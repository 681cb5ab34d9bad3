"""Public domain model surface."""

from __future__ import annotations

from consolidator.domain.model.primitives import (
    WILDCARD_TOKEN,
    CodeSet,
    DateRange,
    Fingerprint,
    GroupId,
    ProposalId,
    as_instant,
)
from consolidator.domain.model.proposal import (
    ConsumptionRecord,
    RetainedProposal,
    SourceProposal,
)

__all__ = [
    "WILDCARD_TOKEN",
    "CodeSet",
    "ConsumptionRecord",
    "DateRange",
    "Fingerprint",
    "GroupId",
    "ProposalId",
    "RetainedProposal",
    "SourceProposal",
    "as_instant",
]
