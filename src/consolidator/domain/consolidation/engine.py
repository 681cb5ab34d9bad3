"""Entry point of the consolidation core.

The engine composes ordering, the scan and the audit self-check. It touches
no persistence; callers hand in a fully materialised snapshot and receive
either a consistent ``ConsolidationResult`` or an exception.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .ordering import order_proposals
from .scan import scan

if TYPE_CHECKING:
    from collections.abc import Iterable

    from consolidator.domain.model import SourceProposal

    from .audit import ConsolidationResult

log = logging.getLogger(__name__)


def consolidate_proposals(proposals: Iterable[SourceProposal]) -> ConsolidationResult:
    """Collapse ``proposals`` into retained proposals and a consumption map."""

    snapshot = tuple(proposals)
    ordered = order_proposals(snapshot)
    trail = scan(ordered)
    result = trail.build(expected_ids=[proposal.id for proposal in snapshot])
    log.info(
        "Consolidated %s proposals: retained=%s, consumed=%s",
        len(snapshot),
        len(result.retained),
        len(result.consumed),
    )
    return result
