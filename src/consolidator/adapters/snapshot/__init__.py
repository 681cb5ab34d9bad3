"""File snapshot adapter: JSON in, consolidation result JSON out."""

from __future__ import annotations

from .reader import SnapshotFormatError, read_snapshot, write_result
from .schema import ProposalRow
from .translator import serialize_result, translate_row

__all__ = [
    "ProposalRow",
    "SnapshotFormatError",
    "read_snapshot",
    "serialize_result",
    "translate_row",
    "write_result",
]
