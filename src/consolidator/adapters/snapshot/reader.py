"""Bulk reading of pre-stage proposal snapshots from JSON files."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError

from .schema import ProposalRow
from .translator import serialize_result, translate_row

if TYPE_CHECKING:
    from pathlib import Path

    from consolidator.domain.consolidation import ConsolidationResult
    from consolidator.domain.model import SourceProposal

log = logging.getLogger(__name__)


class SnapshotFormatError(ValueError):
    """Raised when a snapshot file cannot be read as proposal rows."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid proposal snapshot {path}: {detail}")


def _load_payloads(path: Path) -> list[Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".jsonl":
            return [json.loads(line) for line in text.splitlines() if line.strip()]
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(path, str(exc)) from exc
    if not isinstance(loaded, list):
        raise SnapshotFormatError(path, "expected a JSON list of proposal rows")
    return cast(list[Any], loaded)


def read_snapshot(path: Path) -> list[SourceProposal]:
    """Read and validate every proposal row of ``path``."""

    proposals: list[SourceProposal] = []
    for index, payload in enumerate(_load_payloads(path), start=1):
        try:
            row = ProposalRow.model_validate(payload)
        except ValidationError as exc:
            raise SnapshotFormatError(path, f"row {index}: {exc}") from exc
        proposals.append(translate_row(row))
    log.info("Read %s proposals from %s", len(proposals), path)
    return proposals


def write_result(result: ConsolidationResult, path: Path) -> None:
    payload = serialize_result(result)
    path.write_text(json.dumps(payload, indent=2, default=str) + "\n", encoding="utf-8")
    log.info("Wrote consolidation result to %s", path)
