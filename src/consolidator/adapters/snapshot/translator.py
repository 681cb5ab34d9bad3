"""Translate snapshot rows into domain proposals and results into JSON payloads."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Final

from consolidator.domain.consolidation import encode_codes
from consolidator.domain.model import DateRange, SourceProposal

if TYPE_CHECKING:
    from consolidator.domain.consolidation import ConsolidationResult
    from consolidator.domain.model import RetainedProposal

    from .schema import ProposalRow

DESCRIPTIVE_FIELDS: Final[tuple[str, ...]] = (
    "proposal_number",
    "group_name",
    "broker_id",
    "broker_name",
    "situs_state",
    "notes",
)


def _range_start(value: date | int) -> date:
    # Year-only bounds cover the whole year.
    return date(value, 1, 1) if isinstance(value, int) else value


def _range_end(value: date | int | None) -> date | None:
    if value is None:
        return None
    return date(value, 12, 31) if isinstance(value, int) else value


def translate_row(row: ProposalRow) -> SourceProposal:
    attributes: dict[str, Any] = {name: getattr(row, name) for name in DESCRIPTIVE_FIELDS}
    attributes.update(row.model_extra or {})
    return SourceProposal(
        id=row.id,
        group_id=row.group_id,
        split_config_fingerprint=row.split_config_fingerprint,
        date_range=DateRange(
            start=_range_start(row.date_range_from),
            end=_range_end(row.date_range_to),
        ),
        effective_date_range=DateRange(
            start=row.effective_date_from,
            end=row.effective_date_to,
        ),
        product_codes=row.product_codes,
        plan_codes=row.plan_codes,
        attributes=attributes,
    )


def _serialize_range(value: DateRange) -> dict[str, str | None]:
    return {
        "from": value.start.isoformat(),
        "to": value.end.isoformat() if value.end is not None else None,
    }


def serialize_retained(proposal: RetainedProposal) -> dict[str, Any]:
    return {
        "id": proposal.id,
        "group_id": proposal.group_id,
        "split_config_fingerprint": proposal.split_config_fingerprint,
        "date_range": _serialize_range(proposal.date_range),
        "effective_date_range": _serialize_range(proposal.effective_date_range),
        "product_codes": encode_codes(proposal.product_codes),
        "plan_codes": encode_codes(proposal.plan_codes),
        "absorbed_ids": list(proposal.absorbed_ids),
        "attributes": dict(proposal.attributes),
    }


def serialize_result(result: ConsolidationResult) -> dict[str, Any]:
    """Render a result as a JSON-ready mapping."""

    return {
        "retained": [serialize_retained(proposal) for proposal in result.retained],
        "consumed": {
            consumed_id: {"retained_id": record.retained_id, "reason": record.reason}
            for consumed_id, record in result.consumed.items()
        },
    }
