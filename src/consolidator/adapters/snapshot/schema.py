"""Pydantic models for pre-stage proposal snapshot rows.

Field aliases follow the pre-stage column names so exported rows validate
as-is; snake_case names are accepted too. Effective bounds are kept as UTC
instants; coverage bounds are calendar dates or bare years.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from consolidator.domain.model import as_instant


def _coerce_date(value: Any) -> Any:  # noqa: ANN401
    """Accept full ISO timestamps where only the calendar date matters."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value).date()
    return value


def _coerce_instant(value: Any) -> Any:  # noqa: ANN401
    """Read dates and naive timestamps as UTC instants."""

    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, date):
        return as_instant(value)
    return value


class SnapshotBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class ProposalRow(SnapshotBaseModel):
    id: str = Field(alias="Id")
    group_id: str = Field(alias="GroupId")
    split_config_fingerprint: str | None = Field(default=None, alias="SplitConfigurationMD5")
    date_range_from: date | int = Field(alias="DateRangeFrom")
    date_range_to: date | int | None = Field(default=None, alias="DateRangeTo")
    effective_date_from: datetime = Field(alias="EffectiveDateFrom")
    effective_date_to: datetime | None = Field(default=None, alias="EffectiveDateTo")
    product_codes: str | None = Field(default=None, alias="ProductCodes")
    plan_codes: str | None = Field(default=None, alias="PlanCodes")

    proposal_number: str | None = Field(default=None, alias="ProposalNumber")
    group_name: str | None = Field(default=None, alias="GroupName")
    broker_id: int | None = Field(default=None, alias="BrokerId")
    broker_name: str | None = Field(default=None, alias="BrokerName")
    situs_state: str | None = Field(default=None, alias="SitusState")
    notes: str | None = Field(default=None, alias="Notes")

    @field_validator("date_range_from", "date_range_to", mode="before")
    @classmethod
    def _dates_from_timestamps(cls, value: Any) -> Any:  # noqa: ANN401
        return _coerce_date(value)

    @field_validator("effective_date_from", "effective_date_to", mode="before")
    @classmethod
    def _instants_from_dates(cls, value: Any) -> Any:  # noqa: ANN401
        return _coerce_instant(value)
