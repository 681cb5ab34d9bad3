"""SQLAlchemy table metadata for pre-stage and staging proposal data."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

from consolidator.domain.model import as_instant

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: date | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return as_instant(value)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Descriptive columns copied unchanged from the seeding proposal.
ATTRIBUTE_COLUMNS: Final[tuple[str, ...]] = (
    "proposal_number",
    "group_name",
    "broker_id",
    "broker_name",
    "situs_state",
    "notes",
)


def _proposal_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("proposal_number", String, nullable=True),
        Column("group_id", String, nullable=False),
        Column("group_name", String, nullable=True),
        Column("broker_id", Integer, nullable=True),
        Column("broker_name", String, nullable=True),
        Column("situs_state", String(2), nullable=True),
        Column("notes", String, nullable=True),
        Column("split_config_fingerprint", String, nullable=True),
        Column("date_range_from", Date, nullable=False),
        Column("date_range_to", Date, nullable=True),
        # Effective bounds are instants; the scan orders by them.
        Column("effective_date_from", UTCDateTime, nullable=False),
        Column("effective_date_to", UTCDateTime, nullable=True),
        Column("product_codes", String, nullable=True),
        Column("plan_codes", String, nullable=True),
        Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    ]


def _hierarchy_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("group_id", String, nullable=False),
        Column("name", String, nullable=True),
        Column("broker_id", Integer, nullable=True),
    ]


def _hierarchy_version_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("hierarchy_id", String, nullable=False, index=True),
        Column("version", Integer, nullable=False, default=1),
        Column("status", Integer, nullable=False, default=0),
        Column("effective_from", UTCDateTime, nullable=True),
        Column("effective_to", UTCDateTime, nullable=True),
        Column("change_reason", String(2000), nullable=True),
    ]


def _hierarchy_participant_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("hierarchy_version_id", String, nullable=False, index=True),
        Column("entity_id", Integer, nullable=False),
        Column("entity_name", String(500), nullable=True),
        Column("level", Integer, nullable=False, default=0),
        Column("sort_order", Integer, nullable=False, default=0),
        Column("split_percent", Float, nullable=True),
        Column("schedule_code", String(200), nullable=True),
        Column("commission_rate", Float, nullable=True),
        Column("paid_broker_id", Integer, nullable=True),
    ]


def _split_version_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("proposal_id", String, nullable=False, index=True),
        Column("effective_from", Date, nullable=False),
        Column("effective_to", Date, nullable=True),
    ]


def _split_participant_columns() -> list[Column[Any]]:
    return [
        Column("id", String, primary_key=True),
        Column("version_id", String, nullable=False, index=True),
        Column("broker_id", Integer, nullable=False),
        Column("split_percent", Float, nullable=False),
    ]


# Pre-stage tables ------------------------------------------------------------

prestage_proposal_table = Table(
    "prestage_proposal",
    metadata,
    *_proposal_columns(),
    Column("is_retained", Boolean, nullable=True),
    Column("consumed_by_proposal_id", String, nullable=True),
    Column("consolidation_reason", String, nullable=True),
    Index(
        "ix_prestage_proposal_ordering",
        "group_id",
        "effective_date_from",
        "split_config_fingerprint",
    ),
)

prestage_hierarchy_table = Table("prestage_hierarchy", metadata, *_hierarchy_columns())
prestage_hierarchy_version_table = Table(
    "prestage_hierarchy_version", metadata, *_hierarchy_version_columns()
)
prestage_hierarchy_participant_table = Table(
    "prestage_hierarchy_participant", metadata, *_hierarchy_participant_columns()
)
prestage_split_version_table = Table(
    "prestage_split_version", metadata, *_split_version_columns()
)
prestage_split_participant_table = Table(
    "prestage_split_participant", metadata, *_split_participant_columns()
)

# Staging tables --------------------------------------------------------------

stg_proposal_table = Table(
    "stg_proposal",
    metadata,
    *_proposal_columns(),
    Column("display_name", String(100), nullable=True),
)

stg_hierarchy_table = Table("stg_hierarchy", metadata, *_hierarchy_columns())
stg_hierarchy_version_table = Table(
    "stg_hierarchy_version", metadata, *_hierarchy_version_columns()
)
stg_hierarchy_participant_table = Table(
    "stg_hierarchy_participant", metadata, *_hierarchy_participant_columns()
)
stg_split_version_table = Table("stg_split_version", metadata, *_split_version_columns())
stg_split_participant_table = Table(
    "stg_split_participant", metadata, *_split_participant_columns()
)


def create_all_tables(engine: Engine) -> None:
    """Create every consolidation table that does not exist yet."""

    log.debug("Creating consolidation tables on %s", engine.url)
    metadata.create_all(engine, checkfirst=True)
