"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from itertools import batched
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import bindparam, delete, func, insert, select, update

from consolidator.adapters.sqlalchemy.mappings import (
    ATTRIBUTE_COLUMNS,
    prestage_hierarchy_participant_table,
    prestage_hierarchy_table,
    prestage_hierarchy_version_table,
    prestage_proposal_table,
    prestage_split_participant_table,
    prestage_split_version_table,
    stg_hierarchy_participant_table,
    stg_hierarchy_table,
    stg_hierarchy_version_table,
    stg_proposal_table,
    stg_split_participant_table,
    stg_split_version_table,
)
from consolidator.config.storage import DEFAULT_WRITE_BATCH_SIZE
from consolidator.domain.consolidation import encode_codes
from consolidator.domain.model import DateRange, SourceProposal
from consolidator.domain.ports import (
    HierarchyCounts,
    ProposalStateCounts,
    SplitConfigStats,
    SplitDataCounts,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from sqlalchemy import Row, Select, Table
    from sqlalchemy.orm import Session

    from consolidator.domain.model import ConsumptionRecord, ProposalId, RetainedProposal

DISPLAY_NAME_MAX_LENGTH: Final[int] = 100


def format_display_name(group_label: str, effective_from: date, sequence: int) -> str:
    """Return ``"{group} - {YYYY-MM-DD} - {n}"`` cut to the staging column width."""

    name = f"{group_label} - {effective_from:%Y-%m-%d} - {sequence}"
    return name[:DISPLAY_NAME_MAX_LENGTH]


def _count(session: Session, table: Table) -> int:
    return session.execute(select(func.count()).select_from(table)).scalar_one()


def _retained_ids_subquery() -> Select[tuple[str]]:
    return select(prestage_proposal_table.c.id).where(
        prestage_proposal_table.c.is_retained.is_(True)
    )


def _copy_all(session: Session, source: Table, target: Table) -> int:
    columns = [column.name for column in source.columns]
    session.execute(insert(target).from_select(columns, select(*source.columns)))
    return _count(session, target)


class SqlAlchemyProposalRepository:
    def __init__(self, session: Session, *, batch_size: int = DEFAULT_WRITE_BATCH_SIZE) -> None:
        self.session = session
        self.batch_size = batch_size

    def load_all(self) -> list[SourceProposal]:
        table = prestage_proposal_table
        stmt = select(table).order_by(
            table.c.group_id,
            table.c.effective_date_from,
            table.c.split_config_fingerprint,
            table.c.id,
        )
        return [self._to_domain(row) for row in self.session.execute(stmt)]

    def mark_retained(self, proposal_ids: Iterable[ProposalId]) -> int:
        table = prestage_proposal_table
        updated = 0
        for batch in batched(proposal_ids, self.batch_size):
            stmt = (
                update(table)
                .where(table.c.id.in_(batch))
                .values(is_retained=True, consumed_by_proposal_id=None, consolidation_reason=None)
            )
            self.session.execute(stmt)
            updated += len(batch)
        return updated

    def mark_consumed(self, records: Iterable[ConsumptionRecord]) -> int:
        table = prestage_proposal_table
        stmt = (
            update(table)
            .where(table.c.id == bindparam("b_consumed_id"))
            .values(
                is_retained=False,
                consumed_by_proposal_id=bindparam("b_retained_id"),
                consolidation_reason=bindparam("b_reason"),
            )
        )
        updated = 0
        for batch in batched(records, self.batch_size):
            params = [
                {
                    "b_consumed_id": record.consumed_id,
                    "b_retained_id": record.retained_id,
                    "b_reason": record.reason,
                }
                for record in batch
            ]
            self.session.execute(stmt, params)
            updated += len(batch)
        return updated

    def count_by_state(self) -> ProposalStateCounts:
        table = prestage_proposal_table
        total = _count(self.session, table)
        retained = self.session.execute(
            select(func.count()).select_from(table).where(table.c.is_retained.is_(True))
        ).scalar_one()
        consumed = self.session.execute(
            select(func.count())
            .select_from(table)
            .where(table.c.is_retained.is_(False))
            .where(table.c.consumed_by_proposal_id.is_not(None))
        ).scalar_one()
        return ProposalStateCounts(
            total=total,
            retained=retained,
            consumed=consumed,
            unconsolidated=total - retained - consumed,
        )

    def orphaned_consumption_count(self) -> int:
        table = prestage_proposal_table
        stmt = (
            select(func.count())
            .select_from(table)
            .where(table.c.consumed_by_proposal_id.is_not(None))
            .where(table.c.consumed_by_proposal_id.not_in(_retained_ids_subquery()))
        )
        return self.session.execute(stmt).scalar_one()

    def consumption_counts(self) -> dict[ProposalId, int]:
        table = prestage_proposal_table
        stmt = (
            select(table.c.consumed_by_proposal_id, func.count())
            .where(table.c.consumed_by_proposal_id.is_not(None))
            .group_by(table.c.consumed_by_proposal_id)
        )
        return {retained_id: count for retained_id, count in self.session.execute(stmt)}

    def expected_split_version_count(self) -> int:
        table = prestage_split_version_table
        stmt = (
            select(func.count())
            .select_from(table)
            .where(table.c.proposal_id.in_(_retained_ids_subquery()))
        )
        return self.session.execute(stmt).scalar_one()

    def expected_split_participant_count(self) -> int:
        participants = prestage_split_participant_table
        versions = prestage_split_version_table
        stmt = (
            select(func.count())
            .select_from(participants.join(versions, versions.c.id == participants.c.version_id))
            .where(versions.c.proposal_id.in_(_retained_ids_subquery()))
        )
        return self.session.execute(stmt).scalar_one()

    def split_config_stats(self) -> SplitConfigStats:
        table = prestage_proposal_table
        per_config = (
            select(func.count().label("proposals"))
            .where(table.c.split_config_fingerprint.is_not(None))
            .group_by(table.c.split_config_fingerprint)
            .subquery()
        )
        unique_configs, average, maximum = self.session.execute(
            select(
                func.count(),
                func.avg(per_config.c.proposals),
                func.max(per_config.c.proposals),
            ).select_from(per_config)
        ).one()
        return SplitConfigStats(
            unique_configs=unique_configs,
            average_per_config=float(average or 0.0),
            max_per_config=maximum or 0,
        )

    @staticmethod
    def _to_domain(row: Row[Any]) -> SourceProposal:
        values = row._mapping  # noqa: SLF001
        return SourceProposal(
            id=values["id"],
            group_id=values["group_id"],
            split_config_fingerprint=values["split_config_fingerprint"],
            date_range=DateRange(start=values["date_range_from"], end=values["date_range_to"]),
            effective_date_range=DateRange(
                start=values["effective_date_from"], end=values["effective_date_to"]
            ),
            product_codes=values["product_codes"],
            plan_codes=values["plan_codes"],
            attributes={name: values[name] for name in ATTRIBUTE_COLUMNS},
        )


class SqlAlchemyStagingRepository:
    def __init__(self, session: Session, *, batch_size: int = DEFAULT_WRITE_BATCH_SIZE) -> None:
        self.session = session
        self.batch_size = batch_size

    def replace_proposals(self, proposals: Iterable[RetainedProposal]) -> int:
        self.session.execute(delete(stg_proposal_table))
        inserted = 0
        for batch in batched(proposals, self.batch_size):
            self.session.execute(insert(stg_proposal_table), [self._to_row(p) for p in batch])
            inserted += len(batch)
        return inserted

    def assign_display_names(self) -> int:
        table = stg_proposal_table
        stmt = select(
            table.c.id,
            table.c.group_id,
            table.c.group_name,
            table.c.effective_date_from,
        ).order_by(table.c.group_id, table.c.effective_date_from, table.c.id)

        params: list[dict[str, object]] = []
        current_group: str | None = None
        sequence = 0
        for proposal_id, group_id, group_name, effective_from in self.session.execute(stmt):
            if group_id != current_group:
                current_group = group_id
                sequence = 0
            sequence += 1
            params.append(
                {
                    "b_id": proposal_id,
                    "b_display_name": format_display_name(
                        group_name or group_id, effective_from, sequence
                    ),
                }
            )
        if params:
            update_stmt = (
                update(table)
                .where(table.c.id == bindparam("b_id"))
                .values(display_name=bindparam("b_display_name"))
            )
            self.session.execute(update_stmt, params)
        return len(params)

    def copy_hierarchies(self) -> HierarchyCounts:
        # Hierarchies are not consolidated; every row is copied.
        self.session.execute(delete(stg_hierarchy_participant_table))
        self.session.execute(delete(stg_hierarchy_version_table))
        self.session.execute(delete(stg_hierarchy_table))
        return HierarchyCounts(
            hierarchies=_copy_all(self.session, prestage_hierarchy_table, stg_hierarchy_table),
            hierarchy_versions=_copy_all(
                self.session, prestage_hierarchy_version_table, stg_hierarchy_version_table
            ),
            hierarchy_participants=_copy_all(
                self.session,
                prestage_hierarchy_participant_table,
                stg_hierarchy_participant_table,
            ),
        )

    def copy_split_data(self) -> SplitDataCounts:
        self.session.execute(delete(stg_split_participant_table))
        self.session.execute(delete(stg_split_version_table))

        versions = prestage_split_version_table
        self.session.execute(
            insert(stg_split_version_table).from_select(
                [column.name for column in versions.columns],
                select(*versions.columns).where(
                    versions.c.proposal_id.in_(_retained_ids_subquery())
                ),
            )
        )

        participants = prestage_split_participant_table
        self.session.execute(
            insert(stg_split_participant_table).from_select(
                [column.name for column in participants.columns],
                select(*participants.columns).where(
                    participants.c.version_id.in_(select(stg_split_version_table.c.id))
                ),
            )
        )
        return self.count_split_data()

    def count_proposals(self) -> int:
        return _count(self.session, stg_proposal_table)

    def count_split_data(self) -> SplitDataCounts:
        return SplitDataCounts(
            split_versions=_count(self.session, stg_split_version_table),
            split_participants=_count(self.session, stg_split_participant_table),
        )

    @staticmethod
    def _to_row(proposal: RetainedProposal) -> dict[str, object]:
        row: dict[str, object] = {name: proposal.attributes.get(name) for name in ATTRIBUTE_COLUMNS}
        row.update(
            id=proposal.id,
            group_id=proposal.group_id,
            split_config_fingerprint=proposal.split_config_fingerprint,
            date_range_from=proposal.date_range.start,
            date_range_to=proposal.date_range.end,
            effective_date_from=proposal.effective_date_range.start,
            effective_date_to=proposal.effective_date_range.end,
            product_codes=encode_codes(proposal.product_codes),
            plan_codes=encode_codes(proposal.plan_codes),
            display_name=None,
        )
        return row


if TYPE_CHECKING:
    from consolidator.domain.ports import ProposalRepository, StagingRepository

    _session_stub = cast("Session", object())
    _proposal_repo: ProposalRepository = SqlAlchemyProposalRepository(_session_stub)
    _staging_repo: StagingRepository = SqlAlchemyStagingRepository(_session_stub)
