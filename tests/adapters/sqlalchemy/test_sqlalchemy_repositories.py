from __future__ import annotations

from datetime import UTC, date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session  # noqa: TC002

from consolidator.adapters.sqlalchemy.mappings import (
    prestage_proposal_table,
    stg_hierarchy_participant_table,
    stg_proposal_table,
    stg_split_participant_table,
)
from consolidator.adapters.sqlalchemy.repositories import (
    DISPLAY_NAME_MAX_LENGTH,
    SqlAlchemyProposalRepository,
    SqlAlchemyStagingRepository,
    format_display_name,
)
from consolidator.domain.consolidation import MERGE_REASON, consolidate_proposals
from consolidator.domain.model import DateRange
from tests.helpers.prestage import proposal_row, seed_hierarchies, seed_proposals, seed_split_data


def _consolidate_and_flag(session: Session) -> None:
    proposals = SqlAlchemyProposalRepository(session, batch_size=2)
    result = consolidate_proposals(proposals.load_all())
    proposals.mark_retained(result.retained_ids)
    proposals.mark_consumed(result.consumed.values())
    SqlAlchemyStagingRepository(session, batch_size=2).replace_proposals(result.retained)
    session.commit()


def test_load_all_maps_rows_to_proposals(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P2", group_id="G2", years=(2021, None)),
            proposal_row("P1", plan_codes="*"),
        ],
    )

    loaded = SqlAlchemyProposalRepository(sqlite_session).load_all()

    assert [proposal.id for proposal in loaded] == ["P1", "P2"]
    first, second = loaded
    assert first.plan_codes == "*"
    assert first.attributes["proposal_number"] == "N-P1"
    assert first.attributes["broker_id"] == 7
    assert second.date_range == DateRange(start=date(2021, 1, 1), end=None)
    assert second.effective_date_range.start == datetime(2021, 1, 1, tzinfo=UTC)


def test_flags_are_written_in_batches(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [proposal_row(f"P{index}", years=(2015 + index, 2015 + index)) for index in range(5)],
    )

    _consolidate_and_flag(sqlite_session)

    rows = sqlite_session.execute(
        select(
            prestage_proposal_table.c.id,
            prestage_proposal_table.c.is_retained,
            prestage_proposal_table.c.consumed_by_proposal_id,
            prestage_proposal_table.c.consolidation_reason,
        ).order_by(prestage_proposal_table.c.id)
    ).all()
    assert tuple(rows[0]) == ("P0", True, None, None)
    assert [tuple(row)[1:] for row in rows[1:]] == [(False, "P0", MERGE_REASON)] * 4


def test_count_by_state_and_consumption_counts(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P1", years=(2018, 2018)),
            proposal_row("P2", years=(2019, 2019)),
            proposal_row("P3", group_id="G2"),
        ],
    )
    proposals = SqlAlchemyProposalRepository(sqlite_session)

    before = proposals.count_by_state()
    _consolidate_and_flag(sqlite_session)
    after = proposals.count_by_state()

    assert before.unconsolidated == 3
    assert (after.total, after.retained, after.consumed, after.unconsolidated) == (3, 2, 1, 0)
    assert proposals.consumption_counts() == {"P1": 1}
    assert proposals.orphaned_consumption_count() == 0


def test_orphaned_consumption_is_counted(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P1", is_retained=True, consumed_by_proposal_id=None),
            proposal_row("P2", is_retained=False, consumed_by_proposal_id="P9"),
        ],
    )

    assert SqlAlchemyProposalRepository(sqlite_session).orphaned_consumption_count() == 1


def test_staging_receives_accumulated_codes_and_display_names(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P1", years=(2020, 2021), product_codes='["DENTAL"]'),
            proposal_row("P2", years=(2022, 2023), product_codes='["VISION"]'),
            proposal_row("P3", years=(2024, 2024), plan_codes='["PLAN1", "PLAN2"]'),
            proposal_row("P4", group_id="G2", group_name=None),
        ],
    )
    _consolidate_and_flag(sqlite_session)

    named = SqlAlchemyStagingRepository(sqlite_session).assign_display_names()

    rows = {row.id: row for row in sqlite_session.execute(select(stg_proposal_table)).all()}
    assert named == 3
    assert set(rows) == {"P1", "P3", "P4"}
    assert rows["P1"].product_codes == '["DENTAL", "VISION"]'
    assert rows["P1"].date_range_to == date(2023, 12, 31)
    assert rows["P1"].proposal_number == "N-P1"
    assert rows["P1"].display_name == "Acme Corp - 2020-01-01 - 1"
    assert rows["P3"].display_name == "Acme Corp - 2024-01-01 - 2"
    assert rows["P4"].display_name == "G2 - 2020-01-01 - 1"


def test_split_data_and_hierarchies_follow_retained_proposals(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P1", years=(2018, 2018)),
            proposal_row("P2", years=(2019, 2019)),
            proposal_row("P3", group_id="G2"),
        ],
    )
    seed_split_data(sqlite_session, {"P1": ["V1", "V2"], "P2": ["V3"], "P3": ["V4"]})
    seed_hierarchies(sqlite_session, ["G1", "G2"], versions_per_hierarchy=2)
    _consolidate_and_flag(sqlite_session)
    staging = SqlAlchemyStagingRepository(sqlite_session)

    hierarchies = staging.copy_hierarchies()
    split_data = staging.copy_split_data()

    assert (
        hierarchies.hierarchies,
        hierarchies.hierarchy_versions,
        hierarchies.hierarchy_participants,
    ) == (2, 4, 8)
    assert split_data.split_versions == 3
    assert split_data.split_participants == 6
    proposals = SqlAlchemyProposalRepository(sqlite_session)
    assert proposals.expected_split_version_count() == 3
    assert proposals.expected_split_participant_count() == 6
    version_ids = set(
        sqlite_session.execute(select(stg_split_participant_table.c.version_id)).scalars()
    )
    assert version_ids == {"V1", "V2", "V4"}


def test_copies_replace_previous_staging_content(sqlite_session: Session) -> None:
    seed_proposals(sqlite_session, [proposal_row("P1")])
    seed_split_data(sqlite_session, {"P1": ["V1"]})
    _consolidate_and_flag(sqlite_session)
    staging = SqlAlchemyStagingRepository(sqlite_session)
    staging.copy_split_data()

    _consolidate_and_flag(sqlite_session)
    split_data = staging.copy_split_data()

    assert staging.count_proposals() == 1
    assert split_data.split_versions == 1
    assert split_data.split_participants == 2


def test_display_name_is_truncated() -> None:
    name = format_display_name("X" * 120, date(2020, 1, 1), 3)

    assert len(name) == DISPLAY_NAME_MAX_LENGTH
    assert name == "X" * DISPLAY_NAME_MAX_LENGTH
    assert format_display_name("Acme", date(2021, 6, 1), 12) == "Acme - 2021-06-01 - 12"


def test_load_all_keeps_time_of_day_of_effective_start(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row(
                proposal_id,
                fingerprint=fingerprint,
                plan_codes='["P"]',
                effective_date_from=datetime(2020, 1, 1, hour, tzinfo=UTC),
            )
            for proposal_id, fingerprint, hour in (("Z", "a", 12), ("X", "a", 8), ("Y", "b", 10))
        ],
    )

    loaded = SqlAlchemyProposalRepository(sqlite_session).load_all()
    result = consolidate_proposals(loaded)

    assert [proposal.id for proposal in loaded] == ["X", "Y", "Z"]
    assert loaded[2].effective_date_range.start == datetime(2020, 1, 1, 12, tzinfo=UTC)
    assert result.retained_ids == ("X", "Y", "Z")
    assert result.consumed == {}


def test_split_config_stats_ignore_missing_fingerprints(sqlite_session: Session) -> None:
    seed_proposals(
        sqlite_session,
        [
            proposal_row("P1", fingerprint="ABC"),
            proposal_row("P2", fingerprint="ABC"),
            proposal_row("P3", fingerprint="ABC"),
            proposal_row("P4", fingerprint="XYZ"),
            proposal_row("P5", fingerprint=None),
        ],
    )

    stats = SqlAlchemyProposalRepository(sqlite_session).split_config_stats()

    assert stats.unique_configs == 2
    assert stats.average_per_config == 2.0
    assert stats.max_per_config == 3


def test_split_config_stats_on_empty_table(sqlite_session: Session) -> None:
    stats = SqlAlchemyProposalRepository(sqlite_session).split_config_stats()

    assert (stats.unique_configs, stats.average_per_config, stats.max_per_config) == (0, 0.0, 0)


def test_hierarchy_copy_replaces_previous_staging_content(sqlite_session: Session) -> None:
    seed_hierarchies(sqlite_session, ["G1"], participants_per_version=3)
    staging = SqlAlchemyStagingRepository(sqlite_session)

    staging.copy_hierarchies()
    counts = staging.copy_hierarchies()

    assert counts.hierarchies == counts.hierarchy_versions == 1
    assert counts.hierarchy_participants == 3
    levels = sorted(
        sqlite_session.execute(select(stg_hierarchy_participant_table.c.level)).scalars()
    )
    assert levels == [0, 1, 2]
