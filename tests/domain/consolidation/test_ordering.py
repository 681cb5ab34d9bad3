from __future__ import annotations

from datetime import UTC, datetime

from consolidator.domain.consolidation import order_proposals, ordering_key
from consolidator.domain.model import CodeSet
from tests.helpers.proposals import make_proposal


def test_proposals_sort_by_group_then_effective_start_then_fingerprint() -> None:
    proposals = [
        make_proposal("P4", group_id="G2", years=(2019, 2020)),
        make_proposal("P3", group_id="G1", fingerprint="BBB", years=(2021, 2022)),
        make_proposal("P2", group_id="G1", fingerprint="AAA", years=(2021, 2022)),
        make_proposal("P1", group_id="G1", fingerprint="ZZZ", years=(2020, 2021)),
    ]

    ordered = order_proposals(proposals)

    assert [item.proposal.id for item in ordered] == ["P1", "P2", "P3", "P4"]


def test_missing_fingerprint_sorts_first() -> None:
    with_fingerprint = make_proposal("P1", fingerprint="AAA")
    without_fingerprint = make_proposal("P2", fingerprint=None)

    ordered = order_proposals([with_fingerprint, without_fingerprint])

    assert [item.proposal.id for item in ordered] == ["P2", "P1"]
    assert ordering_key(without_fingerprint)[2] == ""


def test_identical_keys_are_ordered_by_id() -> None:
    proposals = [make_proposal("P9"), make_proposal("P10"), make_proposal("P1")]

    ordered = order_proposals(proposals)

    assert [item.proposal.id for item in ordered] == ["P1", "P10", "P9"]


def test_ordering_uses_effective_start_not_date_range() -> None:
    early_effective = make_proposal("P2", years=(2023, 2024), effective_years=(2018, 2019))
    late_effective = make_proposal("P1", years=(2010, 2011), effective_years=(2020, 2021))

    ordered = order_proposals([late_effective, early_effective])

    assert [item.proposal.id for item in ordered] == ["P2", "P1"]


def test_same_day_starts_sort_by_time_of_day() -> None:
    evening = make_proposal("P1", effective_from=datetime(2020, 1, 1, 18, tzinfo=UTC))
    morning = make_proposal("P2", effective_from=datetime(2020, 1, 1, 8, tzinfo=UTC))

    ordered = order_proposals([evening, morning])

    assert [item.proposal.id for item in ordered] == ["P2", "P1"]
    assert ordering_key(morning)[1] == datetime(2020, 1, 1, 8, tzinfo=UTC)


def test_date_starts_sort_as_midnight_utc() -> None:
    midnight_date = make_proposal("P2", years=(2020, 2021))
    early_morning = make_proposal("P1", effective_from=datetime(2020, 1, 1, 1, tzinfo=UTC))

    ordered = order_proposals([early_morning, midnight_date])

    assert [item.proposal.id for item in ordered] == ["P2", "P1"]


def test_prepared_proposals_carry_decoded_codes() -> None:
    proposal = make_proposal("P1", product_codes='["DENTAL", "VISION"]', plan_codes="*")

    (item,) = order_proposals([proposal])

    assert item.product_codes == CodeSet.of(["DENTAL", "VISION"])
    assert item.plan_codes == CodeSet.match_all()
    assert item.key == ordering_key(proposal)
