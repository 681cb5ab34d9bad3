"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from consolidator.adapters.snapshot import read_snapshot, write_result
from consolidator.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyConsolidationUnitOfWork,
    is_started,
    startup,
)
from consolidator.domain.consolidation import ConsolidationSummary, consolidate_proposals
from consolidator.domain.consolidation_run import (
    ConsolidationRun,
    VerificationReport,
    run_consolidation,
    verify_consolidation,
)
from consolidator.domain.ports import ConsolidationUnitOfWork

if TYPE_CHECKING:
    from pathlib import Path

    from consolidator.domain.consolidation import ConsolidationResult

UnitOfWorkFactory = Callable[[], ConsolidationUnitOfWork]


log = getLogger(__name__)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyConsolidationUnitOfWork


def consolidate_prestage_proposals(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ConsolidationRun:
    """Consolidate the pre-stage proposals held in the configured database."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    log.info("Starting proposal consolidation")
    run = run_consolidation(unit_of_work_factory=effective_uow)
    for retained_id, consumed in run.summary.top_absorbers():
        log.info("Top consolidated proposal %s absorbed %s proposals", retained_id, consumed)
    return run


def check_consolidation(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> VerificationReport:
    """Verify the persisted output of the last consolidation run."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    report = verify_consolidation(unit_of_work_factory=effective_uow)
    log.info(
        f"Verification finished: total={report.counts.total}, "
        f"retained={report.counts.retained}, consumed={report.counts.consumed}, "
        f"staged={report.staged}, reduction={report.reduction_ratio:.1%}, ok={report.ok}"
    )
    return report


def consolidate_snapshot_file(
    input_path: Path,
    *,
    output_path: Path | None = None,
) -> ConsolidationResult:
    """Consolidate a JSON snapshot of pre-stage proposals without a database."""

    proposals = read_snapshot(input_path)
    result = consolidate_proposals(proposals)
    summary = ConsolidationSummary.from_result(result)
    log.info(
        "Snapshot consolidation: %s -> %s proposals (%.1f%% reduction)",
        summary.total,
        summary.retained,
        summary.reduction_ratio * 100,
    )
    if output_path is not None:
        write_result(result, output_path)
    return result
