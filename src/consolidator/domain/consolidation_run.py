"""Application services running consolidation against a unit of work."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from consolidator.domain.consolidation import ConsolidationSummary, consolidate_proposals

if TYPE_CHECKING:
    from collections.abc import Callable

    from consolidator.domain.consolidation import ConsolidationResult
    from consolidator.domain.model import ProposalId
    from consolidator.domain.ports import (
        ConsolidationUnitOfWork,
        HierarchyCounts,
        ProposalStateCounts,
        SplitConfigStats,
        SplitDataCounts,
    )

log = logging.getLogger(__name__)

TOP_ABSORBERS_LIMIT = 3


@dataclass(slots=True)
class ConsolidationRun:
    """Outcome of a persisted consolidation run."""

    result: ConsolidationResult
    summary: ConsolidationSummary
    staged: int
    display_names: int
    hierarchies: HierarchyCounts
    split_data: SplitDataCounts


@dataclass(slots=True)
class VerificationReport:
    """Post-run consistency check of pre-stage flags and staging copies."""

    counts: ProposalStateCounts
    staged: int
    orphaned: int
    split_data: SplitDataCounts
    expected_split_versions: int
    expected_split_participants: int
    config_stats: SplitConfigStats
    top_absorbers: list[tuple[ProposalId, int]] = field(
        default_factory=list[tuple["ProposalId", int]]
    )
    issues: list[str] = field(default_factory=list[str])

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def reduction_ratio(self) -> float:
        if self.counts.total == 0:
            return 0.0
        return 1 - (self.counts.retained / self.counts.total)


def run_consolidation(
    *,
    unit_of_work_factory: Callable[[], ConsolidationUnitOfWork],
) -> ConsolidationRun:
    """Consolidate every pre-stage proposal and publish the result to staging.

    The result is computed and self-checked before anything is written; all
    writes happen in one unit of work and are committed together.
    """

    with unit_of_work_factory() as uow:
        proposals = uow.repositories.proposals
        staging = uow.repositories.staging

        log.info("Step 1: loading pre-stage proposals")
        snapshot = proposals.load_all()
        log.info("Loaded %s pre-stage proposals", len(snapshot))

        log.info("Step 2: consolidating proposals")
        result = consolidate_proposals(snapshot)
        summary = ConsolidationSummary.from_result(result)

        log.info("Step 3: writing consolidation flags")
        retained = proposals.mark_retained(result.retained_ids)
        consumed = proposals.mark_consumed(result.consumed.values())
        log.info("Flagged %s retained and %s consumed proposals", retained, consumed)

        log.info("Step 4: copying retained proposals to staging")
        staged = staging.replace_proposals(result.retained)
        display_names = staging.assign_display_names()
        log.info("Staged %s proposals, named %s", staged, display_names)

        log.info("Step 5: copying hierarchies and split data to staging")
        hierarchies = staging.copy_hierarchies()
        split_data = staging.copy_split_data()
        log.info(
            "Copied %s hierarchies (%s versions, %s participants), "
            "%s split versions, %s split participants",
            hierarchies.hierarchies,
            hierarchies.hierarchy_versions,
            hierarchies.hierarchy_participants,
            split_data.split_versions,
            split_data.split_participants,
        )

        uow.commit()

    log.info(
        "Consolidation complete: %s -> %s proposals (%.1f%% reduction)",
        summary.total,
        summary.retained,
        summary.reduction_ratio * 100,
    )
    return ConsolidationRun(
        result=result,
        summary=summary,
        staged=staged,
        display_names=display_names,
        hierarchies=hierarchies,
        split_data=split_data,
    )


def verify_consolidation(
    *,
    unit_of_work_factory: Callable[[], ConsolidationUnitOfWork],
) -> VerificationReport:
    """Check persisted consolidation output for consistency."""

    with unit_of_work_factory() as uow:
        proposals = uow.repositories.proposals
        staging = uow.repositories.staging
        counts = proposals.count_by_state()
        staged = staging.count_proposals()
        orphaned = proposals.orphaned_consumption_count()
        split_data = staging.count_split_data()
        expected_split_versions = proposals.expected_split_version_count()
        expected_split_participants = proposals.expected_split_participant_count()
        config_stats = proposals.split_config_stats()
        consumption_counts = proposals.consumption_counts()

    issues: list[str] = []
    if counts.retained != staged:
        issues.append(f"Retained count {counts.retained} does not match staging count {staged}")
    if orphaned:
        issues.append(f"Found {orphaned} consumed proposals pointing at non-retained proposals")
    if counts.unconsolidated:
        issues.append(f"Found {counts.unconsolidated} proposals that were never consolidated")
    if split_data.split_versions != expected_split_versions:
        issues.append(
            f"Split versions mismatch: staging={split_data.split_versions}, "
            f"expected={expected_split_versions}"
        )
    if split_data.split_participants != expected_split_participants:
        issues.append(
            f"Split participants mismatch: staging={split_data.split_participants}, "
            f"expected={expected_split_participants}"
        )

    top_absorbers = sorted(consumption_counts.items(), key=lambda item: (-item[1], item[0]))
    report = VerificationReport(
        counts=counts,
        staged=staged,
        orphaned=orphaned,
        split_data=split_data,
        expected_split_versions=expected_split_versions,
        expected_split_participants=expected_split_participants,
        config_stats=config_stats,
        top_absorbers=top_absorbers[:TOP_ABSORBERS_LIMIT],
        issues=issues,
    )
    log.info(
        "Split configurations: %s unique, %.1f proposals on average, %s at most",
        config_stats.unique_configs,
        config_stats.average_per_config,
        config_stats.max_per_config,
    )
    for issue in issues:
        log.error("Verification issue: %s", issue)
    return report
