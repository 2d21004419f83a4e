import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from tripwire.github.api import API
from tripwire.github.model import CheckRun, CommitStatus

logger = logging.getLogger("tripwire")


class CheckStatus(Enum):
    queued = "queued"
    in_progress = "in_progress"
    completed = "completed"


class CheckConclusion(Enum):
    action_required = "action_required"
    cancelled = "cancelled"
    failure = "failure"
    neutral = "neutral"
    success = "success"
    skipped = "skipped"
    stale = "stale"
    timed_out = "timed_out"


# Worst first
_CONCLUSION_SEVERITY = [
    CheckConclusion.failure,
    CheckConclusion.timed_out,
    CheckConclusion.action_required,
    CheckConclusion.cancelled,
    CheckConclusion.stale,
    CheckConclusion.neutral,
    CheckConclusion.skipped,
    CheckConclusion.success,
]


def _conclusion_from_api(value: Optional[str]) -> Optional[CheckConclusion]:
    if value is None:
        return None
    try:
        return CheckConclusion(value)
    except ValueError:
        logger.debug("Unknown check run conclusion %s, treating as neutral", value)
        return CheckConclusion.neutral


@dataclass(frozen=True)
class RefCheck:
    name: str
    status: CheckStatus
    conclusion: Optional[CheckConclusion] = None
    description: str = ""
    url: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    app_name: str = ""
    check_suite_id: Optional[int] = None

    @property
    def is_failure(self) -> bool:
        return self.conclusion == CheckConclusion.failure

    @classmethod
    def from_status(cls, cs: CommitStatus) -> "RefCheck":
        if cs.state == "success":
            status = CheckStatus.completed
            conclusion = CheckConclusion.success
        elif cs.state == "pending":
            status = CheckStatus.in_progress
            conclusion = None
        else:
            # both "failure" and "error" count as a failed check
            status = CheckStatus.completed
            conclusion = CheckConclusion.failure
        return cls(
            name=cs.context,
            status=status,
            conclusion=conclusion,
            description=cs.description or "",
            url=cs.target_url,
            started_at=cs.created_at,
            completed_at=cs.updated_at if status == CheckStatus.completed else None,
        )

    @classmethod
    def from_check_run(cls, cr: CheckRun) -> "RefCheck":
        if cr.status == "completed":
            status = CheckStatus.completed
        elif cr.status == "in_progress":
            status = CheckStatus.in_progress
        else:
            status = CheckStatus.queued
        description = ""
        if cr.output is not None and cr.output.title is not None:
            description = cr.output.title
        return cls(
            name=cr.name,
            status=status,
            conclusion=_conclusion_from_api(cr.conclusion),
            description=description,
            url=cr.html_url,
            started_at=cr.started_at,
            completed_at=cr.completed_at,
            app_name=(cr.app.name or cr.app.slug or "") if cr.app is not None else "",
            check_suite_id=cr.check_suite.id if cr.check_suite is not None else None,
        )


@dataclass(frozen=True)
class CombinedCheckResult:
    status: CheckStatus
    conclusion: Optional[CheckConclusion]
    checks: List[RefCheck]

    @property
    def failed_count(self) -> int:
        return count_failed_checks(self.checks)


def count_failed_checks(checks: Iterable[RefCheck]) -> int:
    return sum(1 for c in checks if c.is_failure)


def get_latest_check_runs_by_name(check_runs: Iterable[CheckRun]) -> List[CheckRun]:
    """Keep one check run per name, preferring the most recent attempt.

    Re-runs get a higher id than the run they replace. When ids don't
    disambiguate, the first run in source order is kept, since the API lists
    runs newest first.
    """
    latest: Dict[str, CheckRun] = {}
    for cr in check_runs:
        if ex_cr := latest.get(cr.name):
            if cr.id > ex_cr.id:
                latest[cr.name] = cr
        else:
            latest[cr.name] = cr
    return list(latest.values())


def create_combined_check_from_checks(
    checks: Sequence[RefCheck],
) -> Optional[CombinedCheckResult]:
    if len(checks) == 0:
        return None

    if any(c.status != CheckStatus.completed for c in checks):
        status = CheckStatus.in_progress
    else:
        status = CheckStatus.completed

    conclusion = None
    conclusions = {c.conclusion for c in checks if c.conclusion is not None}
    for candidate in _CONCLUSION_SEVERITY:
        if candidate in conclusions:
            conclusion = candidate
            break

    return CombinedCheckResult(
        status=status, conclusion=conclusion, checks=list(checks)
    )


async def get_checks_for_ref(
    api: API, owner: str, name: str, ref: str
) -> Optional[List[RefCheck]]:
    statuses, check_runs = await asyncio.gather(
        api.fetch_combined_ref_status(owner, name, ref),
        api.fetch_ref_check_runs(owner, name, ref),
    )

    if statuses is None or check_runs is None:
        logger.debug("Incomplete check data for %s/%s@%s", owner, name, ref)
        return None

    checks = [RefCheck.from_status(s) for s in statuses.statuses]
    checks += [
        RefCheck.from_check_run(cr)
        for cr in get_latest_check_runs_by_name(check_runs.check_runs)
    ]

    combined = create_combined_check_from_checks(checks)
    if combined is None or len(combined.checks) == 0:
        return None

    logger.debug(
        "Have %d checks for %s/%s@%s, %d failed",
        len(combined.checks),
        owner,
        name,
        ref,
        combined.failed_count,
    )
    return combined.checks
