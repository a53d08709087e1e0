"""Turnaround analytics - review durations, averages and level 2 expiry"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..config.settings import settings
from ..domain.models import (
    QAPRecord, TurnaroundFilters, TurnaroundResult, PlantTurnaround, LevelDuration,
    RequestorPerformance, AnalyticsSummary
)
from ..domain.enums import QAPStatus
from .levels import LEVELS, TERMINAL_STATUSES
from ..utils.time import ensure_utc, millis_between, utc_now, days_ago

START_MARKER = "Sent to"
END_MARKERS = ("Reviewed", "Approved")

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000


def calculate_turnaround_time(record: QAPRecord, level: int) -> int:
    """
    Milliseconds a level took, from its "Sent to ..." entry to the first
    "Reviewed ..."/"Approved" entry that follows it. 0 if either is missing.
    """
    start_index = None
    for index, entry in enumerate(record.timeline):
        if entry.level == level and START_MARKER in entry.action:
            start_index = index
            break
    if start_index is None:
        return 0

    start = record.timeline[start_index]
    for entry in record.timeline[start_index + 1:]:
        if entry.level == level and any(marker in entry.action for marker in END_MARKERS):
            return millis_between(start.timestamp, entry.timestamp)
    return 0


def _total_duration(record: QAPRecord) -> int:
    return millis_between(record.submitted_at, record.approved_at)


def calculate_average_turnaround_time(
    records: Iterable[QAPRecord],
    filters: Optional[TurnaroundFilters] = None
) -> TurnaroundResult:
    """
    Average turnaround over approved records.

    With filters.level the per-level turnaround is averaged, otherwise the
    submit-to-approve duration. Records without a measurable duration are
    left out of both the average and the count.
    """
    filters = filters or TurnaroundFilters()
    plant = (filters.plant or "").strip().lower()

    durations: List[int] = []
    for record in records:
        if record.status != QAPStatus.APPROVED.value:
            continue
        if plant and plant != "all" and record.plant != plant:
            continue
        if filters.level is not None:
            duration = calculate_turnaround_time(record, filters.level)
        else:
            duration = _total_duration(record)
        if duration > 0:
            durations.append(duration)

    if not durations:
        return TurnaroundResult(average=0, count=0)
    return TurnaroundResult(average=sum(durations) / len(durations), count=len(durations))


def calculate_level_durations(records: Iterable[QAPRecord]) -> List[LevelDuration]:
    """Average time between level start and end stamps, per level"""
    records = list(records)
    result: List[LevelDuration] = []
    for level in LEVELS:
        durations = [
            millis_between(r.level_start_times[level], r.level_end_times[level])
            for r in records
            if level in r.level_start_times and level in r.level_end_times
        ]
        average = sum(durations) / len(durations) if durations else 0
        result.append(LevelDuration(level=level, average_time=average, count=len(durations)))
    return result


def is_qap_expired(
    submitted_at: Optional[datetime],
    level: int,
    now: Optional[datetime] = None,
    timeout_ms: Optional[int] = None
) -> bool:
    """Only level 2 has a response deadline"""
    if level != 2 or submitted_at is None:
        return False
    timeout = timeout_ms if timeout_ms is not None else settings.level2_timeout_ms
    return millis_between(submitted_at, now or utc_now()) > timeout


def time_remaining_label(
    submitted_at: datetime,
    now: Optional[datetime] = None,
    timeout_ms: Optional[int] = None
) -> str:
    """'2d 5h remaining' style label for level 2 reviewers"""
    timeout = timeout_ms if timeout_ms is not None else settings.level2_timeout_ms
    left = timeout - millis_between(submitted_at, now or utc_now())
    if left <= 0:
        return "Expired"
    return f"{left // DAY_MS}d {(left % DAY_MS) // HOUR_MS}h remaining"


def build_analytics(
    records: Iterable[QAPRecord],
    plant: str = "all",
    days: int = 30,
    now: Optional[datetime] = None
) -> AnalyticsSummary:
    """
    Dashboard figures for records created in the last `days` days.

    Plant turnaround counts every approved record of the plant; records
    missing a submit or approve stamp add 0 to the total.
    """
    now = now or utc_now()
    cutoff = days_ago(days, now)
    plant = (plant or "all").strip().lower()

    filtered = [
        r for r in records
        if ensure_utc(r.created_at or now) >= cutoff and (plant == "all" or r.plant == plant)
    ]
    approved = [r for r in filtered if r.status == QAPStatus.APPROVED.value]

    status_counts: Dict[str, int] = {}
    plant_counts: Dict[str, int] = {}
    for record in filtered:
        status_counts[record.status] = status_counts.get(record.status, 0) + 1
        key = record.plant.upper()
        plant_counts[key] = plant_counts.get(key, 0) + 1

    turnaround_by_plant = []
    for key in plant_counts:
        durations = [_total_duration(r) for r in approved if r.plant.upper() == key]
        turnaround_by_plant.append(PlantTurnaround(
            plant=key,
            average_time=sum(durations) / len(durations) if durations else 0,
            count=len(durations)
        ))

    performance: Dict[str, RequestorPerformance] = {}
    for record in approved:
        if not record.submitted_by:
            continue
        entry = performance.setdefault(record.submitted_by, RequestorPerformance(username=record.submitted_by))
        entry.count += 1
        entry.total_time += _total_duration(record)

    expired = [
        r.id for r in filtered
        if r.current_level == 2 and is_qap_expired(r.submitted_at, 2, now=now)
    ]

    return AnalyticsSummary(
        status_counts=status_counts,
        plant_counts=plant_counts,
        turnaround_by_plant=turnaround_by_plant,
        level_durations=calculate_level_durations(filtered),
        requestor_performance=list(performance.values()),
        expired_ids=expired,
        total=len(filtered),
        approved=len(approved),
        pending=len([r for r in filtered if r.status not in TERMINAL_STATUSES])
    )
