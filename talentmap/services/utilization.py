"""
Utilization Calculator

Pure functions deriving an employee's current utilization and its classification
from the employee's allocations. Nothing here touches the database: callers load
the allocations and pass them in, so the same input always gives the same output.
"""
from datetime import date
from typing import Iterable, Optional

from talentmap.core.config import settings
from talentmap.models.allocation import COUNTED_STATUSES
from talentmap.schemas.utilization import UtilizationClass, UtilizationSummary


def is_allocation_current(allocation, ref: date) -> bool:
    """True when ``ref`` falls inside the allocation window; no end date means open-ended."""
    if allocation.start_date > ref:
        return False
    return allocation.end_date is None or ref <= allocation.end_date


def effective_percent(allocation) -> int:
    """Stored percentage for Active/Planned allocations, 0 for any other status."""
    if allocation.status in COUNTED_STATUSES:
        return allocation.allocation_percent
    return 0


def calculate_utilization(allocations: Iterable, ref: Optional[date] = None) -> int:
    """
    Total utilization percentage as of ``ref`` (default: today).

    The sum is not capped: over-allocation (more than 100) is a valid state that
    callers flag, not an error.
    """
    ref = ref or date.today()
    return sum(
        effective_percent(a) for a in allocations
        if is_allocation_current(a, ref)
    )


def classify_utilization(percent: int) -> UtilizationClass:
    if percent > settings.OVERALLOCATION_THRESHOLD:
        return UtilizationClass.overallocated
    if percent >= settings.FULL_THRESHOLD:
        return UtilizationClass.full
    if percent >= settings.PARTIAL_THRESHOLD:
        return UtilizationClass.partial
    return UtilizationClass.available


def is_on_bench(percent: int) -> bool:
    return percent < settings.BENCH_THRESHOLD


def is_overallocated(percent: int) -> bool:
    return percent > settings.OVERALLOCATION_THRESHOLD


def summarize_employee(
    employee_id: int,
    allocations: Iterable,
    ref: Optional[date] = None,
    bench_risk_label: Optional[str] = None,
) -> UtilizationSummary:
    percent = calculate_utilization(allocations, ref)
    return UtilizationSummary(
        employee_id=employee_id,
        utilization_percent=percent,
        classification=classify_utilization(percent),
        bench_risk_label=bench_risk_label,
    )
