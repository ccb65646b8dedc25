"""
Bench-Duration / Risk Classifier

Advisory labels for employees sitting on the bench. Nothing in here gates a write.

Bench duration is measured from the last time the employee's utilization dropped
to zero: the latest end date among allocations and transitions that are already
over. Employees with no such history fall back to the date they were put on hold
and finally to their creation date.
"""
from datetime import date, datetime
from typing import Iterable, Optional

from talentmap.core.config import settings
from talentmap.schemas.utilization import BenchRisk


def _parse_day(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def bench_start_date(
    employee,
    allocations: Iterable = (),
    transitions: Iterable = (),
    today: Optional[date] = None,
) -> Optional[date]:
    today = today or date.today()
    ended = [
        record.end_date
        for record in [*allocations, *transitions]
        if record.end_date is not None and record.end_date < today
    ]
    if ended:
        return max(ended)
    return _parse_day(employee.on_hold_since) or _parse_day(employee.created_at)


def bench_days(start: Optional[date], today: Optional[date] = None) -> int:
    """Whole days elapsed since ``start``; 0 when unknown or in the future."""
    if start is None:
        return 0
    today = today or date.today()
    return max((today - start).days, 0)


def classify_bench_risk(utilization: int, days: int) -> BenchRisk:
    if utilization == 0:
        if days > settings.BENCH_CRISIS_DAYS:
            return BenchRisk.crisis
        if days > settings.BENCH_LAYOFF_DAYS:
            return BenchRisk.layoff_recommended
        return BenchRisk.at_risk
    if utilization < settings.BENCH_THRESHOLD:
        return BenchRisk.underutilized
    return BenchRisk.optimal


def risk_label(risk: BenchRisk) -> Optional[str]:
    """Label for the utilization output contract; "Optimal" carries no flag."""
    return None if risk == BenchRisk.optimal else risk.value
