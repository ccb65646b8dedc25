"""
Workforce Metrics

Derived figures built on the utilization calculator: per-employee summaries with
bench risk, the bench listing, dashboard KPIs, resource distribution by entity,
upcoming releases and account metrics. Everything is recomputed from the current
rows on each call; nothing here is stored.
"""
from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, func, select

from talentmap.core.config import settings
from talentmap.models.allocation import Allocation, AllocationStatus
from talentmap.models.employee import Employee, EmployeeStatus
from talentmap.models.entity import Entity
from talentmap.models.project import Project, ProjectStatus
from talentmap.models.account import AccountMetrics
from talentmap.schemas.dashboard import DashboardKPIs, EntityDistribution, UpcomingRelease
from talentmap.schemas.utilization import BenchEntry, UtilizationClass, UtilizationSummary
from talentmap.services import bench
from talentmap.services.store import AllocationStore
from talentmap.services.utilization import (
    calculate_utilization,
    classify_utilization,
    effective_percent,
    is_allocation_current,
    is_on_bench,
)


def summarize_employees(
    store: AllocationStore, employees: Iterable[Employee], today: Optional[date] = None
) -> Dict[int, UtilizationSummary]:
    """Utilization summary, including the bench risk label, for each employee."""
    today = today or date.today()
    employees = list(employees)
    ids = [e.id for e in employees]
    allocations = store.allocations_by_employee(ids)
    transitions = store.transitions_by_employee(ids)

    summaries = {}
    for employee in employees:
        own = allocations[employee.id]
        percent = calculate_utilization(own, today)
        start = bench.bench_start_date(employee, own, transitions[employee.id], today)
        risk = bench.classify_bench_risk(percent, bench.bench_days(start, today))
        summaries[employee.id] = UtilizationSummary(
            employee_id=employee.id,
            utilization_percent=percent,
            classification=classify_utilization(percent),
            bench_risk_label=bench.risk_label(risk),
        )
    return summaries


def bench_report(store: AllocationStore, today: Optional[date] = None) -> List[BenchEntry]:
    """Active employees below the bench threshold, longest bench first."""
    today = today or date.today()
    employees = store.list_active_employees()
    ids = [e.id for e in employees]
    allocations = store.allocations_by_employee(ids)
    transitions = store.transitions_by_employee(ids)

    entries = []
    for employee in employees:
        percent = calculate_utilization(allocations[employee.id], today)
        if not is_on_bench(percent):
            continue
        start = bench.bench_start_date(employee, allocations[employee.id], transitions[employee.id], today)
        days = bench.bench_days(start, today)
        risk = bench.classify_bench_risk(percent, days)
        entries.append(BenchEntry(
            employee_id=employee.id,
            name=employee.name,
            utilization_percent=percent,
            bench_days=days,
            bench_since=start.isoformat() if start else None,
            risk=risk,
            severity=risk.severity,
        ))
    entries.sort(key=lambda e: (-e.bench_days, e.name))
    return entries


def dashboard_kpis(db: Session, today: Optional[date] = None) -> DashboardKPIs:
    store = AllocationStore(db)
    today = today or date.today()
    employees = store.list_active_employees()
    allocations = store.allocations_by_employee(e.id for e in employees)

    bench_count = sum(
        1 for e in employees
        if is_on_bench(calculate_utilization(allocations[e.id], today))
    )
    active_projects = db.exec(
        select(func.count()).select_from(Project).where(Project.status == ProjectStatus.active)
    ).one()
    total = len(employees)
    return DashboardKPIs(
        total_employees=total,
        bench_count=bench_count,
        bench_percentage=round(bench_count / total * 100) if total else 0,
        active_projects=active_projects,
        alerts_count=bench_count,
    )


def resource_distribution(db: Session, today: Optional[date] = None) -> List[EntityDistribution]:
    store = AllocationStore(db)
    today = today or date.today()
    employees = store.list_active_employees()
    allocations = store.allocations_by_employee(e.id for e in employees)
    entity_names = {e.id: e.name for e in db.exec(select(Entity)).all()}

    stats = defaultdict(Counter)
    for employee in employees:
        name = entity_names.get(employee.entity_id, "Unknown")
        percent = calculate_utilization(allocations[employee.id], today)
        stats[name][classify_utilization(percent)] += 1

    return [
        EntityDistribution(
            entity=name,
            fully_utilized=counts[UtilizationClass.full] + counts[UtilizationClass.overallocated],
            partially_utilized=counts[UtilizationClass.partial],
            available=counts[UtilizationClass.available],
        )
        for name, counts in sorted(stats.items())
    ]


def upcoming_releases(db: Session, today: Optional[date] = None) -> List[UpcomingRelease]:
    """Current allocations ending within the release window, soonest first."""
    today = today or date.today()
    horizon = today + timedelta(days=settings.UPCOMING_RELEASE_DAYS)
    statement = (
        select(Allocation, Employee, Project)
        .join(Employee, Employee.id == Allocation.employee_id)
        .join(Project, Project.id == Allocation.project_id)
        .where(
            Allocation.end_date.is_not(None),
            Allocation.end_date >= today,
            Allocation.end_date <= horizon,
            Allocation.status != AllocationStatus.ended,
            Employee.status == EmployeeStatus.active,
        )
        .order_by(Allocation.end_date)
    )
    return [
        UpcomingRelease(
            employee=employee.name,
            employee_id=employee.id,
            project=project.name,
            project_id=project.id,
            end_date=allocation.end_date,
        )
        for allocation, employee, project in db.exec(statement).all()
    ]


def account_metrics(db: Session, account_id: int, today: Optional[date] = None) -> AccountMetrics:
    """
    Active project count, unique utilized headcount and average allocation for an account.

    Headcount and average only consider allocations current on ``today`` that
    count towards utilization.
    """
    today = today or date.today()
    projects = db.exec(select(Project).where(Project.account_id == account_id)).all()
    active_ids = [p.id for p in projects if p.status == ProjectStatus.active]
    if not active_ids:
        return AccountMetrics()

    allocations = db.exec(
        select(Allocation).where(Allocation.project_id.in_(active_ids))
    ).all()
    counted = [
        a for a in allocations
        if is_allocation_current(a, today) and effective_percent(a) > 0
    ]
    average = sum(a.allocation_percent for a in counted) / len(counted) if counted else 0.0
    return AccountMetrics(
        active_projects=len(active_ids),
        utilized_resources=len({a.employee_id for a in counted}),
        average_allocation=round(average, 1),
    )
