from datetime import date
from talentmap.schemas.utilization import CamelModel


class DashboardKPIs(CamelModel):
    total_employees: int
    bench_count: int
    bench_percentage: int
    active_projects: int
    alerts_count: int


class EntityDistribution(CamelModel):
    entity: str
    fully_utilized: int
    partially_utilized: int
    available: int


class UpcomingRelease(CamelModel):
    employee: str
    employee_id: int
    project: str
    project_id: int
    end_date: date
