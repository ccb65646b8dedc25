from typing import List, Optional

from talentmap.models.allocation import Allocation, AllocationRead
from talentmap.models.employee import EmployeeRead
from talentmap.models.skill import Certification, SkillProficiency
from talentmap.schemas.utilization import UtilizationSummary
from talentmap.services.utilization import effective_percent
from sqlmodel import SQLModel


class EmployeeWithUtilization(EmployeeRead):
    utilization: UtilizationSummary


class EmployeeSkillRead(SQLModel):
    skill_id: int
    name: str
    category: Optional[str] = None
    proficiency: SkillProficiency
    is_primary: bool


class EmployeeDetail(EmployeeWithUtilization):
    allocations: List[AllocationRead] = []
    skills: List[EmployeeSkillRead] = []
    certifications: List[Certification] = []


def allocation_read(
    allocation: Allocation,
    project_name: Optional[str] = None,
    employee_name: Optional[str] = None,
) -> AllocationRead:
    """Allocation as returned by the API, with its effective (status-adjusted) percentage."""
    return AllocationRead(
        **allocation.model_dump(),
        effective_percent=effective_percent(allocation),
        project_name=project_name,
        employee_name=employee_name,
    )
