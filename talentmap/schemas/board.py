from datetime import date
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from talentmap.models.allocation import AllocationRead, AllocationStatus
from talentmap.models.project import ProjectStatus
from talentmap.models.transition import ProjectTransition
from talentmap.schemas.utilization import UtilizationSummary


class BoardPhase(str, Enum):
    idle = "idle"
    pressed = "pressed"
    dragging = "dragging"
    assignment_pending = "assignment_pending"
    removal_pending = "removal_pending"


class DragSource(str, Enum):
    sidebar = "sidebar"        # unassigned employee from the talent list
    allocation = "allocation"  # existing allocation chip on a project card


class DropOutcome(str, Enum):
    ignored = "ignored"
    duplicate = "duplicate"
    assignment_pending = "assignment_pending"
    removal_pending = "removal_pending"


class AssignmentDraft(BaseModel):
    """Pending assignment form, pre-filled when an employee is dropped on a project."""
    employee_id: int
    project_id: int
    current_utilization: int
    allocation_percent: int
    start_date: date
    end_date: Optional[date] = None
    role: Optional[str] = None
    status: AllocationStatus = AllocationStatus.active
    error: Optional[str] = None


class RemovalDraft(BaseModel):
    """Pending removal form; ``is_move`` marks a chip dragged onto another project."""
    allocation_id: int
    employee_id: int
    project_id: int
    start_date: date
    end_date: date
    is_move: bool = False
    target_project_id: Optional[int] = None
    remarks: Optional[str] = None
    manager_name: Optional[str] = None
    transition_id: Optional[int] = None
    error: Optional[str] = None


class DropResult(BaseModel):
    outcome: DropOutcome
    message: Optional[str] = None
    assignment: Optional[AssignmentDraft] = None
    removal: Optional[RemovalDraft] = None


class QuickView(BaseModel):
    employee_id: int
    name: str
    utilization: UtilizationSummary
    project_ids: List[int] = []


class AssignmentResult(BaseModel):
    allocation: AllocationRead
    projected_utilization: int
    warning: Optional[str] = None


class RemovalResult(BaseModel):
    transition: Optional[ProjectTransition] = None
    history_error: Optional[str] = None
    next_assignment: Optional[AssignmentDraft] = None


# Request bodies for the stateless board endpoints

class DropRequest(BaseModel):
    employee_id: int
    project_id: Optional[int] = None
    source: DragSource = DragSource.sidebar
    allocation_id: Optional[int] = None


class AssignmentRequest(BaseModel):
    employee_id: int
    project_id: int
    allocation_percent: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    role: Optional[str] = None


class RemovalRequest(BaseModel):
    allocation_id: int
    target_project_id: Optional[int] = None
    end_date: Optional[date] = None
    remarks: Optional[str] = None
    manager_name: Optional[str] = None


# Board snapshot

class BoardMember(BaseModel):
    allocation_id: int
    employee_id: int
    name: str
    allocation_percent: int
    role: Optional[str] = None
    status: AllocationStatus


class BoardProject(BaseModel):
    id: int
    name: str
    status: ProjectStatus
    members: List[BoardMember] = Field(default_factory=list)


class BoardEmployee(BaseModel):
    id: int
    name: str
    utilization: UtilizationSummary


class BoardSnapshot(BaseModel):
    projects: List[BoardProject]
    employees: List[BoardEmployee]
