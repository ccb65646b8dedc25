"""
Allocation Model Module

An allocation (a.k.a. utilization record) links one employee to one project at a
percentage of capacity for a time window. It is the many-to-many join between
employees and projects and the only source of utilization figures.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, AutoString
from pydantic import model_validator
from datetime import date, datetime


class AllocationStatus(str, Enum):
    """
    Allocation status.

    Only ``Active`` and ``Planned`` allocations count towards utilization; the
    others contribute 0 whatever percentage they store.
    """
    active = "Active"
    planned = "Planned"
    on_hold = "On Hold"
    ended = "Ended"


COUNTED_STATUSES = (AllocationStatus.active, AllocationStatus.planned)


class AllocationBase(SQLModel):
    """
    Base properties for an Allocation.

    Attributes:
        employee_id: Foreign key to the allocated employee
        project_id: Foreign key to the project
        allocation_percent: Share of the employee's capacity, 1 - 100
        start_date: First day of the allocation
        end_date: Last day of the allocation; None means open-ended
        role: Optional role on the project, e.g. "Tech Lead"
        status: Allocation status
    """
    employee_id: int = Field(foreign_key="employees.id", index=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    allocation_percent: int = Field(ge=1, le=100)
    start_date: date
    end_date: Optional[date] = None
    role: Optional[str] = None
    status: AllocationStatus = Field(default=AllocationStatus.active, sa_type=AutoString)


class Allocation(AllocationBase, table=True):
    __tablename__ = "allocations"
    # Transitions keep the id of the deleted allocation, so ids are never reused
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class AllocationCreate(AllocationBase):
    """Schema for creating an allocation."""

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class AllocationUpdate(SQLModel):
    """Schema for updating an allocation."""
    allocation_percent: Optional[int] = Field(default=None, ge=1, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    role: Optional[str] = None
    status: Optional[AllocationStatus] = None


class AllocationDraft(SQLModel):
    """One row of an employee's pending-edit allocation list."""
    id: Optional[int] = None  # None for rows added in the draft
    project_id: int
    allocation_percent: int = Field(ge=1, le=100)
    start_date: date
    end_date: Optional[date] = None
    role: Optional[str] = None
    status: AllocationStatus = AllocationStatus.active


class AllocationRead(AllocationBase):
    id: int
    created_at: Optional[str] = None
    effective_percent: int = 0
    project_name: Optional[str] = None
    employee_name: Optional[str] = None
