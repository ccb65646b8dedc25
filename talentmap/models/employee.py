"""
Employee Model Module

This module defines the Employee model and the schemas used to create, update and
read employees. Utilization is never stored on the employee: it is derived from
the employee's allocations every time it is needed.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, AutoString
from pydantic import EmailStr, field_validator
from datetime import datetime


class EmploymentType(str, Enum):
    permanent = "permanent"
    retainer = "retainer"


class EmployeeStatus(str, Enum):
    """
    Employee lifecycle status.

    Only ``active`` employees may have their core fields or allocations edited;
    ``on-hold`` and ``archived`` employees are read-only until reactivated.
    """
    active = "active"
    on_hold = "on-hold"
    archived = "archived"


class EmployeeBase(SQLModel):
    """
    Base properties for an Employee.
    """
    # Identity
    name: str = Field(nullable=False)
    email: Optional[str] = Field(default=None, index=True)
    code: Optional[str] = Field(default=None, unique=True)  # Employee code, e.g. "EMP-001"

    # Classification
    entity_id: Optional[int] = Field(default=None, foreign_key="entities.id")
    employment_type: EmploymentType = Field(default=EmploymentType.permanent, sa_type=AutoString)
    status: EmployeeStatus = Field(default=EmployeeStatus.active, sa_type=AutoString)
    performance_score: Optional[float] = None  # 0 - 10

    # Free-text skill tags; structured skills live in employee_skills
    primary_skills: Optional[str] = None
    secondary_skills: Optional[str] = None


class Employee(EmployeeBase, table=True):
    """
    Employee table model.

    Attributes:
        on_hold_since: ISO date the employee was last put on hold, if ever
        created_at: ISO timestamp when the employee was created
        updated_at: ISO timestamp when the employee was last modified
    """
    __tablename__ = "employees"

    id: Optional[int] = Field(default=None, primary_key=True)
    on_hold_since: Optional[str] = None

    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @property
    def is_editable(self) -> bool:
        return self.status == EmployeeStatus.active


class EmployeeCreate(EmployeeBase):
    """Schema for creating an employee."""
    email: EmailStr

    @field_validator("name")
    @classmethod
    def name_min_length(cls, v):
        if len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("performance_score")
    @classmethod
    def score_in_range(cls, v):
        if v is not None and not 0 <= v <= 10:
            raise ValueError("Score must be between 0 and 10")
        return v


class EmployeeUpdate(SQLModel):
    """Schema for updating an employee's core fields."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    code: Optional[str] = None
    entity_id: Optional[int] = None
    employment_type: Optional[EmploymentType] = None
    performance_score: Optional[float] = None
    primary_skills: Optional[str] = None
    secondary_skills: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_min_length(cls, v):
        if v is not None and len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("performance_score")
    @classmethod
    def score_in_range(cls, v):
        if v is not None and not 0 <= v <= 10:
            raise ValueError("Score must be between 0 and 10")
        return v


class EmployeeStatusUpdate(SQLModel):
    """Schema for moving an employee through active -> on-hold -> archived."""
    status: EmployeeStatus


class EmployeeRead(EmployeeBase):
    """Schema for reading an employee."""
    id: int
    on_hold_since: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
