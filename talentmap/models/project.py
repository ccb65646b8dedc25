"""
Project Model Module

This module defines the Project model for managing project entities with lifecycle
status, timeline, and relationships to entities and accounts.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, AutoString

from datetime import date, datetime


class ProjectStatus(str, Enum):
    """
    Project lifecycle status.

    A ``proposal`` whose start date has arrived is moved to ``active`` by the
    status sweep; every other transition is an explicit user action.
    """
    proposal = "proposal"
    active = "active"
    on_hold = "on-hold"
    completed = "completed"


class ProjectBase(SQLModel):
    """
    Base properties for a Project.

    Attributes:
        name: Project name/title (required)
        entity_id: Foreign key to the owning internal entity
        account_id: Foreign key to the client Account, if any
        status: Current lifecycle status
        start_date: Project start date
        end_date: Project end date
        description: Detailed project description
    """
    # Basic project information
    name: str = Field(nullable=False)
    description: Optional[str] = None

    # Relationships
    entity_id: Optional[int] = Field(default=None, foreign_key="entities.id")
    account_id: Optional[int] = Field(default=None, foreign_key="accounts.id")

    # Status tracking
    status: ProjectStatus = Field(default=ProjectStatus.active, sa_type=AutoString)

    # Timeline
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class Project(ProjectBase, table=True):
    """
    Project table model.
    """
    __tablename__ = "projects"

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Audit timestamps - automatically managed
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""
    pass


class ProjectUpdate(SQLModel):
    """Schema for updating a project."""
    name: Optional[str] = None
    description: Optional[str] = None
    entity_id: Optional[int] = None
    account_id: Optional[int] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectRead(ProjectBase):
    """Schema for reading a project, with list-view derived fields."""
    id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    team_size: int = 0
    progress: int = 0
