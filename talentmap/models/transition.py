"""
Project Transition Models Module

A transition is the immutable history record written when an employee leaves or
moves off a project assignment. Only its comment thread changes after creation.
"""
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import date, datetime


class TransitionComment(SQLModel, table=True):
    """
    Threaded comment on a transition.

    Attributes:
        transition_id: Foreign key to the commented transition
        comment_by: Author display name
        comment_text: Comment body
    """
    __tablename__ = "transition_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    transition_id: int = Field(foreign_key="project_transitions.id", index=True)
    comment_by: str = Field(nullable=False)
    comment_text: str = Field(nullable=False)
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class ProjectTransitionBase(SQLModel):
    employee_id: int = Field(foreign_key="employees.id", index=True)
    project_id: int = Field(foreign_key="projects.id")
    allocation_id: Optional[int] = None  # allocation closed out; the row itself is deleted
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    manager_name: Optional[str] = None
    remarks: Optional[str] = None


class ProjectTransition(ProjectTransitionBase, table=True):
    """
    Transition table model.

    Attributes:
        duration_days: Whole days between start_date and end_date, rounded up
        status: Always "completed"
    """
    __tablename__ = "project_transitions"

    id: Optional[int] = Field(default=None, primary_key=True)
    duration_days: Optional[int] = None
    status: str = Field(default="completed")
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())

    comments: List["TransitionComment"] = Relationship()


class TransitionCreate(SQLModel):
    """Schema for an explicit "transition out" of an allocation."""
    end_date: Optional[date] = None
    remarks: Optional[str] = None
    manager_name: Optional[str] = None


class CommentCreate(SQLModel):
    comment_by: str = Field(min_length=1)
    comment_text: str = Field(min_length=1)


class ProjectTransitionRead(ProjectTransitionBase):
    id: int
    duration_days: Optional[int] = None
    status: str
    created_at: Optional[str] = None
    project_name: Optional[str] = None
    comments: List[TransitionComment] = []
