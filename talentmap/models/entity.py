"""
Entity Model Module

Entities are the internal organizational units (ITS, IBCC, IITT) that employees,
projects and accounts belong to. They are reference data: read-only through the API.
"""
from typing import Optional
from sqlmodel import SQLModel, Field

from datetime import datetime


class Entity(SQLModel, table=True):
    """
    Internal organizational unit.

    Attributes:
        id: Auto-incrementing primary key
        name: Unit code, e.g. "ITS", "IBCC" or "IITT"
        created_at: ISO timestamp when the entity was created
    """
    __tablename__ = "entities"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())
