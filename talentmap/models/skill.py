"""
Skill and Certification Models Module

Skills form a shared directory; EmployeeSkill is the junction table linking
employees to skills with a proficiency level. Certifications belong to a single
employee.
"""
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, AutoString
from datetime import date, datetime


class SkillProficiency(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"


class Skill(SQLModel, table=True):
    __tablename__ = "skills"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True)
    category: Optional[str] = None
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class EmployeeSkill(SQLModel, table=True):
    """
    Junction table for the many-to-many relationship between Employees and Skills.

    Uses a composite primary key of employee_id and skill_id.
    """
    __tablename__ = "employee_skills"

    employee_id: int = Field(foreign_key="employees.id", primary_key=True)
    skill_id: int = Field(foreign_key="skills.id", primary_key=True)
    proficiency: SkillProficiency = Field(default=SkillProficiency.intermediate, sa_type=AutoString)
    is_primary: bool = False


class Certification(SQLModel, table=True):
    __tablename__ = "certifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employees.id", index=True)
    name: str = Field(nullable=False)
    issuer: Optional[str] = None
    valid_until: Optional[date] = None
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class SkillCreate(SQLModel):
    name: str = Field(min_length=2)
    category: Optional[str] = None


class SkillRead(SQLModel):
    id: int
    name: str
    category: Optional[str] = None
    employee_count: int = 0
    gap: bool = False


class EmployeeSkillCreate(SQLModel):
    skill_id: int
    proficiency: SkillProficiency = SkillProficiency.intermediate
    is_primary: bool = False


class CertificationCreate(SQLModel):
    name: str = Field(min_length=1)
    issuer: Optional[str] = None
    valid_until: Optional[date] = None


class SkilledEmployee(SQLModel):
    """Employee holding a skill, with current availability."""
    employee_id: int
    name: str
    email: Optional[str] = None
    proficiency: SkillProficiency
    is_primary: bool
    utilization: int
    available: bool
