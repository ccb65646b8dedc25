"""
Skill and Certification Endpoints Module

This module provides the skill directory (with holder counts and gap flags),
skill search across employees with their availability, employee skill links and
employee certifications.
"""
from datetime import date
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, func
from talentmap.api import deps
from talentmap.core.config import settings
from talentmap.db.session import get_db
from talentmap.models.employee import Employee
from talentmap.models.skill import (
    Certification, CertificationCreate, EmployeeSkill, EmployeeSkillCreate,
    Skill, SkillCreate, SkilledEmployee, SkillRead,
)
from talentmap.services.store import AllocationStore
from talentmap.services.utilization import calculate_utilization

router = APIRouter()


def _get_employee_or_404(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.get("", response_model=List[SkillRead])
def list_skills(db: Session = Depends(get_db)):
    """
    List skills with the number of employees holding each one. Skills held by
    fewer than ``SKILL_GAP_THRESHOLD`` employees are flagged as a gap.
    """
    counts = dict(db.exec(
        select(EmployeeSkill.skill_id, func.count()).group_by(EmployeeSkill.skill_id)
    ).all())
    skills = db.exec(select(Skill).order_by(Skill.name)).all()
    return [
        SkillRead(
            id=s.id,
            name=s.name,
            category=s.category,
            employee_count=counts.get(s.id, 0),
            gap=counts.get(s.id, 0) < settings.SKILL_GAP_THRESHOLD,
        )
        for s in skills
    ]


@router.post("", response_model=Skill)
def create_skill(skill_in: SkillCreate, db: Session = Depends(get_db)):
    """
    Create a new skill.

    Raises:
        HTTPException 400: If a skill with this name already exists
    """
    if db.exec(select(Skill).where(Skill.name == skill_in.name)).first():
        raise HTTPException(status_code=400, detail="Skill with this name already exists.")
    skill = Skill(**skill_in.model_dump())
    db.add(skill)
    db.commit()
    db.refresh(skill)
    return skill


@router.get("/{skill_id}/employees", response_model=List[SkilledEmployee])
def list_employees_by_skill(
    skill_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Employees holding a skill, with current utilization. An employee is
    available while their utilization is below 100%.
    """
    if not db.get(Skill, skill_id):
        raise HTTPException(status_code=404, detail="Skill not found")
    rows = db.exec(
        select(EmployeeSkill, Employee)
        .join(Employee, Employee.id == EmployeeSkill.employee_id)
        .where(EmployeeSkill.skill_id == skill_id)
        .order_by(Employee.name)
    ).all()
    allocations = store.allocations_by_employee(e.id for _, e in rows)

    result = []
    for link, employee in rows:
        utilization = calculate_utilization(allocations[employee.id], today)
        result.append(SkilledEmployee(
            employee_id=employee.id,
            name=employee.name,
            email=employee.email,
            proficiency=link.proficiency,
            is_primary=link.is_primary,
            utilization=utilization,
            available=utilization < 100,
        ))
    return result


@router.post("/employees/{employee_id}", response_model=EmployeeSkill)
def add_employee_skill(
    employee_id: int,
    link_in: EmployeeSkillCreate,
    db: Session = Depends(get_db),
):
    """
    Attach a skill to an employee.

    Raises:
        HTTPException 404: If the employee or skill doesn't exist
        HTTPException 400: If the employee already has the skill
    """
    _get_employee_or_404(db, employee_id)
    if not db.get(Skill, link_in.skill_id):
        raise HTTPException(status_code=404, detail="Skill not found")
    if db.get(EmployeeSkill, (employee_id, link_in.skill_id)):
        raise HTTPException(status_code=400, detail="Employee already has this skill.")

    link = EmployeeSkill(employee_id=employee_id, **link_in.model_dump())
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


@router.delete("/employees/{employee_id}/{skill_id}")
def remove_employee_skill(
    employee_id: int,
    skill_id: int,
    db: Session = Depends(get_db),
):
    """
    Detach a skill from an employee.
    """
    link = db.get(EmployeeSkill, (employee_id, skill_id))
    if not link:
        raise HTTPException(status_code=404, detail="Employee skill not found")
    db.delete(link)
    db.commit()
    return {"status": "success", "detail": "Skill removed"}


@router.get("/certifications/{employee_id}", response_model=List[Certification])
def list_certifications(employee_id: int, db: Session = Depends(get_db)):
    """
    Certifications of an employee, latest expiry first.
    """
    _get_employee_or_404(db, employee_id)
    statement = select(Certification).where(
        Certification.employee_id == employee_id
    ).order_by(Certification.valid_until.desc())
    return db.exec(statement).all()


@router.post("/certifications/{employee_id}", response_model=Certification)
def create_certification(
    employee_id: int,
    certification_in: CertificationCreate,
    db: Session = Depends(get_db),
):
    """
    Add a certification to an employee.
    """
    _get_employee_or_404(db, employee_id)
    certification = Certification(employee_id=employee_id, **certification_in.model_dump())
    db.add(certification)
    db.commit()
    db.refresh(certification)
    return certification


@router.delete("/certifications/item/{certification_id}")
def delete_certification(certification_id: int, db: Session = Depends(get_db)):
    """
    Delete a certification.
    """
    certification = db.get(Certification, certification_id)
    if not certification:
        raise HTTPException(status_code=404, detail="Certification not found")
    db.delete(certification)
    db.commit()
    return {"status": "success", "detail": "Certification deleted"}
