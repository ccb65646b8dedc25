"""
Employee Endpoints Module

This module provides endpoints for managing employees. Every employee returned
carries its utilization summary, derived from allocations at request time.
Only active employees may have their core fields edited; status changes are
always allowed.
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, col
from talentmap.api import deps
from talentmap.db.session import get_db
from talentmap.models.employee import (
    Employee, EmployeeCreate, EmployeeUpdate, EmployeeStatus, EmployeeStatusUpdate, EmploymentType,
)
from talentmap.models.project import Project
from talentmap.models.skill import Certification, EmployeeSkill, Skill
from talentmap.models.transition import ProjectTransitionRead
from talentmap.schemas.employee import (
    EmployeeDetail, EmployeeSkillRead, EmployeeWithUtilization, allocation_read,
)
from talentmap.schemas.utilization import BenchEntry, UtilizationClass, UtilizationSummary
from talentmap.services.metrics import bench_report, summarize_employees
from talentmap.services.store import AllocationStore

router = APIRouter()


def _get_employee_or_404(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.get("", response_model=List[EmployeeWithUtilization])
def list_employees(
    skip: int = 0,
    limit: int = 100,
    entity_id: Optional[int] = None,
    employment_type: Optional[EmploymentType] = None,
    utilization_status: Optional[UtilizationClass] = None,
    search: Optional[str] = None,
    status: EmployeeStatus = EmployeeStatus.active,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Retrieve a paginated, filtered list of employees with their utilization.

    Args:
        skip: Number of records to skip (for pagination)
        limit: Maximum number of records to return
        entity_id: Only employees of this entity
        employment_type: Only permanent or retainer employees
        utilization_status: Only employees in this utilization band
        search: Case-insensitive substring of the employee name
        status: Lifecycle status to list (default: active)

    Returns:
        List[EmployeeWithUtilization]: Employees ordered by name
    """
    statement = select(Employee).where(Employee.status == status)
    if entity_id:
        statement = statement.where(Employee.entity_id == entity_id)
    if employment_type:
        statement = statement.where(Employee.employment_type == employment_type)
    if search:
        statement = statement.where(col(Employee.name).ilike(f"%{search}%"))
    employees = db.exec(statement.order_by(Employee.name)).all()

    summaries = summarize_employees(store, employees, today)
    rows = [
        EmployeeWithUtilization(**e.model_dump(), utilization=summaries[e.id])
        for e in employees
    ]
    # Utilization is derived, so its filter runs after the query
    if utilization_status:
        rows = [r for r in rows if r.utilization.classification == utilization_status]
    return rows[skip:skip + limit]


@router.get("/bench", response_model=List[BenchEntry])
def list_bench(
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Active employees below the bench threshold, with bench duration and risk label.
    """
    return bench_report(store, today)


@router.get("/{employee_id}", response_model=EmployeeDetail)
def read_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Get an employee with utilization, allocations, skills and certifications.

    Raises:
        HTTPException 404: If the employee doesn't exist
    """
    employee = _get_employee_or_404(db, employee_id)
    summary = summarize_employees(store, [employee], today)[employee.id]

    allocations = store.allocations_for_employee(employee_id)
    project_names = {
        p.id: p.name for p in db.exec(
            select(Project).where(col(Project.id).in_([a.project_id for a in allocations]))
        ).all()
    } if allocations else {}

    skills = db.exec(
        select(EmployeeSkill, Skill)
        .join(Skill, Skill.id == EmployeeSkill.skill_id)
        .where(EmployeeSkill.employee_id == employee_id)
        .order_by(Skill.name)
    ).all()
    certifications = db.exec(
        select(Certification).where(Certification.employee_id == employee_id)
    ).all()

    return EmployeeDetail(
        **employee.model_dump(),
        utilization=summary,
        allocations=[allocation_read(a, project_name=project_names.get(a.project_id)) for a in allocations],
        skills=[
            EmployeeSkillRead(
                skill_id=skill.id,
                name=skill.name,
                category=skill.category,
                proficiency=link.proficiency,
                is_primary=link.is_primary,
            )
            for link, skill in skills
        ],
        certifications=certifications,
    )


@router.get("/{employee_id}/utilization", response_model=UtilizationSummary)
def read_employee_utilization(
    employee_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Get the derived utilization summary of one employee.
    """
    employee = _get_employee_or_404(db, employee_id)
    return summarize_employees(store, [employee], today)[employee.id]


@router.get("/{employee_id}/history", response_model=List[ProjectTransitionRead])
def read_project_history(
    employee_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Project history of an employee: transitions with their comment threads,
    most recent end date first.
    """
    _get_employee_or_404(db, employee_id)
    transitions = store.transitions_for_employee(employee_id)
    names = {
        p.id: p.name for p in db.exec(
            select(Project).where(col(Project.id).in_([t.project_id for t in transitions]))
        ).all()
    } if transitions else {}
    return [
        ProjectTransitionRead(
            **t.model_dump(),
            project_name=names.get(t.project_id),
            comments=sorted(t.comments, key=lambda c: c.created_at or ""),
        )
        for t in transitions
    ]


@router.post("", response_model=Employee)
def create_employee(
    employee_in: EmployeeCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new employee.

    Raises:
        HTTPException 400: If an employee with this code already exists
    """
    if employee_in.code:
        existing = db.exec(select(Employee).where(Employee.code == employee_in.code)).first()
        if existing:
            raise HTTPException(status_code=400, detail="Employee with this code already exists.")

    employee = Employee(**employee_in.model_dump())
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@router.patch("/{employee_id}", response_model=Employee)
def update_employee(
    employee_id: int,
    employee_in: EmployeeUpdate,
    db: Session = Depends(get_db),
):
    """
    Update an employee's core fields.

    Raises:
        HTTPException 404: If the employee doesn't exist
        HTTPException 409: If the employee is not active
        HTTPException 400: If another employee already has this code
    """
    employee = _get_employee_or_404(db, employee_id)
    if not employee.is_editable:
        raise HTTPException(
            status_code=409,
            detail=f"Only active employees can be edited (status: {EmployeeStatus(employee.status).value})",
        )

    update_data = employee_in.model_dump(exclude_unset=True)
    if update_data.get("code"):
        existing = db.exec(
            select(Employee).where(Employee.code == update_data["code"], Employee.id != employee_id)
        ).first()
        if existing:
            raise HTTPException(status_code=400, detail="Employee with this code already exists.")

    # Apply updates to the employee
    for key, value in update_data.items():
        setattr(employee, key, value)
    employee.updated_at = datetime.utcnow().isoformat()

    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@router.patch("/{employee_id}/status", response_model=Employee)
def update_employee_status(
    employee_id: int,
    status_in: EmployeeStatusUpdate,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Move an employee between active, on-hold and archived.

    Putting an employee on hold records the date, which anchors the bench
    duration of employees without allocation history.
    """
    employee = _get_employee_or_404(db, employee_id)
    if status_in.status == EmployeeStatus.on_hold and employee.status != EmployeeStatus.on_hold:
        employee.on_hold_since = today.isoformat()
    elif status_in.status == EmployeeStatus.active:
        employee.on_hold_since = None
    employee.status = status_in.status
    employee.updated_at = datetime.utcnow().isoformat()

    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@router.delete("/{employee_id}")
def archive_employee(
    employee_id: int,
    db: Session = Depends(get_db),
):
    """
    Archive an employee (soft delete). The row and its history are kept.
    """
    employee = _get_employee_or_404(db, employee_id)
    employee.status = EmployeeStatus.archived
    employee.updated_at = datetime.utcnow().isoformat()
    db.add(employee)
    db.commit()
    return {"status": "success", "detail": "Employee archived"}
