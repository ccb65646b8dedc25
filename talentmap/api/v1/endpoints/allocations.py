"""
Allocation Endpoints Module

This module provides endpoints for managing allocations (utilization records).
Creating goes through the same assignment rules as the talent board: duplicate
assignments are rejected, over-allocation only produces a warning. Deleting an
allocation writes a transition record first so the history survives.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, col
from talentmap.api import deps
from talentmap.core.errors import EmployeeNotEditableError
from talentmap.db.session import get_db
from talentmap.models.allocation import (
    AllocationCreate, AllocationDraft, AllocationRead, AllocationUpdate,
)
from talentmap.models.project import Project
from talentmap.schemas.board import AssignmentResult, RemovalResult
from talentmap.schemas.employee import allocation_read
from talentmap.services.board import TalentBoard
from talentmap.services.drafts import save_allocation_drafts
from talentmap.services.store import AllocationStore

router = APIRouter()


def _project_names(db: Session, allocations) -> dict:
    if not allocations:
        return {}
    projects = db.exec(
        select(Project).where(col(Project.id).in_([a.project_id for a in allocations]))
    ).all()
    return {p.id: p.name for p in projects}


@router.get("/employee/{employee_id}", response_model=List[AllocationRead])
def list_employee_allocations(
    employee_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Allocations of an employee with project names, latest start first.
    """
    store.get_employee(employee_id)
    allocations = store.allocations_for_employee(employee_id)
    names = _project_names(db, allocations)
    return [allocation_read(a, project_name=names.get(a.project_id)) for a in allocations]


@router.put("/employee/{employee_id}", response_model=List[AllocationRead])
def save_employee_allocations(
    employee_id: int,
    drafts: List[AllocationDraft],
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Save an employee's edited allocation list.

    Rows without an id are created, rows with an id are updated, and stored
    rows missing from the list are transitioned out and deleted.
    """
    allocations = save_allocation_drafts(store, employee_id, drafts, today)
    names = _project_names(db, allocations)
    return [allocation_read(a, project_name=names.get(a.project_id)) for a in allocations]


@router.post("", response_model=AssignmentResult)
def create_allocation(
    allocation_in: AllocationCreate,
    board: TalentBoard = Depends(deps.get_board),
):
    """
    Allocate an employee to a project.

    Returns:
        AssignmentResult: The new allocation, the employee's projected
        utilization and an over-allocation warning when it exceeds 100%

    Raises:
        DuplicateAssignmentError 409: If the employee already holds an allocation on the project
        EmployeeNotEditableError 409: If the employee is not active
    """
    draft = board.open_assignment(allocation_in.employee_id, allocation_in.project_id)
    draft.status = allocation_in.status
    return board.confirm_assignment(
        allocation_percent=allocation_in.allocation_percent,
        start_date=allocation_in.start_date,
        end_date=allocation_in.end_date,
        role=allocation_in.role,
    )


@router.patch("/{allocation_id}", response_model=AllocationRead)
def update_allocation(
    allocation_id: int,
    allocation_in: AllocationUpdate,
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Update percentage, dates, role or status of an allocation.

    Raises:
        HTTPException 422: If the resulting end date is before the start date
        EmployeeNotEditableError 409: If the employee is not active
    """
    allocation = store.get_allocation(allocation_id)
    if not store.get_employee(allocation.employee_id).is_editable:
        raise EmployeeNotEditableError("Only active employees can have allocations edited")

    changes = allocation_in.model_dump(exclude_unset=True)
    start = changes.get("start_date", allocation.start_date)
    end = changes.get("end_date", allocation.end_date)
    if end is not None and end < start:
        raise HTTPException(status_code=422, detail="End date cannot be before start date")

    return allocation_read(store.update_allocation(allocation, changes))


@router.delete("/{allocation_id}", response_model=RemovalResult)
def delete_allocation(
    allocation_id: int,
    remarks: Optional[str] = None,
    manager_name: Optional[str] = None,
    end_date: Optional[date] = None,
    board: TalentBoard = Depends(deps.get_board),
):
    """
    Remove an allocation, recording a transition for the project history first.

    Failing to record the transition does not block the removal; the result
    then carries ``history_error``.
    """
    board.open_removal(allocation_id)
    return board.confirm_removal(end_date=end_date, remarks=remarks, manager_name=manager_name)
