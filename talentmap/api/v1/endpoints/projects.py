"""
Project Endpoints Module

This module provides CRUD endpoints for managing projects. Loading the project
list also runs the status sweep that promotes due proposals to active. Putting a
project on hold changes the utilization of its members, so it requires explicit
confirmation.
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, col
from talentmap.api import deps
from talentmap.core.errors import ConfirmationRequired
from talentmap.db.session import get_db
from talentmap.models.allocation import Allocation, AllocationRead, AllocationStatus
from talentmap.models.employee import Employee
from talentmap.models.project import Project, ProjectCreate, ProjectRead, ProjectStatus, ProjectUpdate
from talentmap.models.transition import ProjectTransition
from talentmap.schemas.employee import allocation_read
from talentmap.services.project_status import (
    ensure_proposal_has_future_start_date, project_progress, sweep_project_statuses,
)
from talentmap.services.store import AllocationStore
from talentmap.services.utilization import is_allocation_current

router = APIRouter()


def _get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("", response_model=List[ProjectRead])
def list_projects(
    skip: int = 0,
    limit: int = 100,
    entity_id: Optional[int] = None,
    account_id: Optional[int] = None,
    status: Optional[ProjectStatus] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Retrieve a paginated, filtered list of projects with team size and progress.

    Proposals whose start date has arrived are promoted to active before the
    filters are applied.

    Args:
        skip: Number of records to skip (for pagination)
        limit: Maximum number of records to return
        entity_id: Only projects of this entity
        account_id: Only projects of this account
        status: Only projects in this status
        search: Case-insensitive substring of the project name

    Returns:
        List[ProjectRead]: Projects, newest first
    """
    proposals = db.exec(select(Project).where(Project.status == ProjectStatus.proposal)).all()
    sweep_project_statuses(db, proposals, today)

    statement = select(Project)
    if entity_id:
        statement = statement.where(Project.entity_id == entity_id)
    if account_id:
        statement = statement.where(Project.account_id == account_id)
    if status:
        statement = statement.where(Project.status == status)
    if search:
        statement = statement.where(col(Project.name).ilike(f"%{search}%"))
    statement = statement.order_by(col(Project.created_at).desc(), col(Project.id).desc())
    projects = db.exec(statement.offset(skip).limit(limit)).all()

    allocations = db.exec(
        select(Allocation).where(
            col(Allocation.project_id).in_([p.id for p in projects]),
            Allocation.status != AllocationStatus.ended,
        )
    ).all() if projects else []
    team = {}
    for a in allocations:
        if is_allocation_current(a, today):
            team.setdefault(a.project_id, set()).add(a.employee_id)

    return [
        ProjectRead(
            **p.model_dump(),
            team_size=len(team.get(p.id, ())),
            progress=project_progress(p, today),
        )
        for p in projects
    ]


@router.get("/{project_id}", response_model=ProjectRead)
def read_project(
    project_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Get a specific project by ID.

    Raises:
        HTTPException 404: If the project doesn't exist
    """
    project = _get_project_or_404(db, project_id)
    members = {
        a.employee_id for a in AllocationStore(db).allocations_for_project(project_id)
        if a.status != AllocationStatus.ended and is_allocation_current(a, today)
    }
    return ProjectRead(**project.model_dump(), team_size=len(members), progress=project_progress(project, today))


@router.get("/{project_id}/allocations", response_model=List[AllocationRead])
def list_project_allocations(
    project_id: int,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Allocations on a project with the allocated employee's name, latest start first.
    """
    _get_project_or_404(db, project_id)
    allocations = store.allocations_for_project(project_id)
    names = {
        e.id: e.name for e in db.exec(
            select(Employee).where(col(Employee.id).in_([a.employee_id for a in allocations]))
        ).all()
    } if allocations else {}
    return [allocation_read(a, employee_name=names.get(a.employee_id)) for a in allocations]


@router.post("", response_model=Project)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Create a new project.

    A proposal must start in the future: a missing or past start date is moved
    to tomorrow.
    """
    project = Project(**project_in.model_dump())
    project.start_date = ensure_proposal_has_future_start_date(project.start_date, project.status, today)
    if project.end_date and project.start_date and project.end_date < project.start_date:
        raise HTTPException(status_code=422, detail="End date cannot be before start date")

    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@router.patch("/{project_id}", response_model=Project)
def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    confirm: bool = False,
    db: Session = Depends(get_db),
    store: AllocationStore = Depends(deps.get_store),
    today: date = Depends(deps.get_today),
):
    """
    Update an existing project.

    Moving a project to on-hold needs ``confirm=true``: its active allocations
    switch to "On Hold" and stop counting towards utilization. Moving it back
    to active restores them.

    Raises:
        HTTPException 404: If the project doesn't exist
        ConfirmationRequired 409: If going on-hold without confirmation
    """
    project = _get_project_or_404(db, project_id)
    update_data = project_in.model_dump(exclude_unset=True)
    new_status = update_data.get("status")
    previous_status = ProjectStatus(project.status)

    if new_status == ProjectStatus.on_hold and previous_status != ProjectStatus.on_hold and not confirm:
        members = {
            a.employee_id for a in store.allocations_for_project(project_id)
            if a.status == AllocationStatus.active
        }
        raise ConfirmationRequired(
            f"Putting {project.name} on hold sets utilization to 0 for "
            f"{len(members)} allocated employee(s); resend with confirm=true"
        )

    # Apply updates to the project
    for key, value in update_data.items():
        setattr(project, key, value)
    if new_status == ProjectStatus.proposal:
        project.start_date = ensure_proposal_has_future_start_date(project.start_date, new_status, today)
    project.updated_at = datetime.utcnow().isoformat()

    db.add(project)
    db.commit()

    if new_status == ProjectStatus.on_hold and previous_status != ProjectStatus.on_hold:
        store.set_project_allocation_status(project_id, AllocationStatus.active, AllocationStatus.on_hold)
    elif previous_status == ProjectStatus.on_hold and new_status == ProjectStatus.active:
        store.set_project_allocation_status(project_id, AllocationStatus.on_hold, AllocationStatus.active)

    db.refresh(project)
    return project


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
):
    """
    Delete a project.

    Raises:
        HTTPException 404: If the project doesn't exist
        HTTPException 409: If the project still has allocations or history
    """
    project = _get_project_or_404(db, project_id)
    in_use = db.exec(select(Allocation).where(Allocation.project_id == project_id)).first() or \
        db.exec(select(ProjectTransition).where(ProjectTransition.project_id == project_id)).first()
    if in_use:
        raise HTTPException(status_code=409, detail="Project has allocations or history; remove them first")

    db.delete(project)
    db.commit()
    return {"status": "success", "detail": "Project deleted"}
