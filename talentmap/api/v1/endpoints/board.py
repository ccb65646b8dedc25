"""
Talent Board Endpoints Module

HTTP surface of the drag-and-drop talent map. Each request drives a fresh
``TalentBoard``: the client keeps the gesture and form state, the server
validates the drop and performs the confirmed writes.
"""
from fastapi import APIRouter, Depends
from talentmap.api import deps
from talentmap.schemas.board import (
    AssignmentRequest, AssignmentResult, BoardSnapshot, DropRequest, DropResult,
    QuickView, RemovalRequest, RemovalResult,
)
from talentmap.services.board import TalentBoard

router = APIRouter()


@router.get("", response_model=BoardSnapshot)
def read_board(board: TalentBoard = Depends(deps.get_board)):
    """
    Active projects with their member chips, and the sidebar of active
    employees with utilization summaries.
    """
    return board.snapshot()


@router.get("/employees/{employee_id}", response_model=QuickView)
def quick_view(employee_id: int, board: TalentBoard = Depends(deps.get_board)):
    """
    Quick view opened by clicking (not dragging) an employee card.
    """
    return board.quick_view(employee_id)


@router.post("/drop", response_model=DropResult)
def drop(drop_in: DropRequest, board: TalentBoard = Depends(deps.get_board)):
    """
    Validate a drop and return the form to open.

    Returns:
        DropResult: ``ignored`` when there is no target, ``duplicate`` with a
        warning when the employee is already on the project, otherwise the
        pre-filled assignment or removal draft
    """
    board.begin_drag(drop_in.employee_id, source=drop_in.source, allocation_id=drop_in.allocation_id)
    return board.drop(drop_in.project_id)


@router.post("/assignments", response_model=AssignmentResult)
def confirm_assignment(assignment_in: AssignmentRequest, board: TalentBoard = Depends(deps.get_board)):
    """
    Confirm the assignment form: create the allocation.

    Raises:
        ValidationFailed 422: If the percentage is outside 1-100
        DuplicateAssignmentError 409: If the employee is already on the project
    """
    board.open_assignment(assignment_in.employee_id, assignment_in.project_id)
    return board.confirm_assignment(
        allocation_percent=assignment_in.allocation_percent,
        start_date=assignment_in.start_date,
        end_date=assignment_in.end_date,
        role=assignment_in.role,
    )


@router.post("/removals", response_model=RemovalResult)
def confirm_removal(removal_in: RemovalRequest, board: TalentBoard = Depends(deps.get_board)):
    """
    Confirm the removal form: record the transition, delete the allocation.

    For a move (``target_project_id`` set) the result carries the pre-filled
    assignment draft for the target project.
    """
    board.open_removal(removal_in.allocation_id, target_project_id=removal_in.target_project_id)
    return board.confirm_removal(
        end_date=removal_in.end_date,
        remarks=removal_in.remarks,
        manager_name=removal_in.manager_name,
    )
