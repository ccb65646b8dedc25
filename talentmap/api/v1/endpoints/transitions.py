"""
Transition Endpoints Module

Project transitions are the immutable history of employees leaving projects.
They are created by removing an allocation (here, on the board, or through the
allocation endpoints); afterwards only their comment thread changes.
"""
from fastapi import APIRouter, Depends
from talentmap.api import deps
from talentmap.models.transition import CommentCreate, TransitionComment, TransitionCreate
from talentmap.schemas.board import RemovalResult
from talentmap.services.board import TalentBoard
from talentmap.services.store import AllocationStore

router = APIRouter()


@router.post("/allocations/{allocation_id}", response_model=RemovalResult)
def transition_out(
    allocation_id: int,
    transition_in: TransitionCreate,
    board: TalentBoard = Depends(deps.get_board),
):
    """
    Transition an employee out of a project: record the history entry with
    optional remarks and manager, then remove the allocation.
    """
    board.open_removal(allocation_id)
    return board.confirm_removal(
        end_date=transition_in.end_date,
        remarks=transition_in.remarks,
        manager_name=transition_in.manager_name,
    )


@router.post("/{transition_id}/comments", response_model=TransitionComment)
def add_comment(
    transition_id: int,
    comment_in: CommentCreate,
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Append a comment to a transition's thread.
    """
    return store.add_comment(transition_id, comment_in.comment_by, comment_in.comment_text)


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    store: AllocationStore = Depends(deps.get_store),
):
    """
    Delete a comment from a transition's thread.
    """
    store.delete_comment(comment_id)
    return {"status": "success", "detail": "Comment deleted"}
