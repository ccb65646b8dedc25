"""
Allocation Draft Saving

The employee utilization dialog edits a local list of allocations and saves it in
one go. Saving diffs the draft against the stored rows: new rows are created,
changed rows updated, and rows dropped from the draft are closed out with a
transition record before being deleted, exactly like a board removal.
"""
import logging
from datetime import date
from typing import List, Optional

from talentmap.core.errors import (
    BackendError,
    DuplicateAssignmentError,
    EmployeeNotEditableError,
    ValidationFailed,
)
from talentmap.models.allocation import Allocation, AllocationDraft, AllocationStatus
from talentmap.services.store import AllocationStore

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("project_id", "allocation_percent", "start_date", "end_date", "role", "status")


def validate_drafts(drafts: List[AllocationDraft]) -> None:
    open_projects = set()
    for draft in drafts:
        if draft.end_date is not None and draft.end_date < draft.start_date:
            raise ValidationFailed("End date cannot be before start date")
        if draft.status == AllocationStatus.ended:
            continue
        if draft.project_id in open_projects:
            raise DuplicateAssignmentError("Employee is already assigned to this project")
        open_projects.add(draft.project_id)


def save_allocation_drafts(
    store: AllocationStore,
    employee_id: int,
    drafts: List[AllocationDraft],
    today: Optional[date] = None,
) -> List[Allocation]:
    """
    Replace an employee's allocations with the draft list.

    Validation runs on the whole list before any write. Each write is committed
    on its own, so a backend failure part-way leaves earlier rows saved; the
    error propagates and the caller keeps the draft for a retry.
    """
    today = today or date.today()
    employee = store.get_employee(employee_id)
    if not employee.is_editable:
        raise EmployeeNotEditableError("Only active employees can have allocations edited")
    validate_drafts(drafts)

    stored = {a.id: a for a in store.allocations_for_employee(employee_id)}
    unknown = [d.id for d in drafts if d.id is not None and d.id not in stored]
    if unknown:
        raise ValidationFailed(f"Allocations {unknown} do not belong to this employee")
    for draft in drafts:
        store.get_project(draft.project_id)

    kept = {d.id for d in drafts if d.id is not None}
    for allocation_id, allocation in stored.items():
        if allocation_id in kept:
            continue
        try:
            if store.find_transition_for_allocation(allocation) is None:
                store.create_transition(allocation, today)
        except BackendError as e:
            logger.warning("Could not record transition for allocation %s: %s", allocation_id, e.message)
        store.delete_allocation(allocation)

    for draft in drafts:
        values = draft.model_dump(include=set(_EDITABLE_FIELDS))
        if draft.id is None:
            store.create_allocation(Allocation(employee_id=employee_id, **values))
            continue
        allocation = stored[draft.id]
        changes = {k: v for k, v in values.items() if getattr(allocation, k) != v}
        if changes:
            store.update_allocation(allocation, changes)

    return store.allocations_for_employee(employee_id)
