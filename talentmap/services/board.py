"""
Talent Board

Reassignment workflow behind the drag-and-drop talent map. A ``TalentBoard`` is
the view state of one operator: the gesture in progress, at most one pending
form, and a query cache invalidated after every successful write.

Phases::

    idle -> pressed -> dragging -> (drop) -> assignment_pending | removal_pending | idle
    pressed -> (release without movement) -> idle, returning a quick view

Duplicate assignments are a hard block. Over-allocation is only a warning.
Removal writes a transition record first; failing to write it is logged and the
removal goes ahead. Failed creates/deletes keep the form pending with the
backend message so the operator can retry or cancel.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from talentmap.core.config import settings
from talentmap.core.errors import (
    BackendError,
    DuplicateAssignmentError,
    EmployeeNotEditableError,
    ValidationFailed,
)
from talentmap.models.allocation import Allocation, AllocationStatus
from talentmap.models.employee import EmployeeStatus
from talentmap.schemas.board import (
    AssignmentDraft,
    AssignmentResult,
    BoardEmployee,
    BoardMember,
    BoardPhase,
    BoardProject,
    BoardSnapshot,
    DragSource,
    DropOutcome,
    DropResult,
    QuickView,
    RemovalDraft,
    RemovalResult,
)
from talentmap.schemas.employee import allocation_read
from talentmap.services.cache import QueryCache
from talentmap.services.metrics import summarize_employees
from talentmap.services.store import AllocationStore
from talentmap.services.utilization import (
    calculate_utilization,
    is_allocation_current,
    is_overallocated,
    summarize_employee,
)

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def is_click(down: Point, up: Point, tolerance: float) -> bool:
    """A press released within ``tolerance`` pixels of where it started is a click, not a drag."""
    return math.hypot(up[0] - down[0], up[1] - down[1]) <= tolerance


@dataclass
class _Press:
    employee_id: int
    origin: Point
    source: DragSource
    allocation_id: Optional[int] = None


class TalentBoard:
    def __init__(
        self,
        store: AllocationStore,
        cache: Optional[QueryCache] = None,
        today: Optional[date] = None,
        drag_tolerance: Optional[float] = None,
    ):
        self.store = store
        self.cache = cache or QueryCache()
        self.today = today or date.today()
        self.drag_tolerance = (
            settings.DRAG_ACTIVATION_DISTANCE if drag_tolerance is None else drag_tolerance
        )
        self.phase = BoardPhase.idle
        self.assignment: Optional[AssignmentDraft] = None
        self.removal: Optional[RemovalDraft] = None
        self._press: Optional[_Press] = None

    # --- cached reads ------------------------------------------------------

    def _employee_allocations(self, employee_id: int):
        return self.cache.get_or_load(
            ("allocations", "employee", employee_id),
            lambda: self.store.allocations_for_employee(employee_id),
        )

    def _employee(self, employee_id: int):
        return self.cache.get_or_load(
            ("employees", employee_id),
            lambda: self.store.get_employee(employee_id),
        )

    def _invalidate(self):
        self.cache.invalidate(("allocations",), ("employees",), ("projects",), ("transitions",))

    def current_utilization(self, employee_id: int) -> int:
        return calculate_utilization(self._employee_allocations(employee_id), self.today)

    def _editable_employee(self, employee_id: int):
        employee = self._employee(employee_id)
        if not employee.is_editable:
            raise EmployeeNotEditableError(
                f"{employee.name} is {EmployeeStatus(employee.status).value}; "
                "only active employees can be reassigned"
            )
        return employee

    def _require_phase(self, phase: BoardPhase):
        if self.phase != phase:
            raise ValidationFailed(f"Board is {self.phase.value}, expected {phase.value}")

    def _reset(self):
        self.phase = BoardPhase.idle
        self.assignment = None
        self.removal = None
        self._press = None

    # --- gesture -----------------------------------------------------------

    def pointer_down(
        self,
        employee_id: int,
        x: float,
        y: float,
        source: DragSource = DragSource.sidebar,
        allocation_id: Optional[int] = None,
    ) -> None:
        self._require_phase(BoardPhase.idle)
        if source == DragSource.allocation and allocation_id is None:
            raise ValidationFailed("Dragging an allocation chip requires its allocation id")
        self._press = _Press(employee_id, (x, y), source, allocation_id)
        self.phase = BoardPhase.pressed

    def begin_drag(
        self,
        employee_id: int,
        source: DragSource = DragSource.sidebar,
        allocation_id: Optional[int] = None,
    ) -> None:
        """Enter ``dragging`` directly, for callers that already resolved the gesture."""
        self.pointer_down(employee_id, 0, 0, source=source, allocation_id=allocation_id)
        self.phase = BoardPhase.dragging

    def pointer_move(self, x: float, y: float) -> None:
        if self.phase == BoardPhase.pressed and not is_click(self._press.origin, (x, y), self.drag_tolerance):
            self.phase = BoardPhase.dragging

    def pointer_up(self, x: float, y: float, target_project_id: Optional[int] = None):
        """
        Finish the gesture.

        Returns:
            QuickView when the press never became a drag, otherwise the DropResult.
        """
        if self.phase == BoardPhase.pressed:
            if is_click(self._press.origin, (x, y), self.drag_tolerance):
                employee_id = self._press.employee_id
                self._reset()
                return self.quick_view(employee_id)
            self.phase = BoardPhase.dragging
        if self.phase == BoardPhase.dragging:
            return self.drop(target_project_id)
        return None

    def drop(self, project_id: Optional[int]) -> DropResult:
        self._require_phase(BoardPhase.dragging)
        press = self._press
        self._reset()

        if project_id is None:
            return DropResult(outcome=DropOutcome.ignored)

        if press.source == DragSource.allocation:
            source = self.store.get_allocation(press.allocation_id)
            if source.project_id == project_id:
                return DropResult(outcome=DropOutcome.ignored)

        project = self.store.get_project(project_id)
        if self.store.find_open_allocation(press.employee_id, project_id):
            employee = self._employee(press.employee_id)
            message = f"{employee.name} is already assigned to {project.name}"
            logger.warning(message)
            return DropResult(outcome=DropOutcome.duplicate, message=message)

        if press.source == DragSource.sidebar:
            draft = self.open_assignment(press.employee_id, project_id)
            return DropResult(outcome=DropOutcome.assignment_pending, assignment=draft)

        draft = self.open_removal(press.allocation_id, target_project_id=project_id)
        return DropResult(outcome=DropOutcome.removal_pending, removal=draft)

    def quick_view(self, employee_id: int) -> QuickView:
        employee = self._employee(employee_id)
        allocations = self._employee_allocations(employee_id)
        return QuickView(
            employee_id=employee.id,
            name=employee.name,
            utilization=summarize_employee(employee.id, allocations, self.today),
            project_ids=[
                a.project_id for a in allocations if is_allocation_current(a, self.today)
            ],
        )

    # --- assignment --------------------------------------------------------

    def open_assignment(self, employee_id: int, project_id: int) -> AssignmentDraft:
        self._require_phase(BoardPhase.idle)
        self._editable_employee(employee_id)
        self.store.get_project(project_id)
        if self.store.find_open_allocation(employee_id, project_id):
            raise DuplicateAssignmentError("Employee is already assigned to this project")

        current = self.current_utilization(employee_id)
        remaining = 100 - current
        self.assignment = AssignmentDraft(
            employee_id=employee_id,
            project_id=project_id,
            current_utilization=current,
            allocation_percent=remaining if remaining >= 1 else settings.DEFAULT_ALLOCATION_PERCENT,
            start_date=self.today,
        )
        self.phase = BoardPhase.assignment_pending
        return self.assignment

    def confirm_assignment(
        self,
        allocation_percent: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        role: Optional[str] = None,
    ) -> AssignmentResult:
        self._require_phase(BoardPhase.assignment_pending)
        draft = self.assignment
        if allocation_percent is not None:
            draft.allocation_percent = allocation_percent
        if start_date is not None:
            draft.start_date = start_date
        if end_date is not None:
            draft.end_date = end_date
        if role is not None:
            draft.role = role

        if not 1 <= draft.allocation_percent <= 100:
            draft.error = "Allocation must be between 1% and 100%"
            raise ValidationFailed(draft.error)
        if draft.end_date is not None and draft.end_date < draft.start_date:
            draft.error = "End date cannot be before start date"
            raise ValidationFailed(draft.error)
        if self.store.find_open_allocation(draft.employee_id, draft.project_id):
            draft.error = "Employee is already assigned to this project"
            raise DuplicateAssignmentError(draft.error)

        allocation = Allocation(
            employee_id=draft.employee_id,
            project_id=draft.project_id,
            allocation_percent=draft.allocation_percent,
            start_date=draft.start_date,
            end_date=draft.end_date,
            role=draft.role,
            status=draft.status,
        )
        existing = self._employee_allocations(draft.employee_id)
        draft.current_utilization = calculate_utilization(existing, self.today)
        projected = calculate_utilization([*existing, allocation], self.today)
        warning = None
        if is_overallocated(projected):
            employee = self._employee(draft.employee_id)
            warning = f"{employee.name} will be overallocated ({projected}%)"
            logger.warning(warning)

        try:
            allocation = self.store.create_allocation(allocation)
        except BackendError as e:
            draft.error = e.message
            raise

        self._invalidate()
        self._reset()
        return AssignmentResult(
            allocation=allocation_read(allocation), projected_utilization=projected, warning=warning,
        )

    # --- removal -----------------------------------------------------------

    def open_removal(self, allocation_id: int, target_project_id: Optional[int] = None) -> RemovalDraft:
        self._require_phase(BoardPhase.idle)
        allocation = self.store.get_allocation(allocation_id)
        self._editable_employee(allocation.employee_id)
        if target_project_id is not None:
            self.store.get_project(target_project_id)

        self.removal = RemovalDraft(
            allocation_id=allocation.id,
            employee_id=allocation.employee_id,
            project_id=allocation.project_id,
            start_date=allocation.start_date,
            end_date=self.today,
            is_move=target_project_id is not None,
            target_project_id=target_project_id,
        )
        self.phase = BoardPhase.removal_pending
        return self.removal

    def confirm_removal(
        self,
        end_date: Optional[date] = None,
        remarks: Optional[str] = None,
        manager_name: Optional[str] = None,
    ) -> RemovalResult:
        self._require_phase(BoardPhase.removal_pending)
        draft = self.removal
        if end_date is not None:
            draft.end_date = end_date
        if remarks is not None:
            draft.remarks = remarks
        if manager_name is not None:
            draft.manager_name = manager_name

        allocation = self.store.get_allocation(draft.allocation_id)

        history_error = None
        if draft.transition_id is not None:
            transition = self.store.get_transition(draft.transition_id)
        else:
            # written by an earlier attempt whose delete failed
            transition = self.store.find_transition_for_allocation(allocation)
        if transition is not None:
            draft.transition_id = transition.id
        else:
            try:
                transition = self.store.create_transition(
                    allocation, draft.end_date, remarks=draft.remarks, manager_name=draft.manager_name,
                )
                draft.transition_id = transition.id
            except BackendError as e:
                history_error = e.message
                logger.warning(
                    "Could not record transition for allocation %s, removing anyway: %s",
                    allocation.id, e.message,
                )

        try:
            self.store.delete_allocation(allocation)
        except BackendError as e:
            draft.error = e.message
            raise

        if transition is not None:
            transition = self.store.reload(transition)
        self._invalidate()
        employee_id, target = draft.employee_id, draft.target_project_id
        self._reset()

        next_assignment = None
        if target is not None:
            next_assignment = self.open_assignment(employee_id, target)
        return RemovalResult(transition=transition, history_error=history_error, next_assignment=next_assignment)

    def cancel(self) -> None:
        """Discard any pending draft or gesture; nothing is written."""
        self._reset()

    # --- view --------------------------------------------------------------

    def snapshot(self) -> BoardSnapshot:
        projects = self.cache.get_or_load(("projects", "active"), self.store.list_active_projects)
        employees = self.cache.get_or_load(("employees", "active"), self.store.list_active_employees)
        summaries = summarize_employees(self.store, employees, self.today)
        names = {e.id: e.name for e in employees}

        board_projects = []
        for project in projects:
            allocations = self.cache.get_or_load(
                ("allocations", "project", project.id),
                lambda pid=project.id: self.store.allocations_for_project(pid),
            )
            members = []
            for a in allocations:
                if a.status == AllocationStatus.ended:
                    continue
                name = names.get(a.employee_id) or self._employee(a.employee_id).name
                members.append(BoardMember(
                    allocation_id=a.id,
                    employee_id=a.employee_id,
                    name=name,
                    allocation_percent=a.allocation_percent,
                    role=a.role,
                    status=a.status,
                ))
            board_projects.append(BoardProject(
                id=project.id, name=project.name, status=project.status, members=members,
            ))

        return BoardSnapshot(
            projects=board_projects,
            employees=[
                BoardEmployee(id=e.id, name=e.name, utilization=summaries[e.id])
                for e in employees
            ],
        )
