"""
Allocation Store

Thin read/write layer over the database used by the utilization views and the
talent board: "fetch matching rows" and "mutate one row by id". Database errors
are rolled back and surfaced as ``BackendError`` carrying the backend message;
nothing is assumed committed after a failure.
"""
import logging
import math
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from talentmap.core.errors import BackendError, NotFoundError
from talentmap.models.allocation import Allocation, AllocationStatus
from talentmap.models.employee import Employee, EmployeeStatus
from talentmap.models.project import Project, ProjectStatus
from talentmap.models.transition import ProjectTransition, TransitionComment

logger = logging.getLogger(__name__)


def transition_duration_days(start_date: Optional[date], end_date: Optional[date]) -> Optional[int]:
    if start_date is None or end_date is None:
        return None
    return max(math.ceil((end_date - start_date).days), 0)


class AllocationStore:
    def __init__(self, db: Session):
        self.db = db

    # --- reads -------------------------------------------------------------

    def get_employee(self, employee_id: int) -> Employee:
        employee = self.db.get(Employee, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_project(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project not found")
        return project

    def get_allocation(self, allocation_id: int) -> Allocation:
        allocation = self.db.get(Allocation, allocation_id)
        if not allocation:
            raise NotFoundError("Allocation not found")
        return allocation

    def get_transition(self, transition_id: int) -> ProjectTransition:
        transition = self.db.get(ProjectTransition, transition_id)
        if not transition:
            raise NotFoundError("Transition not found")
        return transition

    def list_active_employees(self) -> List[Employee]:
        statement = select(Employee).where(
            Employee.status == EmployeeStatus.active
        ).order_by(Employee.name)
        return list(self.db.exec(statement).all())

    def list_active_projects(self) -> List[Project]:
        statement = select(Project).where(
            Project.status == ProjectStatus.active
        ).order_by(Project.name)
        return list(self.db.exec(statement).all())

    def allocations_for_employee(self, employee_id: int) -> List[Allocation]:
        statement = select(Allocation).where(
            Allocation.employee_id == employee_id
        ).order_by(Allocation.start_date.desc())
        return list(self.db.exec(statement).all())

    def allocations_for_project(self, project_id: int) -> List[Allocation]:
        statement = select(Allocation).where(
            Allocation.project_id == project_id
        ).order_by(Allocation.start_date.desc())
        return list(self.db.exec(statement).all())

    def allocations_by_employee(self, employee_ids: Iterable[int]) -> Dict[int, List[Allocation]]:
        """Allocations for many employees at once, grouped by employee id."""
        ids = list(employee_ids)
        grouped: Dict[int, List[Allocation]] = {i: [] for i in ids}
        if not ids:
            return grouped
        statement = select(Allocation).where(Allocation.employee_id.in_(ids))
        for allocation in self.db.exec(statement).all():
            grouped[allocation.employee_id].append(allocation)
        return grouped

    def find_open_allocation(self, employee_id: int, project_id: int) -> Optional[Allocation]:
        """The employee's allocation on the project that has not ended, if any."""
        statement = select(Allocation).where(
            Allocation.employee_id == employee_id,
            Allocation.project_id == project_id,
            Allocation.status != AllocationStatus.ended,
        )
        return self.db.exec(statement).first()

    def find_transition_for_allocation(self, allocation: Allocation) -> Optional[ProjectTransition]:
        """History already recorded for this allocation by an earlier removal attempt, if any."""
        statement = select(ProjectTransition).where(
            ProjectTransition.allocation_id == allocation.id,
            ProjectTransition.employee_id == allocation.employee_id,
            ProjectTransition.project_id == allocation.project_id,
        )
        return self.db.exec(statement).first()

    def transitions_for_employee(self, employee_id: int) -> List[ProjectTransition]:
        statement = select(ProjectTransition).where(
            ProjectTransition.employee_id == employee_id
        ).order_by(ProjectTransition.end_date.desc())
        return list(self.db.exec(statement).all())

    def transitions_by_employee(self, employee_ids: Iterable[int]) -> Dict[int, List[ProjectTransition]]:
        ids = list(employee_ids)
        grouped: Dict[int, List[ProjectTransition]] = {i: [] for i in ids}
        if not ids:
            return grouped
        statement = select(ProjectTransition).where(ProjectTransition.employee_id.in_(ids))
        for transition in self.db.exec(statement).all():
            grouped[transition.employee_id].append(transition)
        return grouped

    def reload(self, instance):
        """Re-read a row expired by a later commit in the same session."""
        self.db.refresh(instance)
        return instance

    # --- writes ------------------------------------------------------------

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise BackendError(str(getattr(e, "orig", None) or e)) from e

    def create_allocation(self, allocation: Allocation) -> Allocation:
        self.db.add(allocation)
        self._commit("create allocation")
        self.db.refresh(allocation)
        logger.info(
            "Allocated employee %s to project %s at %s%%",
            allocation.employee_id, allocation.project_id, allocation.allocation_percent,
        )
        return allocation

    def update_allocation(self, allocation: Allocation, changes: dict) -> Allocation:
        for key, value in changes.items():
            setattr(allocation, key, value)
        self.db.add(allocation)
        self._commit("update allocation")
        self.db.refresh(allocation)
        return allocation

    def delete_allocation(self, allocation: Allocation) -> None:
        allocation_id = allocation.id
        self.db.delete(allocation)
        self._commit("delete allocation")
        logger.info("Deleted allocation %s", allocation_id)

    def set_project_allocation_status(
        self, project_id: int, from_status: AllocationStatus, to_status: AllocationStatus
    ) -> int:
        """Switch every allocation of a project from one status to another; returns the count."""
        statement = select(Allocation).where(
            Allocation.project_id == project_id,
            Allocation.status == from_status,
        )
        allocations = self.db.exec(statement).all()
        for allocation in allocations:
            allocation.status = to_status
            self.db.add(allocation)
        self._commit("update project allocations")
        return len(allocations)

    def create_transition(
        self,
        allocation: Allocation,
        end_date: date,
        remarks: Optional[str] = None,
        manager_name: Optional[str] = None,
    ) -> ProjectTransition:
        transition = ProjectTransition(
            employee_id=allocation.employee_id,
            project_id=allocation.project_id,
            allocation_id=allocation.id,
            start_date=allocation.start_date,
            end_date=end_date,
            duration_days=transition_duration_days(allocation.start_date, end_date),
            manager_name=manager_name,
            remarks=remarks or None,
            status="completed",
        )
        self.db.add(transition)
        self._commit("record transition")
        self.db.refresh(transition)
        return transition

    def add_comment(self, transition_id: int, comment_by: str, comment_text: str) -> TransitionComment:
        transition = self.db.get(ProjectTransition, transition_id)
        if not transition:
            raise NotFoundError("Transition not found")
        comment = TransitionComment(
            transition_id=transition_id,
            comment_by=comment_by,
            comment_text=comment_text,
        )
        self.db.add(comment)
        transition.updated_at = datetime.utcnow().isoformat()
        self.db.add(transition)
        self._commit("add comment")
        self.db.refresh(comment)
        return comment

    def delete_comment(self, comment_id: int) -> None:
        comment = self.db.get(TransitionComment, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")
        self.db.delete(comment)
        self._commit("delete comment")
