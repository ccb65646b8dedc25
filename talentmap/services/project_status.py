"""
Project Status Rules

Date-driven project lifecycle helpers. The only automatic transition is
``proposal`` -> ``active`` once the start date has arrived; it runs as a passive
sweep whenever the project list is loaded.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from talentmap.models.project import ProjectStatus

logger = logging.getLogger(__name__)


@dataclass
class StatusChange:
    should_update: bool
    new_status: Optional[ProjectStatus] = None


def should_update_project_status(project, today: Optional[date] = None) -> StatusChange:
    if project.status != ProjectStatus.proposal or project.start_date is None:
        return StatusChange(False)
    today = today or date.today()
    if project.start_date <= today:
        return StatusChange(True, ProjectStatus.active)
    return StatusChange(False)


def ensure_proposal_has_future_start_date(
    start_date: Optional[date], status: ProjectStatus, today: Optional[date] = None
) -> Optional[date]:
    """Proposals always start in the future; a missing or past start date becomes tomorrow."""
    if status != ProjectStatus.proposal:
        return start_date
    today = today or date.today()
    if start_date is None or start_date <= today:
        return today + timedelta(days=1)
    return start_date


def project_progress(project, today: Optional[date] = None) -> int:
    """Elapsed share of the start -> end window, clamped to 0..100."""
    if project.start_date is None or project.end_date is None:
        return 0
    span = (project.end_date - project.start_date).days
    if span <= 0:
        return 100 if (today or date.today()) >= project.end_date else 0
    elapsed = ((today or date.today()) - project.start_date).days
    return min(100, max(0, round(elapsed / span * 100)))


def sweep_project_statuses(
    db: Session, projects: Iterable, today: Optional[date] = None
) -> List[int]:
    """
    Promote every due proposal to active.

    Each project is committed on its own; a failed update is rolled back and
    logged without affecting the others.

    Returns:
        List[int]: ids of the projects that were updated
    """
    updated = []
    for project in projects:
        change = should_update_project_status(project, today)
        if not change.should_update:
            continue
        try:
            project.status = change.new_status
            project.updated_at = datetime.utcnow().isoformat()
            db.add(project)
            db.commit()
            db.refresh(project)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to activate project %s: %s", project.id, e)
            continue
        logger.info("Project %s moved from proposal to active", project.id)
        updated.append(project.id)
    return updated
