from datetime import date
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from talentmap.api import deps
from talentmap.db.session import get_db
from talentmap.schemas.dashboard import DashboardKPIs, EntityDistribution, UpcomingRelease
from talentmap.services import metrics

router = APIRouter()


@router.get("/kpis", response_model=DashboardKPIs)
def read_kpis(db: Session = Depends(get_db), today: date = Depends(deps.get_today)):
    """
    Headline figures: active headcount, bench count and share, active projects, alerts.
    """
    return metrics.dashboard_kpis(db, today)


@router.get("/resource-distribution", response_model=List[EntityDistribution])
def read_resource_distribution(db: Session = Depends(get_db), today: date = Depends(deps.get_today)):
    """
    Active employees per entity, split into fully, partially and not utilized.
    """
    return metrics.resource_distribution(db, today)


@router.get("/upcoming-releases", response_model=List[UpcomingRelease])
def read_upcoming_releases(db: Session = Depends(get_db), today: date = Depends(deps.get_today)):
    """
    Allocations ending within the release window.
    """
    return metrics.upcoming_releases(db, today)
