import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from talentmap.core.config import settings
from talentmap.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=dict[str, Any])
def health_check(db: Session = Depends(get_db)) -> Any:
    """
    Health check endpoint, including database reachability.
    """
    try:
        db.exec(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "version": settings.VERSION,
        "components": {"database": database},
    }
