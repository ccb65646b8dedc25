"""
API Dependencies Module

This module provides FastAPI dependency functions wiring the database session into
the service layer: the allocation store and a per-request talent board.
"""
from datetime import date

from fastapi import Depends
from sqlmodel import Session

from talentmap.db.session import get_db
from talentmap.services.board import TalentBoard
from talentmap.services.store import AllocationStore


def get_today() -> date:
    """
    Reference date for every derived figure in a request.

    Overridden in tests to pin the calendar.
    """
    return date.today()


def get_store(db: Session = Depends(get_db)) -> AllocationStore:
    return AllocationStore(db)


def get_board(
    store: AllocationStore = Depends(get_store),
    today: date = Depends(get_today),
) -> TalentBoard:
    """
    A fresh board per request.

    The HTTP flow is stateless, so each call enters the phase it needs through
    ``open_assignment`` / ``open_removal`` and confirms within the same request.
    """
    return TalentBoard(store, today=today)
