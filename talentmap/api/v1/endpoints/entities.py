from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from talentmap.db.session import get_db
from talentmap.models.entity import Entity

router = APIRouter()


@router.get("", response_model=List[Entity])
def list_entities(db: Session = Depends(get_db)):
    """
    List the internal entities, ordered by name.
    """
    return db.exec(select(Entity).order_by(Entity.name)).all()
