"""
Account Endpoints Module

This module provides CRUD endpoints for client accounts. Every account returned
carries its derived metrics: active projects, utilized headcount and average
allocation.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select, col
from talentmap.api import deps
from talentmap.db.session import get_db
from talentmap.models.account import Account, AccountCreate, AccountRead, AccountUpdate
from talentmap.models.project import Project
from talentmap.services.metrics import account_metrics

router = APIRouter()


def _get_account_or_404(db: Session, account_id: int) -> Account:
    account = db.get(Account, account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@router.get("", response_model=List[AccountRead])
def list_accounts(
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Retrieve a paginated list of accounts with their metrics.
    """
    statement = select(Account)
    if search:
        statement = statement.where(col(Account.name).ilike(f"%{search}%"))
    accounts = db.exec(statement.order_by(Account.name).offset(skip).limit(limit)).all()
    return [
        AccountRead(**a.model_dump(), metrics=account_metrics(db, a.id, today))
        for a in accounts
    ]


@router.get("/{account_id}", response_model=AccountRead)
def read_account(
    account_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(deps.get_today),
):
    """
    Get a specific account by ID.

    Raises:
        HTTPException 404: If the account doesn't exist
    """
    account = _get_account_or_404(db, account_id)
    return AccountRead(**account.model_dump(), metrics=account_metrics(db, account.id, today))


@router.post("", response_model=Account)
def create_account(
    account_in: AccountCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new account.
    """
    account = Account(**account_in.model_dump())
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@router.patch("/{account_id}", response_model=Account)
def update_account(
    account_id: int,
    account_in: AccountUpdate,
    db: Session = Depends(get_db),
):
    """
    Update an existing account.

    Raises:
        HTTPException 404: If the account doesn't exist
    """
    account = _get_account_or_404(db, account_id)
    for key, value in account_in.model_dump(exclude_unset=True).items():
        setattr(account, key, value)

    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """
    Delete an account. Its projects are kept and detached from it.

    Raises:
        HTTPException 404: If the account doesn't exist
    """
    account = _get_account_or_404(db, account_id)
    for project in db.exec(select(Project).where(Project.account_id == account_id)).all():
        project.account_id = None
        db.add(project)

    db.delete(account)
    db.commit()
    return {"status": "success", "detail": "Account deleted"}
