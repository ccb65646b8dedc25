"""
Account Model Module

This module defines the Account model representing client companies that own
projects. Account metrics (active projects, utilized headcount, average allocation)
are derived from projects and allocations and are never stored here.
"""
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import date, datetime


class AccountBase(SQLModel):
    """
    Base properties for an Account.

    Attributes:
        name: Official company/organization name (required)
        email: Primary contact email
        zone: Geographic zone, e.g. "USA", "EMEA", "APAC"
        billing_type: Commercial model, e.g. "Retainer", "T&M", "Fixed"
        entity_id: Internal entity servicing the account
        start_date: Date the engagement started
    """
    name: str = Field(nullable=False)
    email: Optional[str] = None
    zone: Optional[str] = None
    billing_type: Optional[str] = None
    entity_id: Optional[int] = Field(default=None, foreign_key="entities.id")
    start_date: Optional[date] = None


class Account(AccountBase, table=True):
    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Audit timestamp - automatically set to current UTC time on creation
    created_at: Optional[str] = Field(default_factory=lambda: datetime.utcnow().isoformat())


class AccountCreate(AccountBase):
    pass


class AccountUpdate(SQLModel):
    name: Optional[str] = None
    email: Optional[str] = None
    zone: Optional[str] = None
    billing_type: Optional[str] = None
    entity_id: Optional[int] = None
    start_date: Optional[date] = None


class AccountMetrics(SQLModel):
    """Derived account figures."""
    active_projects: int = 0
    utilized_resources: int = 0
    average_allocation: float = 0.0


class AccountRead(AccountBase):
    id: int
    created_at: Optional[str] = None
    metrics: AccountMetrics = AccountMetrics()
