"""
Pytest configuration and shared fixtures for Talent Map tests.

This file provides:
- An in-memory SQLite session shared by the app and the test
- A FastAPI test client with the database and calendar pinned
- Small factories for employees, projects and allocations
"""

import pytest
from datetime import date, timedelta
from typing import Generator

from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from talentmap.api import deps
from talentmap.db.session import get_db, init_db
from talentmap.main import app
from talentmap.models.allocation import Allocation, AllocationStatus
from talentmap.models.employee import Employee, EmployeeStatus
from talentmap.models.entity import Entity
from talentmap.models.project import Project, ProjectStatus
from talentmap.services.store import AllocationStore

TODAY = date(2024, 6, 15)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(name="session")
def session_fixture() -> Generator[Session, None, None]:
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def store(session: Session) -> AllocationStore:
    return AllocationStore(session)


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator[TestClient, None, None]:
    """Test client bound to the test session; the app lifespan is not run."""
    def get_db_override():
        yield session

    app.dependency_overrides[get_db] = get_db_override
    app.dependency_overrides[deps.get_today] = lambda: TODAY
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# Test Data Fixtures
# ============================================================================

@pytest.fixture
def today() -> date:
    """The pinned calendar date the client also sees."""
    return TODAY


@pytest.fixture
def entity(session: Session) -> Entity:
    entity = Entity(name="Acme Digital")
    session.add(entity)
    session.commit()
    session.refresh(entity)
    return entity


@pytest.fixture
def make_employee(session: Session):
    """Factory for stored employees."""
    def _make(name="Jane Doe", status=EmployeeStatus.active, **kwargs) -> Employee:
        kwargs.setdefault("email", f"{name.split()[0].lower()}@example.com")
        kwargs.setdefault("created_at", (TODAY - timedelta(days=10)).isoformat())
        employee = Employee(name=name, status=status, **kwargs)
        session.add(employee)
        session.commit()
        session.refresh(employee)
        return employee
    return _make


@pytest.fixture
def make_project(session: Session):
    """Factory for stored projects; active and started a month ago by default."""
    def _make(name="Apollo", status=ProjectStatus.active, **kwargs) -> Project:
        kwargs.setdefault("start_date", TODAY - timedelta(days=30))
        project = Project(name=name, status=status, **kwargs)
        session.add(project)
        session.commit()
        session.refresh(project)
        return project
    return _make


@pytest.fixture
def make_allocation(session: Session):
    """Factory for stored allocations; active, open-ended and started last week by default."""
    def _make(employee, project, percent=50, status=AllocationStatus.active, **kwargs) -> Allocation:
        kwargs.setdefault("start_date", TODAY - timedelta(days=7))
        allocation = Allocation(
            employee_id=employee.id,
            project_id=project.id,
            allocation_percent=percent,
            status=status,
            **kwargs,
        )
        session.add(allocation)
        session.commit()
        session.refresh(allocation)
        return allocation
    return _make
