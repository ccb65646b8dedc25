from fastapi import APIRouter
from talentmap.api.v1.endpoints import (
    health, entities, employees, projects, accounts,
    allocations, transitions, skills, dashboard, board
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(entities.router, prefix="/entities", tags=["entities"])

# Resource endpoints
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(allocations.router, prefix="/allocations", tags=["allocations"])
api_router.include_router(transitions.router, prefix="/transitions", tags=["transitions"])
api_router.include_router(skills.router, prefix="/skills", tags=["skills"])

# Derived views
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(board.router, prefix="/board", tags=["board"])
