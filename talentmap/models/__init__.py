from .entity import Entity
from .employee import Employee, EmployeeStatus, EmploymentType
from .account import Account
from .project import Project, ProjectStatus
from .allocation import Allocation, AllocationStatus
from .transition import ProjectTransition, TransitionComment
from .skill import Skill, EmployeeSkill, Certification, SkillProficiency

__all__ = [
    "Entity",
    "Employee", "EmployeeStatus", "EmploymentType",
    "Account",
    "Project", "ProjectStatus",
    "Allocation", "AllocationStatus",
    "ProjectTransition", "TransitionComment",
    "Skill", "EmployeeSkill", "Certification", "SkillProficiency",
]
