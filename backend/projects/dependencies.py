"""
Dependency providers wiring repositories together per request.

Each component receives its collaborators explicitly, so tests can build them
around any session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from users import UserRepository, get_user_repository
from projects.repository import ProjectRepository
from projects.assignments import TaskAssignmentService


def get_project_repository(
    db: Session = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
) -> ProjectRepository:
    return ProjectRepository(db, users)


def get_assignment_service(
    db: Session = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
    projects: ProjectRepository = Depends(get_project_repository),
) -> TaskAssignmentService:
    return TaskAssignmentService(db, users, projects)
