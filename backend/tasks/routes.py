"""Task API endpoints not scoped to a single project."""

import logging

from fastapi import APIRouter, Depends

import schemas

from models import User
from auth.dependencies import get_current_user
from projects.dependencies import get_project_repository
from projects.repository import ProjectRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=schemas.AssignedTaskListResponse)
def list_assigned_tasks(
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """List every task assigned to the current user, across all projects."""
    tasks = projects.tasks_assigned_to(current_user.id)
    logger.info(f"User {current_user.id} retrieved {len(tasks)} assigned tasks")
    return {"tasks": tasks}
