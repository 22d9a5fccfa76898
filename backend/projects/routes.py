"""
Project API endpoints.

Every route requires a bearer token. Membership is never checked here: the
repository folds it into the statement that reads or writes the project.
"""

import logging

from fastapi import APIRouter, Depends, status

import schemas
from models import User
from auth.dependencies import get_current_user
from projects.dependencies import get_assignment_service, get_project_repository
from projects.assignments import TaskAssignmentService
from projects.repository import ProjectRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# ============== Projects ==============

@router.get("", response_model=schemas.ProjectListResponse)
def list_projects(
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """List all projects the current user is a member of."""
    return {"projects": projects.list_for_member(current_user.id)}


@router.post("", response_model=schemas.ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project: schemas.ProjectCreate,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """Create a project with the current user as its only member."""
    logger.debug(f"User {current_user.id} creating project: {project.title}")
    return {"project": projects.create(current_user.id, project)}


@router.get("/{project_id}", response_model=schemas.ProjectDetailResponse)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """Get project with resolved members and tasks (401 for non-members)."""
    return {"project": projects.get_detail(project_id, current_user.id)}


@router.put("/{project_id}", response_model=schemas.ProjectResponse)
def update_project(
    project_id: int,
    project_update: schemas.ProjectUpdate,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """Partially update title and/or description."""
    logger.debug(f"User {current_user.id} updating project {project_id}")
    return {"project": projects.update(project_id, current_user.id, project_update)}


@router.delete("/{project_id}", response_model=schemas.ProjectListResponse)
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """Delete project and return the caller's remaining projects."""
    logger.debug(f"User {current_user.id} deleting project {project_id}")
    return {"projects": projects.delete(project_id, current_user.id)}


# ============== Tasks ==============

@router.post("/{project_id}/tasks", response_model=schemas.TaskResponse, status_code=status.HTTP_201_CREATED)
def add_task(
    project_id: int,
    task: schemas.TaskCreate,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    logger.debug(f"User {current_user.id} adding task to project {project_id}: {task.title}")
    return {"task": projects.add_task(project_id, current_user.id, task)}


@router.put("/{project_id}/tasks/{task_id}", response_model=schemas.TaskResponse)
def update_task(
    project_id: int,
    task_id: int,
    task_update: schemas.TaskUpdate,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    logger.debug(f"User {current_user.id} updating task {task_id} in project {project_id}")
    return {"task": projects.update_task(project_id, task_id, current_user.id, task_update)}


@router.delete("/{project_id}/tasks/{task_id}", response_model=schemas.TaskListResponse)
def delete_task(
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    """Remove a task; returns the project's remaining tasks."""
    logger.debug(f"User {current_user.id} deleting task {task_id} from project {project_id}")
    return {"tasks": projects.delete_task(project_id, task_id, current_user.id)}


# ============== Members ==============

@router.post("/{project_id}/members", response_model=schemas.MemberResponse)
def add_member(
    project_id: int,
    member: schemas.MemberRequest,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    logger.debug(f"User {current_user.id} adding {member.email} to project {project_id}")
    return {"member": projects.add_member(project_id, current_user.id, member.email)}


@router.delete("/{project_id}/members", response_model=schemas.MemberListResponse)
def remove_member(
    project_id: int,
    member: schemas.MemberRequest,
    current_user: User = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
):
    logger.debug(f"User {current_user.id} removing {member.email} from project {project_id}")
    return {"members": projects.remove_member(project_id, current_user.id, member.email)}


# ============== Assignment ==============

@router.post("/{project_id}/tasks/{task_id}/assigned", response_model=schemas.TaskResponse)
def assign_user(
    project_id: int,
    task_id: int,
    assignment: schemas.AssignRequest,
    current_user: User = Depends(get_current_user),
    assignments: TaskAssignmentService = Depends(get_assignment_service),
):
    logger.debug(f"User {current_user.id} assigning {assignment.email} to task {task_id}")
    return {"task": assignments.assign(project_id, task_id, current_user.id, assignment.email)}


@router.delete("/{project_id}/tasks/{task_id}/assigned", response_model=schemas.TaskResponse)
def unassign_user(
    project_id: int,
    task_id: int,
    assignment: schemas.AssignRequest,
    current_user: User = Depends(get_current_user),
    assignments: TaskAssignmentService = Depends(get_assignment_service),
):
    logger.debug(f"User {current_user.id} unassigning {assignment.email} from task {task_id}")
    return {"task": assignments.unassign(project_id, task_id, current_user.id, assignment.email)}
