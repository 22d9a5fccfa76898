"""
Project aggregate repository.

Owns project rows, their embedded tasks, and member reference lists. Every write
that needs authorisation is a single statement whose filter contains the
membership predicate, so a non-member's request matches nothing and surfaces
as NotFoundError without ever observing or changing data.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import status
from sqlalchemy import DateTime, delete, insert, literal, select, update
from sqlalchemy.orm import Session, selectinload

from database import unit_of_work
from errors import ConflictError, NotFoundError, ValidationError
from models import Project, ProjectMember, Task, TaskAssignee
from schemas import ProjectCreate, ProjectUpdate, TaskCreate, TaskUpdate
from time_utils import parse_due_date, to_date_string, utc_now
from users import UserRepository
from auth.permissions import is_project_member, member_predicate, member_task_predicate

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "Project not found"
TASK_NOT_FOUND = "Task not found"


def project_summary(project: Project) -> Dict[str, Any]:
    return {"id": project.id, "title": project.title, "description": project.description}


def _parse_due_date(raw: str):
    try:
        return parse_due_date(raw)
    except ValueError:
        raise ValidationError(f"Invalid due_date: {raw}")


class ProjectRepository:
    def __init__(self, db: Session, users: UserRepository):
        self.db = db
        self.users = users

    # ============== Views ==============

    def task_view(self, task: Task) -> Dict[str, Any]:
        """Project a task with date-only fields and resolved assignees."""
        return {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "created": to_date_string(task.created),
            "due_date": to_date_string(task.due_date),
            "assigned_to": self.users.display_records(a.user_id for a in task.assignees),
        }

    def member_view(self, project_id: int) -> List[Dict[str, str]]:
        member_ids = (
            self.db.execute(
                select(ProjectMember.user_id)
                .where(ProjectMember.project_id == project_id)
                .order_by(ProjectMember.id)
            )
            .scalars()
            .all()
        )
        return self.users.display_records(member_ids)

    def task_list_view(self, project_id: int) -> List[Dict[str, Any]]:
        tasks = (
            self.db.query(Task)
            .options(selectinload(Task.assignees))
            .filter(Task.project_id == project_id)
            .order_by(Task.id)
            .all()
        )
        return [self.task_view(task) for task in tasks]

    def load_task(self, project_id: int, task_id: int) -> Optional[Task]:
        # Fresh read so statement-level writes in this session are visible
        return (
            self.db.query(Task)
            .options(selectinload(Task.assignees))
            .populate_existing()
            .filter(Task.id == task_id, Task.project_id == project_id)
            .first()
        )

    # ============== Projects ==============

    def list_for_member(self, user_id: int) -> List[Dict[str, Any]]:
        """Minimal projection of every project the user belongs to."""
        logger.debug(f"Listing projects for user {user_id}")
        member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        projects = (
            self.db.query(Project)
            .filter(Project.id.in_(member_of))
            .order_by(Project.id)
            .all()
        )
        logger.debug(f"User {user_id} is a member of {len(projects)} projects")
        return [project_summary(p) for p in projects]

    def create(self, user_id: int, data: ProjectCreate) -> Dict[str, Any]:
        """Create a project whose sole initial member is the creator."""
        if not data.title or not data.description:
            raise ValidationError("Must provide a title and description")

        project = Project(title=data.title, description=data.description, created=utc_now())
        project.members.append(ProjectMember(user_id=user_id))

        with unit_of_work(self.db, "create project"):
            self.db.add(project)
        self.db.refresh(project)

        logger.info(f"Project created: {project.title} (ID: {project.id}) by user {user_id}")
        return project_summary(project)

    def get_detail(self, project_id: int, user_id: int) -> Dict[str, Any]:
        """
        Full project view with members and tasks resolved to display records.

        Raises:
            NotFoundError: (401) if the caller is not a member or the project is gone
        """
        logger.debug(f"User {user_id} requesting project {project_id}")
        project = (
            self.db.query(Project)
            .options(selectinload(Project.tasks).selectinload(Task.assignees))
            .filter(Project.id == project_id, member_predicate(project_id, user_id))
            .first()
        )
        if project is None:
            raise NotFoundError(
                "Not authorized to view this project", status_code=status.HTTP_401_UNAUTHORIZED
            )

        return {
            **project_summary(project),
            "created": to_date_string(project.created),
            "members": self.member_view(project_id),
            "tasks": [self.task_view(task) for task in project.tasks],
        }

    def update(self, project_id: int, user_id: int, patch: ProjectUpdate) -> Dict[str, Any]:
        """Overwrite only the supplied fields of a project the caller belongs to."""
        changes = patch.changes()
        if not changes:
            raise ValidationError(
                "Must provide a title or description", status_code=status.HTTP_401_UNAUTHORIZED
            )

        with unit_of_work(self.db, "update project"):
            result = self.db.execute(
                update(Project)
                .where(Project.id == project_id, member_predicate(project_id, user_id))
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(PROJECT_NOT_FOUND)

        project = self.db.query(Project).populate_existing().filter(Project.id == project_id).first()
        if project is None:
            # Deleted concurrently after our update committed
            raise NotFoundError(PROJECT_NOT_FOUND)
        logger.info(f"Project {project_id} updated by user {user_id}: {sorted(changes)}")
        return project_summary(project)

    def delete(self, project_id: int, user_id: int) -> List[Dict[str, Any]]:
        """Delete the project and return the caller's remaining projects."""
        with unit_of_work(self.db, "delete project"):
            result = self.db.execute(
                delete(Project)
                .where(Project.id == project_id, member_predicate(project_id, user_id))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(PROJECT_NOT_FOUND)

        logger.info(f"Project {project_id} deleted by user {user_id}")
        return self.list_for_member(user_id)

    # ============== Tasks ==============

    def add_task(self, project_id: int, user_id: int, data: TaskCreate) -> Dict[str, Any]:
        """Append a task to a project the caller belongs to."""
        if not data.title or not data.description:
            raise ValidationError("Must provide a title and description")
        due_date = _parse_due_date(data.due_date) if data.due_date else None

        values = select(
            literal(project_id),
            literal(data.title),
            literal(data.description),
            literal(utc_now(), DateTime(timezone=True)),
            literal(due_date, DateTime(timezone=True)),
        ).where(member_predicate(project_id, user_id))

        with unit_of_work(self.db, "add task"):
            task_id = self.db.execute(
                insert(Task)
                .from_select(["project_id", "title", "description", "created", "due_date"], values)
                .returning(Task.id)
            ).scalar_one_or_none()
            if task_id is None:
                raise NotFoundError(PROJECT_NOT_FOUND)

        task = self.load_task(project_id, task_id)
        logger.info(f"Task {task_id} added to project {project_id} by user {user_id}")
        return self.task_view(task)

    def update_task(self, project_id: int, task_id: int, user_id: int, patch: TaskUpdate) -> Dict[str, Any]:
        """Field-level partial update of one task inside a project the caller belongs to."""
        changes: Dict[str, Any] = patch.changes()
        if not changes:
            raise ValidationError("Must provide a title, description or due_date")
        if "due_date" in changes:
            changes["due_date"] = _parse_due_date(changes["due_date"])

        with unit_of_work(self.db, "update task"):
            result = self.db.execute(
                update(Task)
                .where(
                    Task.id == task_id,
                    Task.project_id == project_id,
                    member_predicate(project_id, user_id),
                )
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(TASK_NOT_FOUND)

        task = self.load_task(project_id, task_id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        logger.info(f"Task {task_id} in project {project_id} updated by user {user_id}: {sorted(changes)}")
        return self.task_view(task)

    def delete_task(self, project_id: int, task_id: int, user_id: int) -> List[Dict[str, Any]]:
        """
        Remove a task and return the project's remaining tasks.

        A task id that does not belong to the project is a vacuous success: the
        unchanged list is returned. Only non-membership is an error.
        """
        with unit_of_work(self.db, "delete task"):
            result = self.db.execute(
                delete(Task)
                .where(
                    Task.id == task_id,
                    Task.project_id == project_id,
                    member_predicate(project_id, user_id),
                )
                .execution_options(synchronize_session=False)
            )

        if result.rowcount == 0:
            # Nothing was written, so telling the two causes apart here is race-free
            if not is_project_member(self.db, project_id, user_id):
                raise NotFoundError(PROJECT_NOT_FOUND)
            logger.debug(f"Task {task_id} not in project {project_id}, nothing removed")
        else:
            logger.info(f"Task {task_id} removed from project {project_id} by user {user_id}")

        return self.task_list_view(project_id)

    def tasks_assigned_to(self, user_id: int) -> List[Dict[str, Any]]:
        """Every task, across all projects, whose assignee list contains the user."""
        logger.debug(f"Listing tasks assigned to user {user_id}")
        assigned = select(TaskAssignee.task_id).where(TaskAssignee.user_id == user_id)
        tasks = (
            self.db.query(Task)
            .options(selectinload(Task.assignees))
            .filter(Task.id.in_(assigned))
            .order_by(Task.project_id, Task.id)
            .all()
        )
        return [{"project_id": task.project_id, **self.task_view(task)} for task in tasks]

    # ============== Members ==============

    def add_member(self, project_id: int, user_id: int, email: Optional[str]) -> Dict[str, str]:
        """Add the user registered under ``email`` to the project's members."""
        target = self.users.get_by_email(email) if email else None
        if target is None:
            raise NotFoundError("User not found")

        if is_project_member(self.db, project_id, target.id):
            if not is_project_member(self.db, project_id, user_id):
                raise NotFoundError(PROJECT_NOT_FOUND)
            raise ConflictError("User is already a member of this project")

        values = select(literal(project_id), literal(target.id)).where(
            member_predicate(project_id, user_id),
            ~member_predicate(project_id, target.id),
        )

        with unit_of_work(self.db, "add member"):
            member_id = self.db.execute(
                insert(ProjectMember)
                .from_select(["project_id", "user_id"], values)
                .returning(ProjectMember.id)
            ).scalar_one_or_none()
            if member_id is None:
                raise NotFoundError(PROJECT_NOT_FOUND)

        logger.info(f"User {target.id} added to project {project_id} by user {user_id}")
        return {"name": target.display_name, "email": target.email}

    def remove_member(self, project_id: int, user_id: int, email: Optional[str]) -> List[Dict[str, str]]:
        """Remove the user registered under ``email`` and return the resulting members."""
        target = self.users.get_by_email(email) if email else None
        if target is None:
            raise NotFoundError("User not found")

        if not is_project_member(self.db, project_id, user_id):
            raise NotFoundError(
                "Not authorized to manage this project", status_code=status.HTTP_401_UNAUTHORIZED
            )

        with unit_of_work(self.db, "remove member"):
            result = self.db.execute(
                delete(ProjectMember)
                .where(
                    ProjectMember.project_id == project_id,
                    ProjectMember.user_id == target.id,
                    member_predicate(project_id, user_id),
                )
                .execution_options(synchronize_session=False)
            )

        logger.info(
            f"User {target.id} removed from project {project_id} by user {user_id} "
            f"({result.rowcount} reference(s))"
        )
        return self.member_view(project_id)
