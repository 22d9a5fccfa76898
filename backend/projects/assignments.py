"""
Task assignment rule.

Adds and removes users on a task's assignee list. The writes are scoped by
(project, caller as member, task) in a single statement, the same way the
project repository scopes its writes.

The "already assigned" pre-check is deliberately broad: it looks for the user
as an assignee of *any* task in *any* project, not only the target task. That
is the established behaviour; see DESIGN.md before narrowing it.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, insert, literal, select
from sqlalchemy.orm import Session

from database import unit_of_work
from errors import ConflictError, NotFoundError
from models import ProjectMember, Task, TaskAssignee, User
from projects.repository import ProjectRepository
from users import UserRepository
from auth.permissions import member_task_predicate

logger = logging.getLogger(__name__)


def _assignee_predicate(task_id: int, user_id: int):
    return (
        select(TaskAssignee.id)
        .where(TaskAssignee.task_id == task_id, TaskAssignee.user_id == user_id)
        .correlate(None)
        .exists()
    )


class TaskAssignmentService:
    def __init__(self, db: Session, users: UserRepository, projects: ProjectRepository):
        self.db = db
        self.users = users
        self.projects = projects

    def _resolve_target(self, email: Optional[str]) -> User:
        target = self.users.get_by_email(email) if email else None
        if target is None:
            raise NotFoundError("User not found")
        return target

    def _task_view(self, project_id: int, task_id: int) -> Dict[str, Any]:
        task = self.projects.load_task(project_id, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return self.projects.task_view(task)

    def is_assigned_anywhere(self, user_id: int) -> bool:
        """True if the user is an assignee of any task at all."""
        return bool(
            self.db.execute(
                select(select(TaskAssignee.id).where(TaskAssignee.user_id == user_id).exists())
            ).scalar()
        )

    def is_assigned_in_caller_projects(self, caller_id: int, user_id: int) -> bool:
        """True if some project the caller belongs to has a task assigned to the user."""
        query = (
            select(TaskAssignee.id)
            .join(Task, Task.id == TaskAssignee.task_id)
            .join(ProjectMember, ProjectMember.project_id == Task.project_id)
            .where(TaskAssignee.user_id == user_id, ProjectMember.user_id == caller_id)
            .exists()
        )
        return bool(self.db.execute(select(query)).scalar())

    def assign(self, project_id: int, task_id: int, caller_id: int, email: Optional[str]) -> Dict[str, Any]:
        """
        Add the user registered under ``email`` to the task's assignees.

        Raises:
            NotFoundError: unknown email, or the scoped insert matched nothing
                (caller not a member, task not in project, or already assigned)
            ConflictError: the user is already assigned to some task
        """
        target = self._resolve_target(email)

        if self.is_assigned_anywhere(target.id):
            logger.info(f"User {target.id} already has an assignment, rejecting")
            raise ConflictError("User is already assigned to a task")

        values = select(literal(task_id), literal(target.id)).where(
            member_task_predicate(project_id, caller_id, task_id),
            ~_assignee_predicate(task_id, target.id),
        )

        with unit_of_work(self.db, "assign user"):
            assignment_id = self.db.execute(
                insert(TaskAssignee)
                .from_select(["task_id", "user_id"], values)
                .returning(TaskAssignee.id)
            ).scalar_one_or_none()
            if assignment_id is None:
                raise NotFoundError("Not a member of this project or user already assigned")

        logger.info(f"User {target.id} assigned to task {task_id} in project {project_id} by user {caller_id}")
        return self._task_view(project_id, task_id)

    def unassign(self, project_id: int, task_id: int, caller_id: int, email: Optional[str]) -> Dict[str, Any]:
        """
        Remove the user registered under ``email`` from the task's assignees.

        Raises:
            NotFoundError: unknown email, user not assigned in any of the
                caller's projects, or caller/task scope matched nothing
        """
        target = self._resolve_target(email)

        if not self.is_assigned_in_caller_projects(caller_id, target.id):
            raise NotFoundError("User is not assigned to a task in your projects")

        with unit_of_work(self.db, "unassign user"):
            result = self.db.execute(
                delete(TaskAssignee)
                .where(
                    TaskAssignee.task_id == task_id,
                    TaskAssignee.user_id == target.id,
                    member_task_predicate(project_id, caller_id, task_id),
                )
                .execution_options(synchronize_session=False)
            )

        if result.rowcount == 0:
            # No write happened, so this follow-up read cannot race the removal
            in_scope = self.db.execute(select(member_task_predicate(project_id, caller_id, task_id))).scalar()
            if not in_scope:
                raise NotFoundError("Not a member of this project or task not found")
            logger.debug(f"User {target.id} was not assigned to task {task_id}, nothing removed")
            return self._task_view(project_id, task_id)

        logger.info(f"User {target.id} unassigned from task {task_id} in project {project_id} by user {caller_id}")
        return self._task_view(project_id, task_id)
