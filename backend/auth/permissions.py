"""
Project membership rule.

A user may act on a project iff their id appears in its member list. The rule is
expressed as SQL predicates that are folded into the WHERE clause of the very
statement that reads or writes the project, so the check and the mutation are
one atomic operation. Never check membership first and write afterwards.
"""

import logging

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from models import ProjectMember, Task

logger = logging.getLogger(__name__)


def member_predicate(project_id: int, user_id: int):
    """EXISTS predicate: ``user_id`` is a member of ``project_id``."""
    return (
        select(ProjectMember.id)
        .where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .correlate(None)
        .exists()
    )


def task_in_project_predicate(project_id: int, task_id: int):
    """EXISTS predicate: ``task_id`` is embedded in ``project_id``."""
    return (
        select(Task.id)
        .where(Task.id == task_id, Task.project_id == project_id)
        .correlate(None)
        .exists()
    )


def member_task_predicate(project_id: int, user_id: int, task_id: int):
    """Caller is a member of the project AND the task belongs to it."""
    return and_(
        member_predicate(project_id, user_id),
        task_in_project_predicate(project_id, task_id),
    )


def is_project_member(db: Session, project_id: int, user_id: int) -> bool:
    """
    Standalone membership check.

    Only for preconditions that are not themselves the authorising write
    (member removal checks the caller up front and again in the DELETE filter).
    """
    is_member = db.execute(select(member_predicate(project_id, user_id))).scalar()
    if not is_member:
        logger.info(f"User {user_id} has no membership in project {project_id}")
    return bool(is_member)
