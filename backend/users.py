"""
Credential store and user lookups.

Holds identity records and resolves stored user ids into the ``{name, email}``
display records used in every response.
"""

import logging
from typing import Dict, Iterable, List, Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from errors import ConflictError
from models import User
from auth.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive email lookup."""
        return self.db.query(User).filter(User.email == email).first()

    def create(self, first_name: str, last_name: str, email: str, password: str) -> User:
        """
        Store a new user with a salted password hash.

        Raises:
            ConflictError: if the email is already registered
        """
        if self.get_by_email(email) is not None:
            logger.info(f"Registration rejected, email already exists: {email}")
            raise ConflictError("A user with this email already exists")

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            self.db.rollback()
            logger.info(f"Registration rejected by unique constraint: {email}")
            raise ConflictError("A user with this email already exists")
        self.db.refresh(user)

        logger.info(f"Saved user {user.email} (ID: {user.id})")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, None otherwise."""
        user = self.get_by_email(email)
        if user is None:
            logger.info(f"Login failed: email not found: {email}")
            return None
        if not verify_password(password, user.password_hash):
            logger.info(f"Login failed: invalid password: {email}")
            return None
        return user

    def delete(self, user_id: int) -> bool:
        """
        Delete a user record.

        Project memberships and task assignments that reference the user are
        left in place and skipped when resolved.
        """
        user = self.get(user_id)
        if user is None:
            return False
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Deleted user {user_id}")
        return True

    def display_records(self, user_ids: Iterable[int]) -> List[Dict[str, str]]:
        """
        Resolve ids to ``{name, email}`` in the given order.

        Ids that no longer resolve to a user are silently skipped.
        """
        user_ids = list(user_ids)
        if not user_ids:
            return []

        found = {
            user.id: user
            for user in self.db.query(User).filter(User.id.in_(set(user_ids))).all()
        }

        records = []
        for user_id in user_ids:
            user = found.get(user_id)
            if user is None:
                logger.debug(f"Skipping unresolved user reference {user_id}")
                continue
            records.append({"name": user.display_name, "email": user.email})
        return records


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)
