"""
FastAPI dependencies for authentication.

``get_current_user`` is the authentication gate: it runs before every protected
handler, verifies the bearer token, and resolves its subject to a User. Any
failure is rejected with 401 before handler logic runs.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from errors import AuthenticationError
from models import User
from auth.security import verify_token

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme; auto_error disabled so failures share one 401 body
security = HTTPBearer(auto_error=False)

NOT_LOGGED_IN = "You must be logged in."


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Extract and validate the current user from the bearer token.

    Raises:
        AuthenticationError: if the header is missing, the token is malformed,
            its signature or expiry is invalid, or its subject is unknown

    Example:
        @router.get("/projects")
        async def list_projects(user: User = Depends(get_current_user)):
            ...
    """
    if credentials is None or not credentials.credentials:
        logger.info("No authentication credentials provided")
        raise AuthenticationError(NOT_LOGGED_IN)

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError(NOT_LOGGED_IN)

    if payload.get("type") != "access":
        logger.info(f"Invalid token type: {payload.get('type')}")
        raise AuthenticationError(NOT_LOGGED_IN)

    # Malformed subjects should be 401, not 500
    try:
        user_id = int(payload.get("userId"))
    except (TypeError, ValueError):
        logger.info(f"Invalid userId format in token: {payload.get('userId')}")
        raise AuthenticationError(NOT_LOGGED_IN)

    user = db.get(User, user_id)
    if user is None:
        logger.info(f"User not found for id: {user_id}")
        raise AuthenticationError(NOT_LOGGED_IN)

    logger.debug(f"User authenticated via JWT: {user.id}")
    return user
