"""
Authentication API endpoints.

This module provides REST API endpoints for:
- User registration
- Login
- Current user lookup

Register and login report failures as HTTP 200 with an ``{"error": ...}`` body;
existing clients branch on the body rather than the status code.
"""

import logging

from fastapi import APIRouter, Depends

import schemas
from errors import ConflictError
from models import User
from users import UserRepository, get_user_repository
from auth.security import create_access_token
from auth.dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def user_payload(user: User) -> dict:
    return schemas.UserOut.model_validate(user, from_attributes=True).model_dump(by_alias=True)


@router.post("/register")
async def register(
    request: schemas.RegisterRequest,
    users: UserRepository = Depends(get_user_repository),
):
    """
    Register a new user account.

    Returns:
        ``{token, user}`` on success, ``{error}`` (still HTTP 200) if a field is
        missing or the email is taken
    """
    if not request.is_complete():
        logger.info("Registration rejected: credentials missing")
        return {"error": "Credentials are missing"}

    logger.info(f"Registration attempt for email: {request.email}")
    try:
        user = users.create(request.first_name, request.last_name, request.email, request.password)
    except ConflictError as e:
        return {"error": e.message}

    token = create_access_token(user.id)
    logger.info(f"User registered successfully: {user.email} (ID: {user.id})")
    return {"token": token, "user": user_payload(user)}


@router.post("/login")
async def login(
    request: schemas.LoginRequest,
    users: UserRepository = Depends(get_user_repository),
):
    """
    Login with email and password.

    Returns:
        ``{token, user}`` on success, ``{error}`` (still HTTP 200) otherwise
    """
    if not request.email or not request.password:
        return {"error": "Must provide email and password"}

    logger.info(f"Login attempt for email: {request.email}")
    user = users.authenticate(request.email, request.password)
    if user is None:
        # Same message for unknown email and wrong password
        return {"error": "Invalid password or email"}

    token = create_access_token(user.id)
    logger.info(f"User logged in successfully: {user.email} (ID: {user.id})")
    return {"token": token, "user": user_payload(user)}


@router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    logger.debug(f"Fetching user info for: {current_user.email}")
    return {"user": user_payload(current_user)}
