"""
Error taxonomy and the global exception handlers that render it.

Every repository operation either returns a payload or raises one ServiceError
subclass. Handlers turn those into ``{"error": message}`` bodies; validation
failures become 400 and unexpected persistence failures a generic 500.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for categorised failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or invalid request fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    """Missing, malformed, or expired bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(ServiceError):
    """
    Caller is not a member, or the target id does not exist.

    The two causes are deliberately indistinguishable so that existence of a
    project is never leaked to non-members.
    """

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """Duplicate email, duplicate membership, or duplicate assignment."""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
        details = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "details": details},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        # Never leak SQL or driver messages to the caller. The open transaction
        # is discarded when get_db closes the request session.
        logger.exception(f"Storage failure on {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
