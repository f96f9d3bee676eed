"""
Domain exceptions and the JSON error envelope every failure is rendered in.

Domain errors:   {"error": true, "message", "detail", "type"}
HTTPException:   {"error": true, "message", "status_code"}
"""
import logging
from typing import Any, Optional, Union

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ReceptionException(Exception):
    """Root of every error the service raises on purpose"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None, detail: dict = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or {}


class ResourceNotFoundException(ReceptionException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Union[int, str], detail: dict = None):
        super().__init__(f"{resource_type} with ID '{resource_id}' not found", detail=detail)


class DuplicateResourceException(ReceptionException):
    """A unique business identifier (email, registration, tracking number...) is taken"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource_type: str, field: str, value: str, detail: dict = None):
        super().__init__(f"{resource_type} with {field} '{value}' already exists", detail=detail)


class InvalidStateException(ReceptionException):
    """Lifecycle action attempted from a status that does not allow it"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource_type: str, current_state: str, operation: str, detail: dict = None):
        super().__init__(f"Cannot {operation} {resource_type} in state '{current_state}'", detail=detail)


class ResourceInUseException(ReceptionException):
    """Delete refused because other records still point at the row"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource_type: str, resource_id: Union[int, str], dependents: dict):
        listing = ", ".join(f"{count} {name}" for name, count in dependents.items())
        super().__init__(
            f"{resource_type} '{resource_id}' is still referenced by {listing}; deactivate it instead",
            detail={"dependents": dependents},
        )


class BusinessRuleException(ReceptionException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, detail: dict = None):
        super().__init__(message, detail=detail)


class InsufficientPermissionsException(ReceptionException):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, required_role: str = None, detail: dict = None):
        message = "Insufficient permissions"
        if required_role:
            message += f". Required role: {required_role}"
        super().__init__(message, detail=detail)


class AccountLockedException(ReceptionException):
    status_code = status.HTTP_423_LOCKED

    def __init__(self, locked_until, detail: dict = None):
        if detail is None:
            detail = {"locked_until": locked_until.isoformat() if locked_until else None}
        super().__init__("Account is temporarily locked due to too many failed login attempts", detail=detail)


def _envelope(http_status: int, message: Any, headers: dict = None, **extra) -> JSONResponse:
    body = {"error": True, "message": message}
    body.update(extra)
    return JSONResponse(status_code=http_status, content=body, headers=headers)


async def reception_exception_handler(request: Request, exc: ReceptionException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("%s on %s %s: %s %s", type(exc).__name__, request.method, request.url.path, exc.message, exc.detail)
    return _envelope(exc.status_code, exc.message, detail=exc.detail, type=type(exc).__name__)


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return _envelope(
        exc.status_code,
        exc.detail,
        headers=getattr(exc, "headers", None),
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = jsonable_encoder(exc.errors())
    logger.info("Rejected payload on %s: %s", request.url.path, problems)
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        detail=problems,
        type="ValidationError",
    )


# Ordered: first matching fragment of the driver message wins.
_INTEGRITY_MESSAGES = (
    ("unique", "A record with this information already exists"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field is missing"),
)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    text = str(exc.orig if exc.orig is not None else exc).lower()
    logger.error("Constraint violation on %s: %s", request.url.path, text)
    message = next(
        (msg for fragment, msg in _INTEGRITY_MESSAGES if fragment in text),
        "Database constraint violation",
    )
    return _envelope(status.HTTP_400_BAD_REQUEST, message, type="IntegrityError")


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database failure on %s: %s", request.url.path, exc)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database operation failed", type="DatabaseError")


async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred", type="InternalError")


EXCEPTION_HANDLERS = {
    ReceptionException: reception_exception_handler,
    HTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    IntegrityError: integrity_error_handler,
    SQLAlchemyError: sqlalchemy_error_handler,
    Exception: general_exception_handler,
}


def setup_exception_handlers(app):
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
