import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class DependencyError(ClinicError):
    """A remote collaborator (blob store, mail server) failed."""


class StoreError(ClinicError):
    """The document store rejected or failed an operation."""


def error_body(message: str, details: Any = None) -> dict:
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


async def clinic_error_handler(request: Request, exc: ClinicError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request data.", problems),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error.", str(exc)),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClinicError, clinic_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
