"""
Translation of domain errors into HTTP responses.

Each error family maps to one status code.  Credential failures are
answered with one fixed message whether the email or the password was
wrong, and internal failures never expose their message to the client;
both are logged in full.
"""

import logging
from typing import List, Tuple, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from project_manager_api.app.core.errors import (
    AuthorizationDeniedError,
    ConstraintViolationError,
    CredentialInvalidError,
    DomainError,
    EmailNotExistError,
    InternalError,
    NotFoundError,
    ValidationFailedError,
)


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INTERNAL_SERVER_ERROR = "Internal server error"

# Checked in order; EmailNotExistError must win over NotFoundError.
_STATUS_BY_KIND: List[Tuple[Type[DomainError], int]] = [
    (EmailNotExistError, status.HTTP_401_UNAUTHORIZED),
    (CredentialInvalidError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthorizationDeniedError, status.HTTP_403_FORBIDDEN),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (ConstraintViolationError, status.HTTP_409_CONFLICT),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: DomainError) -> int:
    for kind, code in _STATUS_BY_KIND:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def public_message(exc: DomainError, code: int) -> str:
    if code == status.HTTP_401_UNAUTHORIZED:
        return INVALID_CREDENTIALS
    if code >= 500:
        return INTERNAL_SERVER_ERROR
    return exc.message


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.info("%s %s -> %d %s: %s", request.method, request.url.path, code, type(exc).__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content={"detail": public_message(exc, code)}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed bodies and parameters with 400, naming each offending field."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}")
    logger.info("%s %s -> 400 invalid request: %s", request.method, request.url.path, "; ".join(problems))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "invalid request: " + "; ".join(problems)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
