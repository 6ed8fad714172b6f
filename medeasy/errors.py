"""
Clinic error taxonomy and its HTTP mapping.

Domain services raise these; the exception handlers registered in main.py turn
them into the failure envelope ``{"success": false, "kind": ..., "message": ...}``.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    """Base class for errors raised by the clinic core"""

    kind: str = "error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "",
        *,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class InvalidRequest(ClinicError):
    kind = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ClinicError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Unavailable(ClinicError):
    kind = "unavailable"
    status_code = status.HTTP_400_BAD_REQUEST


class SlotConflict(ClinicError):
    kind = "slot_conflict"
    status_code = status.HTTP_409_CONFLICT


class TerminalState(ClinicError):
    kind = "terminal_state"
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(ClinicError):
    kind = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class AuthenticationFailed(Unauthorized):
    """Missing, invalid or expired credentials"""

    status_code = status.HTTP_401_UNAUTHORIZED


class RateLimited(ClinicError):
    kind = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class InfrastructureFailure(ClinicError):
    kind = "infrastructure_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def failure_body(kind: str, message: str, details: Optional[dict[str, Any]] = None) -> dict:
    body: dict[str, Any] = {"success": False, "kind": kind, "message": message}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClinicError)
    async def handle_clinic_error(request: Request, exc: ClinicError):
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(failure_body(exc.kind, exc.message, exc.details)),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        """
        Report body/query validation failures as invalid_request, and a
        missing Authorization header as an authentication failure
        """
        for error in exc.errors():
            if error.get("loc") and "authorization" in str(error.get("loc")).lower():
                logger.warning(
                    f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
                )
                return JSONResponse(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    content=failure_body(
                        AuthenticationFailed.kind,
                        "Not authenticated. Please provide a valid Bearer token in the Authorization header.",
                    ),
                )

        # Submitted values are left out so passwords never echo back
        errors = [
            {key: error[key] for key in ("loc", "msg", "type") if key in error}
            for error in exc.errors()
        ]
        logger.warning(f"Validation error for {request.url.path}: {errors}")
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(failure_body(InvalidRequest.kind, message, {"errors": errors})),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error(f"❌ Database failure on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=InfrastructureFailure.status_code,
            content=failure_body(
                InfrastructureFailure.kind, "Database temporarily unavailable, please retry"
            ),
        )
