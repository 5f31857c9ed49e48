from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from framework.logging.logger import get_logger
from framework.response import ResponseModel
from typing import Any
from framework.config import settings

logger = get_logger("exception_handler")


class BusinessException(Exception):
    """Base class for business exceptions."""
    default_message = "Request failed"
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = None, status_code: int = None, code: int = None, detail: Any = None):
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status
        self.code = code or self.status_code
        self.detail = detail
        super().__init__(self.message)


class UnauthorizedError(BusinessException):
    """No session, or the session token did not verify."""
    default_message = "Unauthorized"
    default_status = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(BusinessException):
    """Valid session whose role lacks a required permission."""
    default_message = "Insufficient permissions"
    default_status = status.HTTP_403_FORBIDDEN


class ValidationError(BusinessException):
    default_message = "Invalid request"
    default_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(BusinessException):
    """Entity absent or outside the caller's tenant; the two are never distinguished."""
    default_message = "Not found"
    default_status = status.HTTP_404_NOT_FOUND


class ExpiredError(BusinessException):
    default_message = "Invitation has expired"
    default_status = status.HTTP_410_GONE


class AlreadyUsedError(BusinessException):
    default_message = "Invitation has already been used"
    default_status = status.HTTP_410_GONE


class ConflictError(BusinessException):
    default_message = "Conflict"
    default_status = status.HTTP_409_CONFLICT


class BillingUnavailableError(BusinessException):
    default_message = "Billing is not configured"
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE


class CryptoError(BusinessException):
    """Hashing or signing infrastructure failure. Always fatal for the request."""
    default_message = "Internal security error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    trace_id = getattr(request.state, "trace_id", "unknown")

    if isinstance(exc, CryptoError):
        logger.opt(exception=exc).critical(f"Trace[{trace_id}] - CryptoError: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(code=exc.code, message=CryptoError.default_message)
        )

    if isinstance(exc, BusinessException):
        logger.warning(f"Trace[{trace_id}] - {type(exc).__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(code=exc.code, message=exc.message, data=exc.detail)
        )

    if isinstance(exc, RequestValidationError):
        # Raw input echoes may contain passwords
        errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
        logger.error(f"Trace[{trace_id}] - ValidationError: {errors}")
        return JSONResponse(
            status_code=422,
            content=ResponseModel.fail(code=422, message="Invalid request parameters", data=jsonable_encoder(errors))
        )

    if isinstance(exc, SQLAlchemyError):
        logger.critical(f"Trace[{trace_id}] - DatabaseError: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Service temporarily unavailable")
        )

    logger.opt(exception=True).error(f"Trace[{trace_id}] - UncaughtException: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseModel.fail(
            code=500,
            message="System busy, please try again later",
            data={"trace_id": trace_id} if settings.DEBUG else None
        )
    )
