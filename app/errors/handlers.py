"""Error handlers for the application"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.errors.exceptions import OtpValidationError, StorageError
from app.errors.response_codes import ErrorCode, error_response

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(f"Validation error on {request.url}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(ErrorCode.VALIDATION_ERROR, errors=errors)
    )


async def otp_validation_exception_handler(request: Request, exc: OtpValidationError):
    """
    Handle malformed email/code rejected by a verification store
    """
    logger.warning(f"Rejected verification input on {request.url}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(ErrorCode.VALIDATION_ERROR, message=str(exc))
    )


async def storage_exception_handler(request: Request, exc: StorageError):
    """
    Handle verification code storage failures
    """
    logger.error(f"Code storage error on {request.url}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_response(ErrorCode.STORAGE_UNAVAILABLE)
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Handle SQLAlchemy database errors
    """
    logger.error(f"Database error on {request.url}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            ErrorCode.DATABASE_ERROR,
            message="An internal database error occurred. Please try again later."
        )
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle general exceptions
    """
    logger.error(f"Unhandled exception on {request.url}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            ErrorCode.INTERNAL_ERROR,
            message="An unexpected error occurred. Please try again later."
        )
    )
