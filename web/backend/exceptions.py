#!/usr/bin/env python3
"""
Custom exceptions and error handlers for the web application.

Engine errors (core.matching.exceptions) map to request errors:
NotFound -> 404, InvalidInput -> 400, Forbidden -> 403.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from core.matching.exceptions import (
    ForbiddenError,
    InvalidInputError,
    MatchingError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class ServiceException(Exception):
    """Base exception for service layer errors."""
    pass


class NightlyRunLockedException(ServiceException):
    """Raised when a nightly sweep is already running in this process."""
    pass


def _error_response(status_code: int, error: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "type": error_type
        }
    )


async def matching_exception_handler(
    request: Request,
    exc: MatchingError
) -> JSONResponse:
    """
    Handle engine exceptions.

    Args:
        request: The FastAPI request.
        exc: The engine exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = 500
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, InvalidInputError):
        status_code = 400
    elif isinstance(exc, ForbiddenError):
        status_code = 403

    if status_code == 500:
        logger.error(f"Engine error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"Request error in {request.url.path}: {exc}")

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def service_exception_handler(
    request: Request,
    exc: ServiceException
) -> JSONResponse:
    """Handle service layer exceptions."""
    logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)

    status_code = 500
    if isinstance(exc, NightlyRunLockedException):
        status_code = 409

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    return _error_response(exc.status_code, exc.detail, "HTTPException")


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error in {request.url.path}")

    return _error_response(500, "Internal server error", "InternalError")
