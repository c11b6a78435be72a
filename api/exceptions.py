"""
Custom exceptions and error handlers for the Capture Flow API.
Provides consistent error handling across core, services and endpoints.
"""

import asyncio
import logging
import traceback
from functools import wraps
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


# Custom exception classes
class CaptureFlowException(Exception):
    """Base exception for Capture Flow."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AcquisitionDeniedException(CaptureFlowException):
    """Exception raised when access to the camera is refused."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Camera access denied: {reason}",
            status_code=403,
            details={"reason": reason},
        )


class AcquisitionUnavailableException(CaptureFlowException):
    """Exception raised when no camera feed can be opened or the feed is lost."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Camera unavailable: {reason}",
            status_code=503,
            details={"reason": reason},
        )


class NotActiveException(CaptureFlowException):
    """Exception raised when a snapshot is requested without an active feed."""

    def __init__(self, state: str):
        super().__init__(
            message=f"Camera is not active (state: {state})",
            status_code=409,
            details={"state": state},
        )


class ImageNotFoundException(CaptureFlowException):
    """Exception raised when image is not found."""

    def __init__(self, image_id: str):
        super().__init__(
            message=f"Image not found: {image_id}", status_code=404, details={"image_id": image_id}
        )


class SelectionTooSmallException(CaptureFlowException):
    """Exception raised when a crop selection maps to too few native pixels."""

    def __init__(self, width: float, height: float, min_size: int):
        super().__init__(
            message=(
                f"Selection too small: {width:.0f}x{height:.0f} native pixels "
                f"(min: {min_size}x{min_size})"
            ),
            status_code=422,
            details={"width": width, "height": height, "min_size": min_size},
        )


class InvalidCropException(CaptureFlowException):
    """Exception raised when crop geometry cannot be evaluated."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid crop: {reason}", status_code=400, details={"reason": reason}
        )


class AnalysisFailedException(CaptureFlowException):
    """Exception raised when the analyzer rejects or fails a single image."""

    def __init__(self, reason: str, details: Optional[Dict] = None):
        super().__init__(
            message=f"Analysis failed: {reason}",
            status_code=502,
            details={"reason": reason, **(details or {})},
        )


class BatchDispatchException(CaptureFlowException):
    """Exception raised when a batch cannot be attempted at all."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Batch dispatch failed: {reason}",
            status_code=503,
            details={"reason": reason},
        )


# Exception handlers for FastAPI
async def capture_flow_exception_handler(
    request: Request, exc: CaptureFlowException
) -> JSONResponse:
    """
    Handler for custom Capture Flow exceptions.

    Args:
        request: FastAPI request
        exc: CaptureFlowException instance

    Returns:
        JSON response with error details
    """
    logger.error(f"{exc.__class__.__name__}: {exc.message}", extra={"details": exc.details})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details, "type": exc.__class__.__name__},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handler for request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"][1:]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation failed", "details": errors, "type": "ValidationError"},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unexpected exceptions.

    Stack traces are only exposed when the app runs in debug mode.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    if getattr(request.app.state, "debug", False):
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": {
                    "exception": str(exc),
                    "type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                "type": "InternalError",
            },
        )

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": {}, "type": "InternalError"},
    )


# Maps exception types to (status_code, error_message, log_level, detail_builder)
EXCEPTION_MAPPING = {
    ValidationError: (400, "Validation failed", "warning", lambda e: {"details": e.errors()}),
    KeyError: (400, "Missing required field", "error", lambda e: {"field": str(e)}),
    ValueError: (400, "Invalid value", "error", lambda e: {"details": str(e)}),
    PermissionError: (403, "Permission denied", "error", lambda e: {"details": str(e)}),
    TimeoutError: (504, "Operation timed out", "error", lambda e: {"details": str(e)}),
}


def safe_endpoint(func):
    """
    Decorator to wrap endpoint functions with error handling.

    Domain exceptions and HTTPException pass through to the registered
    handlers; built-in exceptions are mapped using EXCEPTION_MAPPING.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            if asyncio.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            return func(*args, **kwargs)

        except (CaptureFlowException, HTTPException):
            raise

        except Exception as e:
            exception_type = type(e)

            if exception_type in EXCEPTION_MAPPING:
                status_code, error_msg, log_level, detail_builder = EXCEPTION_MAPPING[
                    exception_type
                ]

                log_message = f"{exception_type.__name__} in {func.__name__}: {e}"
                if log_level == "warning":
                    logger.warning(log_message)
                else:
                    logger.error(log_message)

                detail = {"error": error_msg}
                detail.update(detail_builder(e))
                raise HTTPException(status_code=status_code, detail=detail)

            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(
                status_code=500, detail={"error": "Internal server error", "details": str(e)}
            )

    return wrapper


def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(CaptureFlowException, capture_flow_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
