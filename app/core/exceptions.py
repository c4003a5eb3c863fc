"""
Custom exceptions for the mock interview service.

This module defines the exception hierarchy used across the pipeline and the
call session, plus the FastAPI handlers that turn them into the
`{success, error}` response envelope.
"""
import logging
from typing import Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ============================================================================
# Custom Exception Classes
# ============================================================================

class AppError(Exception):
    """Base exception for all application errors."""
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class UpstreamModelError(AppError):
    """Raised by a text generator when the model call fails or times out.

    The pipeline stages always recover from it with their fallback.
    """
    status_code = 502


class PersistenceError(AppError):
    """Raised when the interview (or feedback) document cannot be written."""
    status_code = 500


class InvalidTransitionError(AppError):
    """Raised when a call session is asked to move to a state it cannot reach."""
    status_code = 409


class ConfigurationError(AppError):
    """Exception raised when configuration is invalid or missing."""
    pass


# ============================================================================
# FastAPI Exception Handlers
# ============================================================================

async def app_error_handler(request: Request, exc: AppError):
    logger.error(f"{type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc) or "Unknown error occurred"},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP exception: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
    )
