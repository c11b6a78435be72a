"""
Shared FastAPI dependencies for the Capture Flow system.
"""

import logging
from typing import Any, Dict

from fastapi import Depends, HTTPException, Request

from core.history_buffer import AnalysisHistory
from core.image_store import ImageStore
from services.capture_service import CaptureService

logger = logging.getLogger(__name__)


def get_capture_service(request: Request) -> CaptureService:
    """
    Get the CaptureService instance from app state.

    Raises:
        HTTPException: If the service was not initialized
    """
    try:
        return request.app.state.capture_service
    except AttributeError as e:
        logger.error(f"Capture service not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Capture service not initialized"
        )


def get_image_store(service: CaptureService = Depends(get_capture_service)) -> ImageStore:
    """Get ImageStore instance."""
    return service.store


def get_history(service: CaptureService = Depends(get_capture_service)) -> AnalysisHistory:
    """Get AnalysisHistory instance."""
    return service.history


def get_config(request: Request) -> Dict[str, Any]:
    """Get application configuration."""
    try:
        return request.app.state.config
    except AttributeError:
        logger.warning("Config not found in app state, using defaults")
        return {}
