"""
Camera-related API models.

This module contains request and response models for camera operations:
- Feed start / retry requests
- Controller status
- Snapshot responses
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from core.enums import CaptureState, FacingMode

from .common import Size


class CameraStartRequest(BaseModel):
    """Request to acquire the camera feed"""

    facing: FacingMode = Field(
        FacingMode.ENVIRONMENT, description="Preferred camera direction (environment or user)"
    )


class CameraStatus(BaseModel):
    """Capture controller status"""

    state: CaptureState
    facing: FacingMode
    backend: str
    error: Optional[str] = None
    resolution: Optional[Size] = None


class SnapshotResponse(BaseModel):
    """Response from a snapshot"""

    success: bool
    image_id: str
    timestamp: datetime
    width: int
    height: int
    thumbnail_base64: str
    total_images: int
