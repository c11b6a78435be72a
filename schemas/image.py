"""
Image-related API models.

This module contains models for captured image operations:
- Listing and inspecting captured images
- Selection changes and deletion
- Crop requests and responses
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import ROI, CropRequest, Point, Size


class CapturedImageInfo(BaseModel):
    """Captured image summary"""

    id: str
    selected: bool
    width: int
    height: int
    created_at: datetime
    thumbnail_base64: Optional[str] = None


class ImageListResponse(BaseModel):
    """All captured images in capture order"""

    images: List[CapturedImageInfo]
    total: int
    selected_count: int


class SelectAllRequest(BaseModel):
    """Request to select or deselect every image"""

    selected: bool = True


class SelectionResponse(BaseModel):
    """Response after a selection change"""

    success: bool
    selected_ids: List[str]
    selected_count: int


class DeleteResponse(BaseModel):
    """Response from image deletion"""

    success: bool
    removed: int
    remaining: int


class CropApplyRequest(BaseModel):
    """Request to crop a captured image to an on-screen selection"""

    start_point: Point = Field(..., description="Drag start, display coordinates")
    end_point: Point = Field(..., description="Drag end, display coordinates")
    display_size: Size = Field(..., description="Rendered size of the image element")

    def to_crop_request(self) -> CropRequest:
        return CropRequest(start_point=self.start_point, end_point=self.end_point)


class CropResponse(BaseModel):
    """Response from crop"""

    success: bool
    image_id: str
    roi: ROI
    width: int
    height: int
    thumbnail_base64: str
