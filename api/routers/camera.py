"""
Camera API Router
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_capture_service
from api.exceptions import safe_endpoint
from schemas import CameraStartRequest, CameraStatus, SnapshotResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/start")
@safe_endpoint
async def start_camera(
    request: Optional[CameraStartRequest] = None, service=Depends(get_capture_service)
) -> CameraStatus:
    """Acquire the camera feed"""
    facing = request.facing if request else None
    return CameraStatus(**service.start_camera(facing))


@router.post("/retry")
@safe_endpoint
async def retry_camera(service=Depends(get_capture_service)) -> CameraStatus:
    """Re-attempt acquisition after an error"""
    return CameraStatus(**service.retry_camera())


@router.post("/stop")
@safe_endpoint
async def stop_camera(service=Depends(get_capture_service)) -> CameraStatus:
    """Release the camera feed"""
    return CameraStatus(**service.stop_camera())


@router.get("/status")
@safe_endpoint
async def camera_status(service=Depends(get_capture_service)) -> CameraStatus:
    """Get camera state"""
    return CameraStatus(**service.camera_status())


@router.post("/snapshot")
@safe_endpoint
async def snapshot(service=Depends(get_capture_service)) -> SnapshotResponse:
    """Capture the current frame into the image store"""
    image = service.capture()

    return SnapshotResponse(
        success=True,
        image_id=image.id,
        timestamp=datetime.now(),
        width=image.width,
        height=image.height,
        thumbnail_base64=service.thumbnail(image),
        total_images=len(service.store),
    )
