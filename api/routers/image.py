"""
Image API Router - Review, selection, deletion and crop of captured images
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from api.dependencies import get_capture_service
from api.exceptions import safe_endpoint
from core.image.converters import ImageConverters
from schemas import (
    CapturedImageInfo,
    CropApplyRequest,
    CropResponse,
    DeleteResponse,
    ImageListResponse,
    SelectAllRequest,
    SelectionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _selection_response(service) -> SelectionResponse:
    selected_ids = list(service.store.selected_ids())
    return SelectionResponse(
        success=True, selected_ids=selected_ids, selected_count=len(selected_ids)
    )


@router.get("")
@safe_endpoint
async def list_images(
    thumbnails: bool = Query(True, description="Include base64 thumbnails"),
    service=Depends(get_capture_service),
) -> ImageListResponse:
    """List captured images in capture order"""
    images = service.store.all()

    return ImageListResponse(
        images=[service.image_info(image, with_thumbnail=thumbnails) for image in images],
        total=len(images),
        selected_count=sum(1 for image in images if image.selected),
    )


@router.get("/last")
@safe_endpoint
async def last_image(service=Depends(get_capture_service)) -> CapturedImageInfo:
    """Most recently captured image"""
    image = service.store.last()
    if image is None:
        return Response(status_code=204)
    return service.image_info(image)


@router.get("/{image_id}")
@safe_endpoint
async def get_image(image_id: str, service=Depends(get_capture_service)) -> CapturedImageInfo:
    """Get captured image details"""
    return service.image_info(service.require_image(image_id))


@router.get("/{image_id}/full")
@safe_endpoint
async def get_full_image(
    image_id: str,
    quality: int = Query(90, ge=1, le=100),
    service=Depends(get_capture_service),
) -> Response:
    """Full resolution JPEG of a captured image"""
    image = service.require_image(image_id)
    jpeg = ImageConverters.encode_jpeg(image.buffer, quality=quality)
    return Response(content=jpeg, media_type="image/jpeg")


@router.post("/{image_id}/toggle")
@safe_endpoint
async def toggle_selection(
    image_id: str, service=Depends(get_capture_service)
) -> SelectionResponse:
    """Flip the selection of one image"""
    service.store.toggle_selection(image_id)
    return _selection_response(service)


@router.post("/select-all")
@safe_endpoint
async def select_all(
    request: SelectAllRequest, service=Depends(get_capture_service)
) -> SelectionResponse:
    """Select or deselect all images"""
    service.store.set_selection_all(request.selected)
    return _selection_response(service)


@router.delete("/{image_id}")
@safe_endpoint
async def delete_image(image_id: str, service=Depends(get_capture_service)) -> DeleteResponse:
    """Delete one image (unknown IDs are ignored)"""
    removed = service.store.remove(image_id)
    return DeleteResponse(success=True, removed=removed, remaining=len(service.store))


@router.post("/delete-selected")
@safe_endpoint
async def delete_selected(service=Depends(get_capture_service)) -> DeleteResponse:
    """Delete all selected images"""
    removed = service.store.remove_selected()
    return DeleteResponse(success=True, removed=removed, remaining=len(service.store))


@router.post("/{image_id}/crop")
@safe_endpoint
async def crop_image(
    image_id: str, request: CropApplyRequest, service=Depends(get_capture_service)
) -> CropResponse:
    """Crop an image to an on-screen selection"""
    roi = service.crop(image_id, request.to_crop_request(), request.display_size)
    image = service.require_image(image_id)

    return CropResponse(
        success=True,
        image_id=image_id,
        roi=roi,
        width=image.width,
        height=image.height,
        thumbnail_base64=service.thumbnail(image),
    )
