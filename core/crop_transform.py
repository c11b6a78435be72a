"""
Crop transform for the Capture Flow system.

Converts an on-screen crop selection (display coordinates) into a rectangle
in the image's native pixel space and cuts that rectangle out of the buffer.

The display is assumed to scale images uniformly (object-fit "contain" or
natural sizing), so a single scale factor derived from the widths is applied
to both axes.
"""

import logging

import numpy as np

from api.exceptions import ImageNotFoundException, InvalidCropException, SelectionTooSmallException
from core.constants import ImageConstants
from core.image_store import ImageStore
from schemas import ROI, CropRequest, Size

logger = logging.getLogger(__name__)


class CropTransform:
    """
    Stateless crop operations.

    - compute_crop: display selection -> native ROI (with minimum-size policy)
    - apply_crop: native ROI -> new image buffer
    - crop_image: both steps applied to an ImageStore entry
    """

    @staticmethod
    def compute_crop(
        request: CropRequest,
        display_size: Size,
        native_size: Size,
        min_size: int = ImageConstants.MIN_CROP_SIZE,
    ) -> ROI:
        """
        Map a display-space selection onto native pixels.

        Args:
            request: Selection start/end points in display coordinates
            display_size: Rendered size of the image element
            native_size: Native size of the image buffer
            min_size: Minimum native width/height of the result

        Returns:
            ROI in native pixel coordinates, inside the native frame

        Raises:
            SelectionTooSmallException: If the native width or height is below min_size
        """
        x, y, w, h = request.display_rect(display_size)
        scale = native_size.width / display_size.width

        native_x = x * scale
        native_y = y * scale
        native_w = w * scale
        native_h = h * scale

        if native_w < min_size or native_h < min_size:
            raise SelectionTooSmallException(native_w, native_h, min_size)

        max_x = int(native_size.width)
        max_y = int(native_size.height)
        x1 = min(max(int(round(native_x)), 0), max_x)
        y1 = min(max(int(round(native_y)), 0), max_y)
        x2 = min(max(int(round(native_x + native_w)), 0), max_x)
        y2 = min(max(int(round(native_y + native_h)), 0), max_y)

        # Clipping can only shrink the rect when display and native aspect ratios disagree
        if x2 - x1 < min_size or y2 - y1 < min_size:
            raise SelectionTooSmallException(x2 - x1, y2 - y1, min_size)

        roi = ROI.from_points(x1, y1, x2, y2)
        logger.debug(f"Crop selection {x:.1f},{y:.1f} {w:.1f}x{h:.1f} @ {scale:.3f} -> {roi}")
        return roi

    @staticmethod
    def apply_crop(buffer: np.ndarray, roi: ROI) -> np.ndarray:
        """
        Cut a native-space rectangle out of an image.

        Args:
            buffer: Source image
            roi: Rectangle inside the source image

        Returns:
            New image of exactly roi.width x roi.height pixels

        Raises:
            InvalidCropException: If the buffer is not an image or roi exceeds it
        """
        if buffer.ndim not in (2, 3):
            raise InvalidCropException(f"expected 2D or 3D image array, got {buffer.ndim}D")

        img_height, img_width = buffer.shape[:2]
        if not roi.is_valid(img_width, img_height):
            raise InvalidCropException(
                f"ROI {roi.to_dict()} exceeds image bounds {img_width}x{img_height}"
            )

        return buffer[roi.y : roi.y2, roi.x : roi.x2].copy()

    @staticmethod
    def crop_image(
        store: ImageStore,
        image_id: str,
        request: CropRequest,
        display_size: Size,
        min_size: int = ImageConstants.MIN_CROP_SIZE,
    ) -> ROI:
        """
        Crop a stored image in place (same ID, same selection flag).

        The store is only touched once the new buffer exists, so any failure
        leaves it unchanged.

        Returns:
            The native ROI that was applied
        """
        image = store.get(image_id)
        if image is None:
            raise ImageNotFoundException(image_id)

        native_size = Size(width=image.width, height=image.height)
        roi = CropTransform.compute_crop(request, display_size, native_size, min_size)
        cropped = CropTransform.apply_crop(image.buffer, roi)

        store.replace_buffer(image_id, cropped)
        logger.info(f"Cropped image {image_id} to {roi.width}x{roi.height} at ({roi.x}, {roi.y})")
        return roi
