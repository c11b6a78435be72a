"""
Image processing operations.

Handles image manipulation tasks:
- Thumbnail creation
"""

import logging
from typing import Tuple, Union

import numpy as np
from PIL import Image

from core.constants import ImageConstants
from core.image.converters import ImageConverters

logger = logging.getLogger(__name__)


class ImageProcessors:
    """Utilities for image manipulation."""

    @staticmethod
    def create_thumbnail(
        image: Union[np.ndarray, Image.Image],
        width: int = ImageConstants.DEFAULT_THUMBNAIL_WIDTH,
        quality: int = ImageConstants.THUMBNAIL_JPEG_QUALITY,
    ) -> Tuple[Image.Image, str]:
        """
        Create thumbnail from image, keeping the aspect ratio.

        Images narrower than ``width`` are not upscaled.

        Args:
            image: Input image (NumPy array or PIL Image)
            width: Target width in pixels
            quality: JPEG quality of the base64 thumbnail

        Returns:
            Tuple of (thumbnail as PIL Image, thumbnail as base64 JPEG string)
        """
        try:
            if isinstance(image, np.ndarray):
                pil_image = ImageConverters.numpy_to_pil(image)
            else:
                pil_image = image.copy()

            aspect_ratio = pil_image.height / pil_image.width
            height = max(int(width * aspect_ratio), 1)

            pil_image.thumbnail((width, height), Image.Resampling.LANCZOS)

            thumb_base64 = ImageConverters.to_base64(pil_image, format="JPEG", quality=quality)
            return pil_image, thumb_base64

        except Exception as e:
            logger.error(f"Failed to create thumbnail: {e}")
            raise
