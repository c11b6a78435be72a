"""
Image format conversion utilities.

Handles conversions between the in-memory buffer format and wire formats:
- NumPy arrays (OpenCV BGR format)
- PIL Images (RGB format)
- JPEG bytes and base64 strings
"""

import base64
import io
import logging
from typing import Union

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class ImageConverters:
    """Utilities for converting between image formats."""

    @staticmethod
    def numpy_to_pil(image: np.ndarray) -> Image.Image:
        """
        Convert NumPy array (OpenCV format) to PIL Image.

        Args:
            image: NumPy array in BGR format (OpenCV)

        Returns:
            PIL Image in RGB format
        """
        if len(image.shape) == 3 and image.shape[2] == 3:
            image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        else:
            image_rgb = image

        return Image.fromarray(image_rgb)

    @staticmethod
    def to_base64(
        image: Union[np.ndarray, Image.Image, bytes], format: str = "JPEG", quality: int = 85
    ) -> str:
        """
        Convert image to base64 string.

        Args:
            image: Input image (NumPy array, PIL Image, or raw bytes)
            format: Image format (JPEG, PNG, etc.)
            quality: JPEG quality (1-100, ignored for PNG)

        Returns:
            Base64 encoded string
        """
        try:
            if isinstance(image, bytes):
                return base64.b64encode(image).decode("utf-8")

            if isinstance(image, np.ndarray):
                image = ImageConverters.numpy_to_pil(image)

            buffer = io.BytesIO()
            save_kwargs = {"format": format}

            if format.upper() == "JPEG":
                save_kwargs["quality"] = quality
                save_kwargs["optimize"] = True

            image.save(buffer, **save_kwargs)
            return base64.b64encode(buffer.getvalue()).decode("utf-8")

        except Exception as e:
            logger.error(f"Failed to convert image to base64: {e}")
            raise

    @staticmethod
    def encode_jpeg(image: np.ndarray, quality: int = 85) -> bytes:
        """
        Encode OpenCV image to JPEG bytes.

        Args:
            image: OpenCV image (NumPy array)
            quality: JPEG quality (1-100)

        Returns:
            JPEG file contents
        """
        ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not ok:
            raise ValueError(f"Failed to encode {image.shape} image as JPEG")
        return buffer.tobytes()
