"""
Image utilities.

- converters: Format conversions (NumPy, PIL, JPEG, base64)
- processors: Image operations (thumbnail)
"""

from core.image.converters import ImageConverters
from core.image.processors import ImageProcessors

__all__ = ["ImageConverters", "ImageProcessors"]
