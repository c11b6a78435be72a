"""
Common data structures shared across the Capture Flow system.

- Point: 2D point in display coordinates
- Size: width/height pair (display or native)
- ROI: integer rectangle in native pixel space
- CropRequest: unordered pair of display-space points describing a selection

IMPORTANT: This module must NOT import from core (other than core.enums),
services, or api to avoid circular dependencies.
"""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field


class Point(BaseModel):
    """2D Point"""

    x: float
    y: float


class Size(BaseModel):
    """Width/height pair"""

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class ROI(BaseModel):
    """
    Region of Interest in native pixel coordinates.

    Represents a rectangular region of an image with bounds validation.
    """

    x: int = Field(..., ge=0, description="X coordinate")
    y: int = Field(..., ge=0, description="Y coordinate")
    width: int = Field(..., gt=0, description="Width")
    height: int = Field(..., gt=0, description="Height")

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for service layer compatibility."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_points(cls, x1: int, y1: int, x2: int, y2: int) -> "ROI":
        """Create ROI from two corner points."""
        return cls(x=min(x1, x2), y=min(y1, y2), width=abs(x2 - x1), height=abs(y2 - y1))

    @property
    def x2(self) -> int:
        """Get right edge coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Get bottom edge coordinate."""
        return self.y + self.height

    def is_valid(
        self, image_width: Optional[int] = None, image_height: Optional[int] = None
    ) -> bool:
        """Check that the ROI is non-empty and, if bounds are given, inside them."""
        if self.width <= 0 or self.height <= 0:
            return False

        if self.x < 0 or self.y < 0:
            return False

        if image_width is not None and self.x2 > image_width:
            return False

        if image_height is not None and self.y2 > image_height:
            return False

        return True


class CropRequest(BaseModel):
    """
    Crop selection as dragged on screen.

    Either point may be the top-left corner; both are in display coordinates
    relative to the rendered image element.
    """

    start_point: Point
    end_point: Point

    def display_rect(self, display_size: Size) -> Tuple[float, float, float, float]:
        """
        Normalized selection rectangle clamped to the display bounds.

        Args:
            display_size: Rendered size of the image element

        Returns:
            Tuple of (x, y, width, height) in display pixels
        """

        def clamp(value: float, upper: float) -> float:
            return max(0.0, min(float(value), float(upper)))

        x1 = clamp(self.start_point.x, display_size.width)
        y1 = clamp(self.start_point.y, display_size.height)
        x2 = clamp(self.end_point.x, display_size.width)
        y2 = clamp(self.end_point.y, display_size.height)

        return min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1)
