"""
Camera backends - acquisition and frame sampling collaborators.

A backend turns a facing preference into an opaque feed handle, samples
frames from it at native resolution, and releases it again. The capture
controller never talks to a device API directly.
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np

from api.exceptions import AcquisitionDeniedException, AcquisitionUnavailableException
from core.constants import CameraConstants
from core.enums import CameraBackendType, FacingMode

logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


@dataclass
class FeedHandle:
    """Opaque handle to an acquired camera feed"""

    facing: FacingMode
    resolution: Tuple[int, int]
    source: Any = None
    id: int = field(default_factory=lambda: next(_handle_ids))
    released: bool = False


class CameraBackend:
    """Base camera backend"""

    name = "base"

    def acquire(self, facing: FacingMode) -> FeedHandle:
        """
        Open a camera feed.

        Raises:
            AcquisitionDeniedException: If access to the device is refused
            AcquisitionUnavailableException: If no device can be opened
        """
        raise NotImplementedError

    def sample_frame(self, handle: FeedHandle) -> np.ndarray:
        """Read the current frame at native resolution."""
        raise NotImplementedError

    def release(self, handle: FeedHandle) -> None:
        """Free the feed. Releasing twice is harmless."""
        raise NotImplementedError


class OpenCVCameraBackend(CameraBackend):
    """USB / built-in cameras through cv2.VideoCapture"""

    name = CameraBackendType.OPENCV.value

    def __init__(
        self,
        device_indices: Optional[Dict[FacingMode, int]] = None,
        resolution: Tuple[int, int] = CameraConstants.DEFAULT_RESOLUTION,
        fps: int = CameraConstants.DEFAULT_FPS,
        warmup_frames: int = CameraConstants.WARMUP_FRAMES,
    ):
        self.device_indices = device_indices or {
            FacingMode.ENVIRONMENT: CameraConstants.ENVIRONMENT_DEVICE_INDEX,
            FacingMode.USER: CameraConstants.USER_DEVICE_INDEX,
        }
        self.resolution = resolution
        self.fps = fps
        self.warmup_frames = warmup_frames

    def acquire(self, facing: FacingMode) -> FeedHandle:
        index = self.device_indices.get(facing, CameraConstants.ENVIRONMENT_DEVICE_INDEX)

        try:
            cap = cv2.VideoCapture(index)
        except PermissionError as e:
            raise AcquisitionDeniedException(f"device {index}: {e}") from e

        if not cap.isOpened():
            cap.release()
            raise AcquisitionUnavailableException(f"could not open camera device {index}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
        cap.set(cv2.CAP_PROP_FPS, self.fps)

        for _ in range(self.warmup_frames):
            cap.read()

        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or self.resolution[0]
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self.resolution[1]

        logger.info(f"Camera device {index} opened ({facing.value}, {width}x{height})")
        return FeedHandle(facing=facing, resolution=(width, height), source=cap)

    def sample_frame(self, handle: FeedHandle) -> np.ndarray:
        cap = handle.source
        if handle.released or cap is None or not cap.isOpened():
            raise AcquisitionUnavailableException("camera feed is closed")

        ret, frame = cap.read()
        if not ret or frame is None:
            raise AcquisitionUnavailableException("camera stopped delivering frames")

        return frame

    def release(self, handle: FeedHandle) -> None:
        if handle.released:
            return

        if handle.source is not None:
            handle.source.release()
        handle.released = True
        logger.info(f"Camera feed {handle.id} released")


class SyntheticCameraBackend(CameraBackend):
    """
    Generated test pattern for development and tests.

    ``deny_access`` and ``available`` simulate permission and device
    failures on the next acquire; ``drop_feed`` makes the next frame read fail.
    """

    name = CameraBackendType.TEST.value

    def __init__(
        self,
        resolution: Tuple[int, int] = (
            CameraConstants.TEST_IMAGE_WIDTH,
            CameraConstants.TEST_IMAGE_HEIGHT,
        ),
    ):
        self.resolution = resolution
        self.deny_access = False
        self.available = True
        self.drop_feed = False
        self.acquired = 0
        self.released = 0
        self.frame_count = 0

    def acquire(self, facing: FacingMode) -> FeedHandle:
        if self.deny_access:
            raise AcquisitionDeniedException("permission denied by user")
        if not self.available:
            raise AcquisitionUnavailableException("no camera device found")

        self.acquired += 1
        self.drop_feed = False
        return FeedHandle(facing=facing, resolution=self.resolution)

    def sample_frame(self, handle: FeedHandle) -> np.ndarray:
        if handle.released or self.drop_feed:
            raise AcquisitionUnavailableException("camera feed lost")

        self.frame_count += 1
        return self.create_test_image(f"Frame {self.frame_count} ({handle.facing.value})")

    def release(self, handle: FeedHandle) -> None:
        if handle.released:
            return
        handle.released = True
        self.released += 1

    def create_test_image(self, text: str = "Test Image") -> np.ndarray:
        """Create a gradient test image with a grid, a label and a timestamp"""
        width, height = self.resolution
        img = np.zeros((height, width, 3), dtype=np.uint8)

        # Gradient background
        ramp = (np.arange(height) * 255 // max(height, 1)).astype(np.uint8)
        img[:, :, 0] = ramp[:, None]
        img[:, :, 1] = 100
        img[:, :, 2] = 255 - ramp[:, None]

        font = cv2.FONT_HERSHEY_SIMPLEX
        cv2.putText(img, text, (width // 10, height // 2), font, 2, (255, 255, 255), 3)

        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        cv2.putText(img, timestamp, (20, 40), font, 1, (255, 255, 255), 2)

        # Grid
        for x in range(0, width, max(width // 10, 1)):
            cv2.line(img, (x, 0), (x, height), (50, 50, 50), 1)
        for y in range(0, height, max(height // 10, 1)):
            cv2.line(img, (0, y), (width, y), (50, 50, 50), 1)

        return img


def create_backend(backend_type: str, **kwargs) -> CameraBackend:
    """
    Build a camera backend by name.

    Args:
        backend_type: "opencv" or "test"
        **kwargs: Passed to the backend constructor

    Returns:
        CameraBackend instance
    """
    backend = CameraBackendType(backend_type)
    if backend == CameraBackendType.OPENCV:
        return OpenCVCameraBackend(**kwargs)
    return SyntheticCameraBackend(**kwargs)
