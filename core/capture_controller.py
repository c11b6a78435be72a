"""
Capture Controller - Owns the live camera feed and takes snapshots
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from api.exceptions import (
    AcquisitionDeniedException,
    AcquisitionUnavailableException,
    NotActiveException,
)
from core.camera_backend import CameraBackend, FeedHandle
from core.enums import CaptureState, FacingMode

logger = logging.getLogger(__name__)

StateListener = Callable[[CaptureState, Optional[str]], None]


class CaptureController:
    """
    Camera feed state machine.

    IDLE --start--> ACTIVE --stop--> IDLE
    IDLE/ACTIVE --acquisition failure / feed lost--> ERROR --retry--> ACTIVE
    ERROR --stop--> IDLE

    The feed handle only exists while ACTIVE; every transition out of ACTIVE
    releases it.
    """

    def __init__(self, backend: CameraBackend, facing: FacingMode = FacingMode.ENVIRONMENT):
        self.backend = backend
        self.facing = facing
        self.state = CaptureState.IDLE
        self.error: Optional[str] = None
        self._handle: Optional[FeedHandle] = None
        self._listeners: List[StateListener] = []

        logger.info(f"Capture Controller initialized with {backend.name} backend")

    @property
    def is_active(self) -> bool:
        return self.state == CaptureState.ACTIVE

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with (state, error) after each transition."""
        self._listeners.append(listener)

    def start(self, facing: Optional[FacingMode] = None) -> None:
        """
        Acquire the camera feed.

        Raises:
            AcquisitionDeniedException: Access refused (controller moves to ERROR)
            AcquisitionUnavailableException: No device (controller moves to ERROR)
        """
        if facing is not None and facing != self.facing:
            if self.is_active:
                self._release()
                self._set_state(CaptureState.IDLE)
            self.facing = facing

        if self.is_active:
            logger.warning("Camera feed already active")
            return

        self._acquire()

    def retry(self) -> None:
        """Re-attempt acquisition after a failure."""
        if self.is_active:
            return

        logger.info(f"Retrying camera acquisition (previous error: {self.error})")
        self._acquire()

    def stop(self) -> None:
        """Release the feed and return to IDLE."""
        self._release()
        if self.state != CaptureState.IDLE:
            self._set_state(CaptureState.IDLE)
            logger.info("Camera feed stopped")

    def close(self) -> None:
        """Owner teardown; same as stop()."""
        self.stop()

    def snapshot(self) -> np.ndarray:
        """
        Capture the current frame at native resolution.

        Returns:
            New BGR image buffer

        Raises:
            NotActiveException: If the controller is not ACTIVE
            AcquisitionUnavailableException: If the feed was lost (controller moves to ERROR)
        """
        if not self.is_active or self._handle is None:
            raise NotActiveException(self.state.value)

        try:
            frame = self.backend.sample_frame(self._handle)
        except AcquisitionUnavailableException as e:
            self._fail(e.details.get("reason", e.message))
            raise

        return frame.copy()

    @contextmanager
    def session(self, facing: Optional[FacingMode] = None):
        """
        Scoped acquisition: the feed is released on every exit path.

        Example:
            >>> with controller.session():
            ...     frame = controller.snapshot()
        """
        self.start(facing)
        try:
            yield self
        finally:
            self.stop()

    def status(self) -> Dict[str, Any]:
        """Get controller status"""
        resolution = None
        if self._handle is not None:
            resolution = {"width": self._handle.resolution[0], "height": self._handle.resolution[1]}

        return {
            "state": self.state,
            "facing": self.facing,
            "backend": self.backend.name,
            "error": self.error,
            "resolution": resolution,
        }

    # Internals

    def _acquire(self) -> None:
        try:
            self._handle = self.backend.acquire(self.facing)
        except (AcquisitionDeniedException, AcquisitionUnavailableException) as e:
            self._handle = None
            self._fail(e.message)
            raise

        self.error = None
        self._set_state(CaptureState.ACTIVE)
        logger.info(f"Camera feed active ({self.facing.value})")

    def _fail(self, cause: str) -> None:
        self._release()
        self.error = cause
        self._set_state(CaptureState.ERROR)
        logger.error(f"Camera error: {cause}")

    def _release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            self.backend.release(handle)
        except Exception as e:
            logger.error(f"Failed to release camera feed: {e}")

    def _set_state(self, state: CaptureState) -> None:
        self.state = state
        if state != CaptureState.ERROR:
            self.error = None

        for listener in list(self._listeners):
            try:
                listener(state, self.error)
            except Exception as e:
                logger.error(f"Capture state listener failed: {e}", exc_info=True)
