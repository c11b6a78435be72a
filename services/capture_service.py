"""
Capture Service - Orchestrates capture, crop and batch analysis.

This service ties the capture controller, image store, crop transform,
batch dispatcher and analysis history together for the API layer.
"""

import logging
from typing import Optional

from api.exceptions import BatchDispatchException, ImageNotFoundException
from core.batch_dispatcher import Analyzer, BatchDispatcher
from core.capture_controller import CaptureController
from core.constants import ImageConstants
from core.crop_transform import CropTransform
from core.enums import FacingMode
from core.history_buffer import AnalysisHistory
from core.image.processors import ImageProcessors
from core.image_store import CapturedImage, ImageStore
from schemas import ROI, BatchReport, CapturedImageInfo, CropRequest, Size

logger = logging.getLogger(__name__)


class CaptureService:
    """
    Service for the capture / review / analyze workflow.

    All methods are expected to run on the event loop thread; only the
    analyzer calls inside ``analyze`` run concurrently.
    """

    def __init__(
        self,
        controller: CaptureController,
        store: ImageStore,
        dispatcher: BatchDispatcher,
        analyzer: Analyzer,
        history: AnalysisHistory,
        min_crop_size: int = ImageConstants.MIN_CROP_SIZE,
        thumbnail_width: int = ImageConstants.DEFAULT_THUMBNAIL_WIDTH,
        thumbnail_quality: int = ImageConstants.THUMBNAIL_JPEG_QUALITY,
    ):
        """
        Initialize capture service.

        Args:
            controller: Camera feed owner
            store: Captured image collection
            dispatcher: Batch dispatcher
            analyzer: Callable analyzing one image buffer
            history: Consumer of successful results
            min_crop_size: Minimum native crop width/height
            thumbnail_width: Width of thumbnails returned to the UI
            thumbnail_quality: JPEG quality of thumbnails
        """
        self.controller = controller
        self.store = store
        self.dispatcher = dispatcher
        self.analyzer = analyzer
        self.history = history
        self.min_crop_size = min_crop_size
        self.thumbnail_width = thumbnail_width
        self.thumbnail_quality = thumbnail_quality

    # Camera

    def start_camera(self, facing: Optional[FacingMode] = None) -> dict:
        self.controller.start(facing)
        return self.controller.status()

    def retry_camera(self) -> dict:
        self.controller.retry()
        return self.controller.status()

    def stop_camera(self) -> dict:
        self.controller.stop()
        return self.controller.status()

    def camera_status(self) -> dict:
        return self.controller.status()

    def capture(self) -> CapturedImage:
        """
        Snapshot the live feed into the store.

        Raises:
            NotActiveException: If the camera is not active
        """
        frame = self.controller.snapshot()
        image_id = self.store.add(frame)
        logger.info(f"Captured image {image_id} ({frame.shape[1]}x{frame.shape[0]})")
        return self.store.get(image_id)

    # Review

    def require_image(self, image_id: str) -> CapturedImage:
        image = self.store.get(image_id)
        if image is None:
            raise ImageNotFoundException(image_id)
        return image

    def crop(self, image_id: str, request: CropRequest, display_size: Size) -> ROI:
        """Crop a captured image to an on-screen selection."""
        return CropTransform.crop_image(
            self.store, image_id, request, display_size, min_size=self.min_crop_size
        )

    def thumbnail(self, image: CapturedImage) -> str:
        _, thumbnail_base64 = ImageProcessors.create_thumbnail(
            image.buffer, width=self.thumbnail_width, quality=self.thumbnail_quality
        )
        return thumbnail_base64

    def image_info(self, image: CapturedImage, with_thumbnail: bool = True) -> CapturedImageInfo:
        return CapturedImageInfo(
            id=image.id,
            selected=image.selected,
            width=image.width,
            height=image.height,
            created_at=image.created_at,
            thumbnail_base64=self.thumbnail(image) if with_thumbnail else None,
        )

    # Analysis

    async def analyze(self, analyze_all: bool = False) -> BatchReport:
        """
        Analyze the selected images (or all of them).

        Successful results are appended to the history. The store is never
        modified here, so a failed batch can be retried as-is.

        Raises:
            BatchDispatchException: If the batch could not be attempted
        """
        images = self.store.all() if analyze_all else self.store.selected()
        if not images:
            logger.info("Nothing to analyze")
            return BatchReport()

        logger.info(f"Dispatching batch of {len(images)} images (analyze_all={analyze_all})")
        report = await self.dispatcher.dispatch(images, self.analyzer)

        if report.batch_failed:
            raise BatchDispatchException(report.error or "unknown error")

        self.history.add_results(report.results)
        return report

    def close(self) -> None:
        """Release the camera feed"""
        self.controller.close()
