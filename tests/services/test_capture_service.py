"""
Tests for CaptureService
"""

from unittest.mock import AsyncMock

import numpy as np
import pytest

from api.exceptions import (
    AnalysisFailedException,
    BatchDispatchException,
    ImageNotFoundException,
    NotActiveException,
    SelectionTooSmallException,
)
from core.batch_dispatcher import BatchDispatcher
from core.enums import CaptureState
from schemas import CropRequest, Point, Size


class TestCaptureWorkflow:
    """Test capture and review through the service"""

    def test_capture_requires_active_camera(self, capture_service):
        with pytest.raises(NotActiveException):
            capture_service.capture()

        assert len(capture_service.store) == 0

    def test_capture_adds_selected_image(self, capture_service):
        capture_service.start_camera()

        image = capture_service.capture()

        assert image.selected is True
        assert (image.width, image.height) == (640, 480)
        assert capture_service.store.ids() == (image.id,)

    def test_camera_status(self, capture_service):
        status = capture_service.start_camera()
        assert status["state"] == CaptureState.ACTIVE

        status = capture_service.stop_camera()
        assert status["state"] == CaptureState.IDLE

    def test_crop(self, capture_service):
        capture_service.start_camera()
        image = capture_service.capture()
        request = CropRequest(start_point=Point(x=0, y=0), end_point=Point(x=160, y=120))

        roi = capture_service.crop(image.id, request, Size(width=320, height=240))

        cropped = capture_service.require_image(image.id)
        assert (roi.width, roi.height) == (320, 240)
        assert (cropped.width, cropped.height) == (320, 240)

    def test_crop_too_small(self, capture_service):
        capture_service.start_camera()
        image = capture_service.capture()
        request = CropRequest(start_point=Point(x=0, y=0), end_point=Point(x=10, y=10))

        with pytest.raises(SelectionTooSmallException):
            capture_service.crop(image.id, request, Size(width=320, height=240))

        assert capture_service.require_image(image.id).width == 640

    def test_require_image_missing(self, capture_service):
        with pytest.raises(ImageNotFoundException):
            capture_service.require_image("img_missing")

    def test_image_info_with_thumbnail(self, capture_service):
        capture_service.start_camera()
        image = capture_service.capture()

        info = capture_service.image_info(image)

        assert info.id == image.id
        assert info.thumbnail_base64
        assert capture_service.image_info(image, with_thumbnail=False).thumbnail_base64 is None


class TestAnalyzeWorkflow:
    """Test batch analysis through the service"""

    @pytest.fixture
    def three_captures(self, capture_service):
        capture_service.start_camera()
        images = [capture_service.capture() for _ in range(3)]
        capture_service.store.toggle_selection(images[1].id)
        return images

    @pytest.mark.asyncio
    async def test_analyze_selected(self, capture_service, three_captures, simulated_analyzer):
        report = await capture_service.analyze()

        assert [o.source_image_id for o in report.outcomes] == [
            three_captures[0].id,
            three_captures[2].id,
        ]
        assert simulated_analyzer.calls == 2
        assert len(capture_service.history.buffer) == 2

    @pytest.mark.asyncio
    async def test_analyze_all(self, capture_service, three_captures):
        report = await capture_service.analyze(analyze_all=True)

        assert len(report) == 3

    @pytest.mark.asyncio
    async def test_analyze_nothing_selected(self, capture_service, simulated_analyzer):
        report = await capture_service.analyze()

        assert len(report) == 0
        assert simulated_analyzer.calls == 0

    @pytest.mark.asyncio
    async def test_partial_failure_records_successes_only(self, capture_service, three_captures):
        failing_id = three_captures[2].id
        buffers = {id(capture_service.store.get(failing_id).buffer)}

        async def analyze(buffer: np.ndarray):
            if id(buffer) in buffers:
                raise AnalysisFailedException("bad sample")
            return {"label": "ok", "confidence": 75}

        capture_service.analyzer = analyze
        report = await capture_service.analyze()

        assert report.failed_count == 1
        assert [r.image_id for r in capture_service.history.buffer] == [three_captures[0].id]
        # Store is untouched by analysis
        assert len(capture_service.store) == 3

    @pytest.mark.asyncio
    async def test_batch_failure_raises(self, capture_service, three_captures):
        capture_service.dispatcher = BatchDispatcher(
            preflight=AsyncMock(side_effect=BatchDispatchException("analyzer unreachable"))
        )

        with pytest.raises(BatchDispatchException):
            await capture_service.analyze()

        assert len(capture_service.history.buffer) == 0
        assert capture_service.store.selected_count == 2
