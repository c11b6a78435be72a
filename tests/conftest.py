"""
Pytest configuration and fixtures for Capture Flow tests
"""

import cv2
import numpy as np
import pytest

from core.batch_dispatcher import BatchDispatcher
from core.camera_backend import SyntheticCameraBackend
from core.capture_controller import CaptureController
from core.history_buffer import AnalysisHistory
from core.image_store import ImageStore
from services.analysis_client import SimulatedAnalyzer
from services.capture_service import CaptureService


@pytest.fixture
def test_image():
    """Create a test image for testing"""
    image = np.zeros((480, 640, 3), dtype=np.uint8)
    # Add some content
    cv2.rectangle(image, (100, 100), (300, 300), (255, 255, 255), -1)
    cv2.circle(image, (450, 350), 50, (128, 128, 128), -1)
    return image


@pytest.fixture
def gradient_image():
    """Image whose every pixel is distinct enough to detect off-by-one crops"""
    ys, xs = np.mgrid[0:480, 0:640]
    image = np.zeros((480, 640, 3), dtype=np.uint8)
    image[:, :, 0] = xs % 256
    image[:, :, 1] = ys % 256
    image[:, :, 2] = (xs // 256) * 64 + (ys // 256) * 16
    return image


@pytest.fixture
def image_store():
    """Create ImageStore instance for testing"""
    return ImageStore()


@pytest.fixture
def camera_backend():
    """Synthetic camera at a small resolution"""
    return SyntheticCameraBackend(resolution=(640, 480))


@pytest.fixture
def capture_controller(camera_backend):
    """Create CaptureController instance for testing"""
    controller = CaptureController(camera_backend)
    yield controller
    # Cleanup
    controller.close()


@pytest.fixture
def analysis_history():
    """Create AnalysisHistory instance for testing"""
    return AnalysisHistory(max_size=100)


@pytest.fixture
def simulated_analyzer():
    return SimulatedAnalyzer()


@pytest.fixture
def capture_service(capture_controller, image_store, simulated_analyzer, analysis_history):
    """Create CaptureService instance wired to the synthetic camera"""
    return CaptureService(
        controller=capture_controller,
        store=image_store,
        dispatcher=BatchDispatcher(preflight=simulated_analyzer.check_connection),
        analyzer=simulated_analyzer.analyze,
        history=analysis_history,
    )
