"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from core.batch_dispatcher import BatchDispatcher
    from core.camera_backend import SyntheticCameraBackend
    from core.capture_controller import CaptureController
    from core.history_buffer import AnalysisHistory
    from core.image_store import ImageStore
    from main import app
    from services.analysis_client import SimulatedAnalyzer
    from services.capture_service import CaptureService

    analyzer = SimulatedAnalyzer()
    capture_service = CaptureService(
        controller=CaptureController(SyntheticCameraBackend(resolution=(640, 480))),
        store=ImageStore(),
        dispatcher=BatchDispatcher(preflight=analyzer.check_connection),
        analyzer=analyzer.analyze,
        history=AnalysisHistory(max_size=100),
    )

    # Set in app state
    app.state.capture_service = capture_service
    app.state.config = {"environment": "test"}
    app.state.debug = False

    # Create test client (no context manager to avoid running the lifespan)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client

    capture_service.close()


@pytest.fixture
def capture_service(client):
    """The CaptureService behind the test client"""
    return client.app.state.capture_service


@pytest.fixture
def active_camera(client):
    """Start the synthetic camera"""
    response = client.post("/api/camera/start")
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def captured_ids(client, active_camera):
    """Capture three images and return their IDs in capture order"""
    ids = []
    for _ in range(3):
        response = client.post("/api/camera/snapshot")
        assert response.status_code == 200
        ids.append(response.json()["image_id"])
    return ids
