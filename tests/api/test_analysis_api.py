"""
API Integration Tests for Analysis Endpoints
"""

from unittest.mock import AsyncMock

from api.exceptions import AnalysisFailedException, BatchDispatchException
from core.batch_dispatcher import BatchDispatcher


class TestAnalysisAPI:
    """Integration tests for batch analysis"""

    def test_analyze_selected(self, client, captured_ids):
        """Test only selected images are analyzed, in capture order"""
        client.post(f"/api/images/{captured_ids[1]}/toggle")

        response = client.post("/api/analysis/batch")

        assert response.status_code == 200
        data = response.json()
        assert data["dispatched"] == 2
        assert data["succeeded"] == 2
        assert data["failed"] == 0
        assert [o["source_image_id"] for o in data["outcomes"]] == [
            captured_ids[0],
            captured_ids[2],
        ]
        result = data["outcomes"][0]["result"]
        assert result["image_id"] == captured_ids[0]
        assert 0 <= result["confidence"] <= 100

    def test_analyze_all(self, client, captured_ids):
        client.post("/api/images/select-all", json={"selected": False})

        response = client.post("/api/analysis/batch", json={"analyze_all": True})

        assert response.json()["dispatched"] == 3

    def test_analyze_empty(self, client):
        """Test analyzing with nothing captured"""
        response = client.post("/api/analysis/batch")

        assert response.status_code == 200
        assert response.json()["dispatched"] == 0
        assert response.json()["outcomes"] == []

    def test_partial_failure(self, client, capture_service, captured_ids):
        """Test one failing image does not fail the request"""
        calls = {"count": 0}

        async def flaky(buffer):
            calls["count"] += 1
            if calls["count"] == 2:
                raise AnalysisFailedException("analyzer returned HTTP 500")
            return {"label": "E. coli", "confidence": 88}

        capture_service.analyzer = flaky

        response = client.post("/api/analysis/batch")

        assert response.status_code == 200
        data = response.json()
        assert data["succeeded"] == 2
        assert data["failed"] == 1
        assert [o["source_image_id"] for o in data["outcomes"]] == captured_ids
        failed = [o for o in data["outcomes"] if o["error"]]
        assert failed[0]["result"] is None
        assert "HTTP 500" in failed[0]["error"]

        history = client.get("/api/history/recent").json()
        assert len(history["results"]) == 2

    def test_analyzer_unreachable(self, client, capture_service, captured_ids):
        """Test a batch that cannot be attempted returns 503"""
        capture_service.dispatcher = BatchDispatcher(
            preflight=AsyncMock(side_effect=BatchDispatchException("analyzer unreachable"))
        )

        response = client.post("/api/analysis/batch")

        assert response.status_code == 503
        data = response.json()
        assert data["type"] == "BatchDispatchException"
        assert data["details"]["reason"] == "analyzer unreachable"

        # Selection is kept for a retry
        listing = client.get("/api/images?thumbnails=false").json()
        assert listing["selected_count"] == 3
