"""
Tests for BatchDispatcher module
"""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from api.exceptions import AnalysisFailedException, BatchDispatchException
from core.batch_dispatcher import BatchDispatcher
from core.image_store import CapturedImage, ImageStore
from schemas import AnalysisResult


def make_image(image_id: str, value: int) -> CapturedImage:
    return CapturedImage(id=image_id, buffer=np.full((10, 10, 3), value, dtype=np.uint8))


async def label_by_value(buffer: np.ndarray) -> AnalysisResult:
    return AnalysisResult(label=f"value-{int(buffer[0, 0, 0])}", confidence=90.0)


class TestBatchDispatcher:
    """Test BatchDispatcher functionality"""

    @pytest.fixture
    def images(self):
        return [make_image("img_a", 1), make_image("img_b", 2), make_image("img_c", 3)]

    @pytest.mark.asyncio
    async def test_empty_batch_never_calls_analyzer(self):
        analyze = AsyncMock()
        preflight = AsyncMock()
        dispatcher = BatchDispatcher(preflight=preflight)

        report = await dispatcher.dispatch([], analyze)

        assert len(report) == 0
        assert report.batch_failed is False
        analyze.assert_not_called()
        preflight.assert_not_called()

    @pytest.mark.asyncio
    async def test_results_tagged_with_source_image(self, images):
        report = await BatchDispatcher().dispatch(images, label_by_value)

        assert [o.source_image_id for o in report.outcomes] == ["img_a", "img_b", "img_c"]
        assert [r.image_id for r in report.results] == ["img_a", "img_b", "img_c"]
        assert [r.label for r in report.results] == ["value-1", "value-2", "value-3"]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_hide_siblings(self):
        async def analyze(buffer):
            if buffer[0, 0, 0] == 2:
                raise AnalysisFailedException("analyzer returned HTTP 500")
            return await label_by_value(buffer)

        report = await BatchDispatcher().dispatch(
            [make_image("img_a", 1), make_image("img_b", 2)], analyze
        )

        assert report.batch_failed is False
        assert [o.source_image_id for o in report.outcomes] == ["img_a", "img_b"]
        assert report.outcomes[0].succeeded
        assert report.outcomes[1].error == "Analysis failed: analyzer returned HTTP 500"
        assert report.failed_count == 1
        assert len(report.results) == 1

    @pytest.mark.asyncio
    async def test_order_independent_of_completion_order(self, images):
        async def analyze(buffer):
            # First image finishes last
            await asyncio.sleep(0.03 / int(buffer[0, 0, 0]))
            return await label_by_value(buffer)

        report = await BatchDispatcher().dispatch(images, analyze)

        assert [o.source_image_id for o in report.outcomes] == ["img_a", "img_b", "img_c"]

    @pytest.mark.asyncio
    async def test_images_analyzed_concurrently(self, images):
        async def analyze(buffer):
            await asyncio.sleep(0.1)
            return await label_by_value(buffer)

        started = time.perf_counter()
        await BatchDispatcher().dispatch(images, analyze)

        assert time.perf_counter() - started < 0.25

    @pytest.mark.asyncio
    async def test_every_image_settles_even_if_all_fail(self, images):
        async def analyze(buffer):
            raise RuntimeError("boom")

        report = await BatchDispatcher().dispatch(images, analyze)

        assert len(report) == 3
        assert report.results == []
        assert all(o.error == "RuntimeError: boom" for o in report.outcomes)

    @pytest.mark.asyncio
    async def test_preflight_failure_fails_batch(self, images):
        analyze = AsyncMock()
        preflight = AsyncMock(side_effect=BatchDispatchException("analyzer unreachable"))

        report = await BatchDispatcher(preflight=preflight).dispatch(images, analyze)

        assert report.batch_failed is True
        assert report.outcomes == []
        assert "analyzer unreachable" in report.error
        analyze.assert_not_called()

    @pytest.mark.asyncio
    async def test_sync_preflight_and_analyzer(self, images):
        preflight = MagicMock(return_value=None)
        analyze = MagicMock(return_value=AnalysisResult(label="sync", confidence=50.0))

        report = await BatchDispatcher(preflight=preflight).dispatch(images, analyze)

        preflight.assert_called_once_with()
        assert analyze.call_count == 3
        assert [r.image_id for r in report.results] == ["img_a", "img_b", "img_c"]

    @pytest.mark.asyncio
    async def test_dict_replies_are_validated(self, images):
        async def analyze(buffer):
            if buffer[0, 0, 0] == 3:
                return {"label": "bad", "confidence": 250}
            return {"label": "ok", "confidence": 80}

        report = await BatchDispatcher().dispatch(images, analyze)

        assert [o.succeeded for o in report.outcomes] == [True, True, False]
        assert report.results[0].label == "ok"

    @pytest.mark.asyncio
    async def test_per_image_timeout(self, images):
        async def analyze(buffer):
            if buffer[0, 0, 0] == 2:
                await asyncio.sleep(1)
            return await label_by_value(buffer)

        report = await BatchDispatcher(per_image_timeout=0.05).dispatch(images, analyze)

        assert [o.succeeded for o in report.outcomes] == [True, False, True]
        assert report.outcomes[1].error == "analysis timed out"

    @pytest.mark.asyncio
    async def test_buffers_bound_when_dispatch_is_called(self):
        store = ImageStore()
        first = store.add(np.full((10, 10, 3), 1, dtype=np.uint8))
        second = store.add(np.full((10, 10, 3), 2, dtype=np.uint8))
        seen = []

        async def analyze(buffer):
            seen.append(int(buffer[0, 0, 0]))
            # Crop the other image while the batch is in flight
            store.replace_buffer(second, np.full((10, 10, 3), 9, dtype=np.uint8))
            return await label_by_value(buffer)

        report = await BatchDispatcher().dispatch(store.selected(), analyze)

        assert sorted(seen) == [1, 2]
        assert [r.label for r in report.results] == ["value-1", "value-2"]
        assert store.get(first).buffer[0, 0, 0] == 1

    @pytest.mark.asyncio
    async def test_same_image_twice_gets_two_outcomes(self):
        image = make_image("img_a", 1)

        report = await BatchDispatcher().dispatch([image, image], label_by_value)

        assert [o.source_image_id for o in report.outcomes] == ["img_a", "img_a"]
        assert report.results[0].id != report.results[1].id
