"""
Batch Dispatcher - Concurrent per-image analysis with full settlement.

Every image in a batch gets its own task and its own outcome: a failing
image never cancels or hides its siblings. Outcomes are reported in request
order, independent of completion order.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

import numpy as np

from api.exceptions import CaptureFlowException
from core.image_store import CapturedImage
from schemas import AnalysisOutcome, AnalysisResult, BatchReport

logger = logging.getLogger(__name__)

Analyzer = Callable[[np.ndarray], Union[AnalysisResult, Awaitable[AnalysisResult]]]
Preflight = Callable[[], Union[Any, Awaitable[Any]]]


class BatchDispatcher:
    """Runs an analyzer over a batch of images concurrently"""

    def __init__(
        self,
        preflight: Optional[Preflight] = None,
        per_image_timeout: Optional[float] = None,
    ):
        """
        Args:
            preflight: Optional connectivity check run once before any image is
                dispatched; if it raises, the whole batch is reported as failed
            per_image_timeout: Optional limit in seconds for a single analysis
        """
        self.preflight = preflight
        self.per_image_timeout = per_image_timeout

    async def dispatch(self, images: Sequence[CapturedImage], analyze: Analyzer) -> BatchReport:
        """
        Analyze every image and wait for all of them to settle.

        Args:
            images: Images to analyze, in report order
            analyze: Async or sync callable taking an image buffer

        Returns:
            BatchReport with one outcome per image, or batch_failed=True
            if the batch could not be attempted
        """
        images = list(images)
        if not images:
            return BatchReport()

        if self.preflight is not None:
            try:
                if inspect.iscoroutinefunction(self.preflight):
                    await self.preflight()
                else:
                    await _maybe_await_in_thread(self.preflight)
            except Exception as e:
                if isinstance(e, CaptureFlowException):
                    reason = e.details.get("reason", e.message)
                else:
                    reason = str(e)
                logger.error(f"Batch of {len(images)} not dispatched: {reason}")
                return BatchReport.failed(reason)

        started = time.perf_counter()
        try:
            tasks = [asyncio.ensure_future(self._run_one(analyze, image)) for image in images]
        except Exception as e:
            logger.error(f"Could not schedule batch of {len(images)}: {e}")
            return BatchReport.failed(str(e))

        settled = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes = []
        for image, result in zip(images, settled):
            if isinstance(result, BaseException):
                reason = _describe(result)
                logger.warning(f"Analysis of {image.id} failed: {reason}")
                outcomes.append(AnalysisOutcome(source_image_id=image.id, error=reason))
            else:
                outcomes.append(AnalysisOutcome(source_image_id=image.id, result=result))

        report = BatchReport(outcomes=outcomes)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Batch settled: {len(report.results)}/{len(images)} succeeded in {elapsed_ms} ms"
        )
        return report

    async def _run_one(self, analyze: Analyzer, image: CapturedImage) -> AnalysisResult:
        if inspect.iscoroutinefunction(analyze):
            call = analyze(image.buffer)
        else:
            call = _maybe_await_in_thread(analyze, image.buffer)

        if self.per_image_timeout is not None:
            result = await asyncio.wait_for(call, timeout=self.per_image_timeout)
        else:
            result = await call

        if not isinstance(result, AnalysisResult):
            result = AnalysisResult.model_validate(result)
        return result.model_copy(update={"image_id": image.id})


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


async def _maybe_await_in_thread(func, *args):
    # Sync analyzers block (HTTP), so they run in worker threads
    return await _maybe_await(await asyncio.to_thread(func, *args))


def _describe(exc: BaseException) -> str:
    if isinstance(exc, CaptureFlowException):
        return exc.message
    if isinstance(exc, asyncio.TimeoutError):
        return "analysis timed out"
    return f"{exc.__class__.__name__}: {exc}" if str(exc) else exc.__class__.__name__
