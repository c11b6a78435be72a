"""
Analysis API Router - Batch analysis of captured images
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_capture_service
from api.exceptions import safe_endpoint
from schemas import BatchAnalyzeRequest, BatchAnalyzeResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/batch")
@safe_endpoint
async def analyze_batch(
    request: Optional[BatchAnalyzeRequest] = None, service=Depends(get_capture_service)
) -> BatchAnalyzeResponse:
    """
    Analyze the selected images (or all images with analyze_all).

    Per-image failures are reported in the outcomes; only a batch that could
    not be attempted at all fails the request (503).
    """
    analyze_all = request.analyze_all if request else False
    report = await service.analyze(analyze_all=analyze_all)

    return BatchAnalyzeResponse(
        success=True,
        dispatched=len(report),
        succeeded=len(report.results),
        failed=report.failed_count,
        outcomes=report.outcomes,
    )
