"""
History API Router - Analysis history management
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_history
from api.exceptions import safe_endpoint
from core.constants import HistoryConstants
from core.enums import AnalysisStatus
from schemas import AnalysisResult, HistoryDeleteRequest, HistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/recent")
@safe_endpoint
async def get_recent_history(
    limit: int = Query(
        HistoryConstants.DEFAULT_RECENT_LIMIT, ge=1, le=HistoryConstants.MAX_BUFFER_SIZE
    ),
    status: Optional[AnalysisStatus] = Query(None),
    history=Depends(get_history),
) -> HistoryResponse:
    """Get recent analysis results, newest first"""
    results = history.get_recent(limit, status)
    return HistoryResponse(results=results, statistics=history.get_statistics())


@router.get("/statistics")
@safe_endpoint
async def get_statistics(history=Depends(get_history)) -> dict:
    """Get history statistics"""
    return history.get_statistics()


@router.get("/export")
@safe_endpoint
async def export_history(history=Depends(get_history)) -> dict:
    """Export the whole history buffer with its statistics"""
    return history.export_to_dict()


@router.post("/clear")
@safe_endpoint
async def clear_history(history=Depends(get_history)) -> dict:
    """Clear all history"""
    history.clear()
    return {"success": True, "message": "History cleared"}


@router.post("/delete")
@safe_endpoint
async def delete_history(request: HistoryDeleteRequest, history=Depends(get_history)) -> dict:
    """Delete history records by ID"""
    removed = history.delete(request.ids)
    return {"success": True, "removed": removed}


@router.get("/{result_id}")
@safe_endpoint
async def get_result(result_id: str, history=Depends(get_history)) -> AnalysisResult:
    """Get specific result details"""
    result = history.get(result_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return result
