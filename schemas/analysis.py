"""
Analysis-related models.

This module contains the data exchanged with the analyzer and the batch
dispatcher:
- AnalysisResult: one analyzer verdict for one image
- AnalysisOutcome: tagged success/failure keyed to the source image
- BatchReport: ordered outcomes of one dispatch call
- Request/response models for the analysis and history endpoints
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from core.constants import AnalysisConstants
from core.enums import AnalysisStatus


def _new_result_id() -> str:
    return f"{AnalysisConstants.RESULT_ID_PREFIX}{uuid.uuid4().hex[:12]}"


class AnalysisResult(BaseModel):
    """
    Analyzer verdict for a single sample image.

    ``image_id`` is filled in by the batch dispatcher; analyzers only see pixels.
    """

    id: str = Field(default_factory=_new_result_id)
    image_id: Optional[str] = None
    label: str = AnalysisConstants.UNKNOWN_LABEL
    confidence: float = Field(
        0.0, ge=AnalysisConstants.MIN_CONFIDENCE, le=AnalysisConstants.MAX_CONFIDENCE
    )
    status: AnalysisStatus = AnalysisStatus.COMPLETED
    timestamp: datetime = Field(default_factory=datetime.now)
    details: Dict[str, Any] = Field(default_factory=dict)
    thumbnail_base64: Optional[str] = None


class AnalysisOutcome(BaseModel):
    """Result or error for one dispatched image; exactly one is set."""

    source_image_id: str
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> "AnalysisOutcome":
        if (self.result is None) == (self.error is None):
            raise ValueError("AnalysisOutcome requires exactly one of 'result' or 'error'")
        return self

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class BatchReport(BaseModel):
    """
    Outcomes of one dispatch call, in dispatch order.

    ``batch_failed`` is only set when the batch could not be attempted at
    all; in that case ``outcomes`` is empty and ``error`` carries the cause.
    """

    outcomes: List[AnalysisOutcome] = Field(default_factory=list)
    batch_failed: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "BatchReport":
        return cls(outcomes=[], batch_failed=True, error=reason)

    @property
    def results(self) -> List[AnalysisResult]:
        """Successful results, flat, in dispatch order."""
        return [o.result for o in self.outcomes if o.result is not None]

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    def __len__(self) -> int:
        return len(self.outcomes)


class BatchAnalyzeRequest(BaseModel):
    """Request to analyze captured images"""

    analyze_all: bool = Field(
        False, description="Analyze every captured image instead of only the selected ones"
    )


class BatchAnalyzeResponse(BaseModel):
    """Response from batch analysis"""

    success: bool
    dispatched: int
    succeeded: int
    failed: int
    outcomes: List[AnalysisOutcome]


class HistoryResponse(BaseModel):
    """Recent analysis history"""

    results: List[AnalysisResult]
    statistics: Dict[str, Any]


class HistoryDeleteRequest(BaseModel):
    """Request to delete history records"""

    ids: List[str] = Field(..., min_length=1)
