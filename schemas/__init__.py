"""
Schemas Package

This package contains all Pydantic schemas for data validation and serialization,
organized by domain.

These schemas are shared across all application layers:
- API (routers, dependencies)
- Services (orchestration)
- Core (image store, crop transform, batch dispatch)
"""

# Re-export enums from centralized location for convenience
from core.enums import AnalysisStatus, CaptureState, FacingMode

# Analysis models
from .analysis import (
    AnalysisOutcome,
    AnalysisResult,
    BatchAnalyzeRequest,
    BatchAnalyzeResponse,
    BatchReport,
    HistoryDeleteRequest,
    HistoryResponse,
)

# Camera models
from .camera import CameraStartRequest, CameraStatus, SnapshotResponse

# Common models (core data structures)
from .common import ROI, CropRequest, Point, Size

# Image models
from .image import (
    CapturedImageInfo,
    CropApplyRequest,
    CropResponse,
    DeleteResponse,
    ImageListResponse,
    SelectAllRequest,
    SelectionResponse,
)

__all__ = [
    # Common models
    "ROI",
    "Point",
    "Size",
    "CropRequest",
    # Camera models
    "CameraStartRequest",
    "CameraStatus",
    "SnapshotResponse",
    # Image models
    "CapturedImageInfo",
    "ImageListResponse",
    "SelectAllRequest",
    "SelectionResponse",
    "DeleteResponse",
    "CropApplyRequest",
    "CropResponse",
    # Analysis models
    "AnalysisResult",
    "AnalysisOutcome",
    "BatchReport",
    "BatchAnalyzeRequest",
    "BatchAnalyzeResponse",
    "HistoryResponse",
    "HistoryDeleteRequest",
    # Enums (re-exported from core.enums)
    "AnalysisStatus",
    "CaptureState",
    "FacingMode",
]
