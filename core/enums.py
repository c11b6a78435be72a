"""
Centralized enums for the Capture Flow system.
"""

from enum import Enum


class CaptureState(str, Enum):
    """Lifecycle state of the camera feed."""

    IDLE = "idle"
    ACTIVE = "active"
    ERROR = "error"


class FacingMode(str, Enum):
    """Preferred camera direction."""

    ENVIRONMENT = "environment"
    USER = "user"


class CameraBackendType(str, Enum):
    OPENCV = "opencv"
    TEST = "test"


class AnalysisStatus(str, Enum):
    """Status reported by the analyzer for a single sample."""

    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class AnalyzerMode(str, Enum):
    REMOTE = "remote"
    SIMULATED = "simulated"


class StoreEventKind(str, Enum):
    """Kinds of ImageStore change notifications."""

    ADDED = "added"
    REMOVED = "removed"
    SELECTION_CHANGED = "selection_changed"
    BUFFER_REPLACED = "buffer_replaced"
