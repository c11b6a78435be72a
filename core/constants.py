"""
Constants and configuration values for the Capture Flow system.
Centralizes all magic numbers and configuration defaults.
"""


# Image Management Constants
class ImageConstants:
    """Constants related to captured images and cropping."""

    # Identifiers
    IMAGE_ID_PREFIX = "img_"

    # Crop policy (native pixels)
    MIN_CROP_SIZE = 50

    # Encoding
    SNAPSHOT_JPEG_QUALITY = 80

    # Thumbnail settings
    DEFAULT_THUMBNAIL_WIDTH = 320
    MIN_THUMBNAIL_WIDTH = 50
    MAX_THUMBNAIL_WIDTH = 2000
    THUMBNAIL_JPEG_QUALITY = 70


# Camera Constants
class CameraConstants:
    """Constants related to camera acquisition."""

    DEFAULT_BACKEND = "test"
    DEFAULT_FACING = "environment"

    # OpenCV device indices tried per facing preference
    ENVIRONMENT_DEVICE_INDEX = 0
    USER_DEVICE_INDEX = 1

    DEFAULT_RESOLUTION = (1920, 1080)
    DEFAULT_FPS = 30

    # Frames read and dropped right after opening a device (auto exposure settle)
    WARMUP_FRAMES = 2

    # Test pattern generation
    TEST_IMAGE_WIDTH = 1920
    TEST_IMAGE_HEIGHT = 1080


# Analysis Constants
class AnalysisConstants:
    """Constants related to the remote analyzer and batch dispatch."""

    DEFAULT_ANALYZER_URL = "http://raspberrypi.local:5000"
    ANALYZE_PATH = "/api/analyze"
    HEALTH_PATH = "/health"

    DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
    HEALTH_TIMEOUT_SECONDS = 3.0

    MIN_CONFIDENCE = 0.0
    MAX_CONFIDENCE = 100.0

    RESULT_ID_PREFIX = "res_"
    UNKNOWN_LABEL = "Unknown"


# History Constants
class HistoryConstants:
    """Constants related to analysis history."""

    DEFAULT_BUFFER_SIZE = 500
    MIN_BUFFER_SIZE = 1
    MAX_BUFFER_SIZE = 10000
    DEFAULT_RECENT_LIMIT = 50


# API Configuration Constants
class APIConstants:
    """Constants related to API configuration."""

    API_VERSION = "v1"
    DEFAULT_HOST = "0.0.0.0"
    DEFAULT_PORT = 8000


# System Constants
class SystemConstants:
    """System-wide constants."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
