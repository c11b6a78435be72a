"""
Configuration management using Pydantic Settings for Capture Flow.
Provides type-safe configuration with validation and environment variable support.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import (
    AnalysisConstants,
    APIConstants,
    CameraConstants,
    HistoryConstants,
    ImageConstants,
    SystemConstants,
)
from core.enums import AnalyzerMode, CameraBackendType, FacingMode

logger = logging.getLogger(__name__)


class ImageConfig(BaseSettings):
    """Captured image configuration."""

    min_crop_size: int = Field(
        default=ImageConstants.MIN_CROP_SIZE,
        ge=1,
        le=1000,
        description="Minimum native width/height of a crop in pixels",
    )
    thumbnail_width: int = Field(
        default=ImageConstants.DEFAULT_THUMBNAIL_WIDTH,
        ge=ImageConstants.MIN_THUMBNAIL_WIDTH,
        le=ImageConstants.MAX_THUMBNAIL_WIDTH,
        description="Default thumbnail width in pixels",
    )
    thumbnail_quality: int = Field(
        default=ImageConstants.THUMBNAIL_JPEG_QUALITY,
        ge=1,
        le=100,
        description="JPEG quality for thumbnails",
    )
    upload_quality: int = Field(
        default=ImageConstants.SNAPSHOT_JPEG_QUALITY,
        ge=1,
        le=100,
        description="JPEG quality of images sent to the analyzer",
    )

    model_config = SettingsConfigDict(env_prefix="CF_IMAGE_", extra="ignore")


class CameraConfig(BaseSettings):
    """Camera configuration."""

    backend: CameraBackendType = Field(
        default=CameraBackendType(CameraConstants.DEFAULT_BACKEND),
        description="Camera backend (opencv or test)",
    )
    default_facing: FacingMode = Field(
        default=FacingMode(CameraConstants.DEFAULT_FACING), description="Preferred camera"
    )
    width: int = Field(default=CameraConstants.DEFAULT_RESOLUTION[0], ge=100, le=7680)
    height: int = Field(default=CameraConstants.DEFAULT_RESOLUTION[1], ge=100, le=4320)
    fps: int = Field(default=CameraConstants.DEFAULT_FPS, ge=1, le=120)
    environment_device_index: int = Field(
        default=CameraConstants.ENVIRONMENT_DEVICE_INDEX,
        ge=0,
        description="OpenCV device index of the rear camera",
    )
    user_device_index: int = Field(
        default=CameraConstants.USER_DEVICE_INDEX,
        ge=0,
        description="OpenCV device index of the front camera",
    )

    model_config = SettingsConfigDict(env_prefix="CF_CAMERA_", extra="ignore")


class AnalyzerConfig(BaseSettings):
    """Remote analyzer configuration."""

    mode: AnalyzerMode = Field(default=AnalyzerMode.SIMULATED, description="remote or simulated")
    base_url: str = Field(
        default=AnalysisConstants.DEFAULT_ANALYZER_URL, description="Analyzer node base URL"
    )
    analyze_path: str = Field(default=AnalysisConstants.ANALYZE_PATH)
    health_path: str = Field(default=AnalysisConstants.HEALTH_PATH)
    request_timeout: float = Field(
        default=AnalysisConstants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        le=600,
        description="HTTP timeout per analysis request in seconds",
    )
    preflight_enabled: bool = Field(
        default=True, description="Check analyzer connectivity before dispatching a batch"
    )
    per_image_timeout: Optional[float] = Field(
        default=None, gt=0, description="Overall limit per image analysis in seconds"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_prefix="CF_ANALYZER_", extra="ignore")


class HistoryConfig(BaseSettings):
    """Analysis history configuration."""

    buffer_size: int = Field(
        default=HistoryConstants.DEFAULT_BUFFER_SIZE,
        ge=HistoryConstants.MIN_BUFFER_SIZE,
        le=HistoryConstants.MAX_BUFFER_SIZE,
        description="Maximum number of results kept in memory",
    )

    model_config = SettingsConfigDict(env_prefix="CF_HISTORY_", extra="ignore")


class APIConfig(BaseSettings):
    """API configuration."""

    host: str = Field(default=APIConstants.DEFAULT_HOST, description="API host address")
    port: int = Field(default=APIConstants.DEFAULT_PORT, ge=1, le=65535, description="API port")
    api_version: str = Field(default=APIConstants.API_VERSION, description="API version")
    cors_enabled: bool = Field(default=True, description="Enable CORS")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")

    model_config = SettingsConfigDict(env_prefix="CF_API_", extra="ignore")


class SystemConfig(BaseSettings):
    """System configuration."""

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default=SystemConstants.LOG_LEVEL_DEFAULT, description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    model_config = SettingsConfigDict(env_prefix="CF_SYSTEM_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    image: ImageConfig = Field(default_factory=ImageConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    environment: str = Field(
        default="production", description="Environment (development, staging, production)"
    )

    config_file: Optional[str] = Field(default=None, description="Path to YAML config file")

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values):
        """Load configuration from YAML file if specified."""
        if not isinstance(values, dict):
            return values

        config_file = values.get("config_file") or os.getenv("CF_CONFIG_FILE")

        if config_file and Path(config_file).exists():
            import yaml

            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")
                return values

            if file_config:
                # Env vars and explicit values take precedence
                for key, value in file_config.items():
                    if key not in values or values[key] is None:
                        values[key] = value

        return values

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_envs = ["development", "staging", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    model_config = SettingsConfigDict(
        env_prefix="CF_",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with validated configuration
    """
    return Settings()
