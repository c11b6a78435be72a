"""
Capture Flow - Main FastAPI Application
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.exceptions import register_exception_handlers
from api.routers import analysis, camera, history, image, system
from config import Settings, get_settings
from core.batch_dispatcher import BatchDispatcher
from core.camera_backend import create_backend
from core.capture_controller import CaptureController
from core.constants import SystemConstants
from core.enums import AnalyzerMode, CameraBackendType, FacingMode
from core.history_buffer import AnalysisHistory
from core.image_store import ImageStore
from services.analysis_client import AnalysisClient, SimulatedAnalyzer
from services.capture_service import CaptureService

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# Suppress watchfiles debug messages
logging.getLogger("watchfiles").setLevel(logging.WARNING)


def create_capture_service(settings: Settings) -> CaptureService:
    """Wire the capture workflow from settings"""
    backend_kwargs = {"resolution": (settings.camera.width, settings.camera.height)}
    if settings.camera.backend == CameraBackendType.OPENCV:
        backend_kwargs["device_indices"] = {
            FacingMode.ENVIRONMENT: settings.camera.environment_device_index,
            FacingMode.USER: settings.camera.user_device_index,
        }
        backend_kwargs["fps"] = settings.camera.fps
    backend = create_backend(settings.camera.backend, **backend_kwargs)

    if settings.analyzer.mode == AnalyzerMode.REMOTE:
        analyzer = AnalysisClient(
            base_url=settings.analyzer.base_url,
            analyze_path=settings.analyzer.analyze_path,
            health_path=settings.analyzer.health_path,
            timeout=settings.analyzer.request_timeout,
            jpeg_quality=settings.image.upload_quality,
        )
    else:
        analyzer = SimulatedAnalyzer()

    dispatcher = BatchDispatcher(
        preflight=analyzer.check_connection if settings.analyzer.preflight_enabled else None,
        per_image_timeout=settings.analyzer.per_image_timeout,
    )

    return CaptureService(
        controller=CaptureController(backend, facing=settings.camera.default_facing),
        store=ImageStore(),
        dispatcher=dispatcher,
        analyzer=analyzer.analyze,
        history=AnalysisHistory(max_size=settings.history.buffer_size),
        min_crop_size=settings.image.min_crop_size,
        thumbnail_width=settings.image.thumbnail_width,
        thumbnail_quality=settings.image.thumbnail_quality,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting Capture Flow server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Camera backend: {settings.camera.backend.value}")
    logger.info(f"Analyzer: {settings.analyzer.mode.value} ({settings.analyzer.base_url})")

    capture_service = create_capture_service(settings)

    app.state.capture_service = capture_service
    app.state.config = settings.to_dict()
    app.state.debug = settings.system.debug

    yield

    logger.info("Shutting down Capture Flow server...")

    # Camera must never stay held after shutdown
    try:
        capture_service.close()
        await asyncio.sleep(0.1)
    except Exception as e:
        logger.error(f"Error during cleanup: {e}")

    logger.info("Server shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Capture Flow",
    description="Camera capture, crop and batch analysis of sample images",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(camera.router, prefix="/api/camera", tags=["Camera"])
app.include_router(image.router, prefix="/api/images", tags=["Images"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])
app.include_router(history.router, prefix="/api/history", tags=["History"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Capture Flow",
        "status": "running",
        "version": "1.0.0",
        "endpoints": {
            "camera": "/api/camera",
            "images": "/api/images",
            "analysis": "/api/analysis",
            "history": "/api/history",
            "system": "/api/system",
            "docs": "/docs",
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    service = getattr(app.state, "capture_service", None)
    return {
        "status": "healthy",
        "services": {
            "capture_service": service is not None,
            "camera_state": service.controller.state.value if service else None,
        },
    }


if __name__ == "__main__":
    server_config = uvicorn.Config(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
        loop="asyncio",
    )

    server = uvicorn.Server(server_config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Server exiting...")
