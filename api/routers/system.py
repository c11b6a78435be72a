"""
System API Router - Status monitoring
"""

import logging
import time

import psutil
from fastapi import APIRouter, Depends

from api.dependencies import get_capture_service, get_config
from api.exceptions import safe_endpoint

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/status")
@safe_endpoint
async def get_status(service=Depends(get_capture_service)) -> dict:
    """Get system status"""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()

    return {
        "status": "healthy",
        "uptime": time.time() - START_TIME,
        "memory_usage": {
            "process_mb": memory_info.rss / 1024 / 1024,
            "system_percent": virtual_memory.percent,
            "available_mb": virtual_memory.available / 1024 / 1024,
        },
        "camera_state": service.controller.state.value,
        "images": {
            "total": len(service.store),
            "selected": service.store.selected_count,
        },
        "history": service.history.get_statistics(),
    }


@router.get("/config")
@safe_endpoint
async def get_configuration(config: dict = Depends(get_config)) -> dict:
    """Get active configuration"""
    return config
