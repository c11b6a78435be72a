"""
API Routers for Capture Flow
"""

from . import analysis, camera, history, image, system

__all__ = ["camera", "image", "analysis", "history", "system"]
