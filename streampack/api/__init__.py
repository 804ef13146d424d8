"""
StreamPack API routes package.

Contains all endpoint routers for the application.
"""

from fastapi import APIRouter

from .pages import router as pages_router
from .stream import router as stream_router
from .upload import router as upload_router
from .videos import router as videos_router

# Main router that includes all sub-routers
api_router = APIRouter()

# HTML pages (landing page, player)
api_router.include_router(pages_router, tags=["pages"])

# Upload and packaging
api_router.include_router(upload_router, tags=["upload"])

# Stream files
api_router.include_router(stream_router, tags=["stream"])

# Catalog
api_router.include_router(videos_router, tags=["videos"])

__all__ = [
    "api_router",
    "pages_router",
    "stream_router",
    "upload_router",
    "videos_router",
]
