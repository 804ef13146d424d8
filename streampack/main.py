"""
StreamPack API

Main FastAPI application entry point.
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from streampack.api import api_router
from streampack.api.deps import shutdown_transcode_executor
from streampack.core.config import get_settings
from streampack.core.storage import StorageLayout
from streampack.services.ffmpeg_runner import validate_ffmpeg_available

# Load settings
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("streampack")

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    StorageLayout(settings.upload_root, settings.output_root).ensure_roots()
    logger.info(f"Storage ready: uploads={settings.upload_root}, streams={settings.output_root}")
    yield
    shutdown_transcode_executor()


app = FastAPI(
    title=settings.app_name,
    description="Upload videos and serve them as HLS and DASH",
    version=settings.version,
    lifespan=lifespan,
)


# Request body size limit middleware
@app.middleware("http")
async def limit_request_body_size(request: Request, call_next):
    """
    Middleware to enforce maximum request body size.

    Rejects uploads whose Content-Length exceeds MAX_UPLOAD_SIZE (default 100MB).
    Bodies without a Content-Length are capped while they are written to disk.
    """
    content_length = request.headers.get("content-length")

    if content_length and content_length.isdigit():
        if int(content_length) > settings.max_upload_size:
            return JSONResponse(
                status_code=413,
                content={
                    "error": "request_entity_too_large",
                    "message": f"Request body too large. Maximum size: {settings.max_upload_size} bytes ({settings.max_upload_size // (1024 * 1024)}MB)",
                    "max_size_bytes": settings.max_upload_size,
                },
            )

    return await call_next(request)


# CORS configuration (loaded from environment)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/health", tags=["system"])
def health_check():
    """
    Health check endpoint for orchestration.

    Reports whether the ffmpeg binary can be executed.
    """
    ffmpeg_ok = validate_ffmpeg_available(settings.ffmpeg_binary)
    return {
        "status": "healthy" if ffmpeg_ok else "degraded",
        "ffmpeg": ffmpeg_ok,
        "version": settings.version,
    }


def run() -> None:
    """Start the HTTP server with uvicorn."""
    import uvicorn

    logger.info(f"Starting server on port {settings.port}...")
    uvicorn.run(app, host=settings.host, port=settings.port)
