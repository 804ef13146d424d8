"""
Upload API endpoint for StreamPack.

Accepts a single video file, stores it under a new identity and packages
it as HLS and DASH before responding. The request blocks until both
conversions have finished. The pipeline runs on the dedicated transcode
executor, so long conversions neither stall the event loop nor take the
threads that serve stream files.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from streampack.api.deps import get_pipeline, get_transcode_executor
from streampack.core.storage import StorageError, UploadTooLargeError
from streampack.schemas.video import UploadResponse
from streampack.services.pipeline import IngestPipeline, InvalidUploadError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload and package a video",
    description="Store a video and convert it to HLS and DASH. Blocks until both conversions finish.",
    name="upload_video",
)
async def upload_video(
    file: Optional[UploadFile] = File(None, description="Video file to package"),
    pipeline: IngestPipeline = Depends(get_pipeline),
    executor: ThreadPoolExecutor = Depends(get_transcode_executor),
) -> UploadResponse:
    """
    Upload a video and package it.

    Error reasons:
    - 400 no_file / empty_file / file_type_not_allowed
    - 413 request_entity_too_large
    - 500 save_failed / conversion_failed / conversion_timeout
    """
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "no_file", "message": "No file part"},
        )

    try:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(executor, pipeline.ingest, file.filename, file.file)
    except InvalidUploadError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": e.reason, "message": e.message},
        )
    except UploadTooLargeError as e:
        raise HTTPException(
            status_code=413,
            detail={
                "error": "request_entity_too_large",
                "message": str(e),
                "max_size_bytes": e.max_bytes,
            },
        )
    except StorageError as e:
        logger.error(f"Failed to save upload {file.filename!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "save_failed", "message": "Failed to save file"},
        )
    finally:
        await file.close()

    if not result.succeeded:
        reason = "conversion_timeout" if result.timed_out else "conversion_failed"
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": reason,
                "message": "Conversion timed out" if result.timed_out else "Conversion failed",
                "id": result.video_id,
                "formats": {"hls": result.hls.status, "dash": result.dash.status},
            },
        )

    return UploadResponse.for_video(result.video_id)
