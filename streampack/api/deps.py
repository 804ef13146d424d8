"""
Common dependencies for StreamPack API endpoints.

Provides reusable FastAPI dependencies for settings, storage layout,
the transcoder process runner, the ingest pipeline and the executor
that uploads are packaged on. Tests override get_settings and
get_process_runner to isolate storage roots and replace ffmpeg with a stub.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from fastapi import Depends

from streampack.core.config import Settings, get_settings
from streampack.core.storage import StorageLayout
from streampack.services.ffmpeg_runner import ProcessRunner, SubprocessRunner
from streampack.services.pipeline import IngestPipeline

logger = logging.getLogger(__name__)

# Uploads block for the whole ffmpeg run, so they get their own threads and
# never occupy the shared pool that serves stream files and the catalog.
_transcode_executor: Optional[ThreadPoolExecutor] = None
_transcode_executor_lock = threading.Lock()


def get_process_runner() -> ProcessRunner:
    """Process runner used to invoke ffmpeg."""
    return SubprocessRunner()


def get_storage_layout(settings: Settings = Depends(get_settings)) -> StorageLayout:
    """Storage layout bound to the configured upload and output roots."""
    return StorageLayout(settings.upload_root, settings.output_root)


def get_pipeline(
    settings: Settings = Depends(get_settings),
    runner: ProcessRunner = Depends(get_process_runner),
) -> IngestPipeline:
    """
    Ingest pipeline dependency.

    Usage:
        @router.post("/upload")
        async def upload(pipeline: IngestPipeline = Depends(get_pipeline)):
            ...
    """
    return IngestPipeline(settings, runner=runner)


async def get_transcode_executor(
    settings: Settings = Depends(get_settings),
) -> ThreadPoolExecutor:
    """
    Executor that runs ingest pipelines.

    Created on first use with max_concurrent_transcodes workers and shared
    by every request until shutdown_transcode_executor() is called.
    """
    global _transcode_executor

    with _transcode_executor_lock:
        if _transcode_executor is None:
            _transcode_executor = ThreadPoolExecutor(
                max_workers=settings.max_concurrent_transcodes,
                thread_name_prefix="ingest",
            )
            logger.info(
                f"Transcode executor started with {settings.max_concurrent_transcodes} workers"
            )
        return _transcode_executor


def shutdown_transcode_executor() -> None:
    """Wait for running ingests to finish and release the executor."""
    global _transcode_executor

    with _transcode_executor_lock:
        executor, _transcode_executor = _transcode_executor, None

    if executor is not None:
        executor.shutdown(wait=True)


__all__ = [
    "get_pipeline",
    "get_process_runner",
    "get_settings",
    "get_storage_layout",
    "get_transcode_executor",
    "shutdown_transcode_executor",
]
