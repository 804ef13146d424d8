"""
Ingest pipeline for uploaded videos.

Runs the four steps of an upload in strict sequence:

    received -> validated -> stored -> {hls, dash} -> success | partial_failure | failed

Request-shape problems are raised before anything touches the filesystem.
Storage problems propagate as StorageError. Conversion outcomes are
returned per format rather than raised.

Usage:
    pipeline = IngestPipeline(settings)
    result = pipeline.ingest(upload.filename, upload.file)

    if result.succeeded:
        ...
"""

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Literal, Optional

from streampack.core.config import Settings
from streampack.core.storage import (
    StorageLayout,
    UploadRecord,
    UploadTooLargeError,
    UploadValidator,
    new_video_id,
    sanitize_filename,
    save_upload,
)
from streampack.services.ffmpeg_runner import ProcessRunner
from streampack.services.transcoder import ConversionResult, TranscodeOrchestrator

logger = logging.getLogger(__name__)


IngestOutcome = Literal["success", "partial_failure", "failed"]


class InvalidUploadError(Exception):
    """Raised for uploads rejected before any side effect."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


@dataclass(frozen=True)
class IngestResult:
    record: UploadRecord
    hls: ConversionResult
    dash: ConversionResult

    @property
    def video_id(self) -> str:
        return self.record.video_id

    @property
    def succeeded(self) -> bool:
        return self.hls.ok and self.dash.ok

    @property
    def timed_out(self) -> bool:
        return self.hls.status == "timeout" or self.dash.status == "timeout"

    @property
    def outcome(self) -> IngestOutcome:
        if self.succeeded:
            return "success"
        if self.hls.ok or self.dash.ok:
            return "partial_failure"
        return "failed"


class IngestPipeline:
    """Validates, stores and packages one upload per call."""

    def __init__(self, settings: Settings, runner: Optional[ProcessRunner] = None):
        self.settings = settings
        self.layout = StorageLayout(settings.upload_root, settings.output_root)
        self.validator = UploadValidator(settings.allowed_extensions_set)
        self.orchestrator = TranscodeOrchestrator(
            runner=runner,
            ffmpeg_binary=settings.ffmpeg_binary,
            timeout_seconds=settings.transcode_timeout_seconds,
            verify_entry_files=settings.verify_entry_files,
        )

    def validate(self, filename: Optional[str]) -> str:
        """
        Check the client-supplied filename and return its sanitized form.

        Raises:
            InvalidUploadError: If the filename is missing or not allowed
        """
        if not filename:
            raise InvalidUploadError("no_file", "No selected file")

        if not self.validator.is_allowed(filename):
            raise InvalidUploadError("file_type_not_allowed", "File type not allowed")

        return sanitize_filename(filename)

    def store(self, filename: str, sanitized: str, stream: BinaryIO) -> UploadRecord:
        """
        Mint an identity, create its directories and persist the stream.

        Raises:
            StorageError: If directories or the file cannot be written
            UploadTooLargeError: If the stream exceeds max_upload_size
        """
        video_id = new_video_id()
        layout = self.layout.layout_for(video_id)
        self.layout.ensure_directories(layout)

        path = self.layout.upload_path(layout, sanitized)
        size = save_upload(stream, path, max_bytes=self.settings.max_upload_size)

        return UploadRecord(
            video_id=video_id,
            original_filename=filename,
            sanitized_filename=sanitized,
            path=path,
            size_bytes=size,
            layout=layout,
        )

    def ingest(self, filename: Optional[str], stream: BinaryIO) -> IngestResult:
        """Run validate, store and both conversions for one upload."""
        sanitized = self.validate(filename)

        size = _remaining_size(stream)
        if size == 0:
            raise InvalidUploadError("empty_file", "Uploaded file is empty")
        if size is not None and size > self.settings.max_upload_size:
            raise UploadTooLargeError(self.settings.max_upload_size)

        record = self.store(filename, sanitized, stream)
        logger.info(f"Stored upload {record.original_filename!r} as {record.video_id}")

        hls, dash = self.orchestrator.package_all(
            record.path,
            record.layout,
            parallel=self.settings.parallel_conversions,
        )
        result = IngestResult(record=record, hls=hls, dash=dash)

        if result.succeeded:
            logger.info(f"Video {record.video_id} packaged as HLS and DASH")
        else:
            logger.error(
                f"Video {record.video_id} ended as {result.outcome}: "
                f"hls={hls.status}, dash={dash.status}"
            )

        return result


def _remaining_size(stream: BinaryIO) -> Optional[int]:
    """Bytes left in a seekable stream, or None if it cannot be measured."""
    try:
        position = stream.tell()
        stream.seek(0, os.SEEK_END)
        end = stream.tell()
        stream.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position
