"""
StreamPack services package.

Contains the ingest pipeline, the transcoder orchestration and the catalog.
"""

from .catalog import CatalogEntry, CatalogError, list_available
from .ffmpeg_runner import FFmpegError, FFmpegTimeout, ProcessResult, ProcessRunner, SubprocessRunner
from .pipeline import IngestPipeline, IngestResult, InvalidUploadError
from .transcoder import ConversionResult, TranscodeOrchestrator

__all__ = [
    "CatalogEntry",
    "CatalogError",
    "ConversionResult",
    "FFmpegError",
    "FFmpegTimeout",
    "IngestPipeline",
    "IngestResult",
    "InvalidUploadError",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessRunner",
    "TranscodeOrchestrator",
    "list_available",
]
