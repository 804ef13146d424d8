"""
File Storage & Security

Provides the on-disk side of the ingest pipeline:
- Video identity minting and validation
- Upload/output directory layout per identity
- Extension allow-listing and filename sanitization
- Atomic persistence of uploaded bytes
- Path traversal prevention for stream reads
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Optional
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


# Format subdirectory names and their entry files
HLS_DIR_NAME = "hls"
DASH_DIR_NAME = "dash"
HLS_ENTRY_FILE = "playlist.m3u8"
DASH_ENTRY_FILE = "manifest.mpd"

ENTRY_FILES: dict[str, str] = {
    HLS_DIR_NAME: HLS_ENTRY_FILE,
    DASH_DIR_NAME: DASH_ENTRY_FILE,
}

DEFAULT_ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {"mp4", "avi", "mov", "mkv", "wmv", "flv", "webm"}
)

MAX_FILENAME_STEM = 100
COPY_CHUNK_SIZE = 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_DOT_RUNS = re.compile(r"\.{2,}")


class StorageError(Exception):
    """Raised when an upload cannot be written to disk."""

    pass


class UploadTooLargeError(StorageError):
    """Raised when an upload stream exceeds the configured size limit."""

    def __init__(self, max_bytes: int):
        super().__init__(f"Upload exceeds maximum size of {max_bytes} bytes")
        self.max_bytes = max_bytes


# =============================================================================
# Identity
# =============================================================================


def new_video_id() -> str:
    """Mint a fresh 128-bit random video identity."""
    return str(uuid4())


def validate_video_id(video_id: str) -> bool:
    """
    Validate that a video ID is a canonical UUID string.

    Example:
        >>> validate_video_id("550e8400-e29b-41d4-a716-446655440000")
        True
        >>> validate_video_id("../malicious")
        False
    """
    try:
        return str(UUID(video_id)) == video_id
    except (ValueError, TypeError, AttributeError):
        return False


# =============================================================================
# Upload validation
# =============================================================================


class UploadValidator:
    """Checks uploaded filenames against an extension allow-list."""

    def __init__(self, allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS):
        self.allowed_extensions = frozenset(ext.lower() for ext in allowed_extensions)

    def is_allowed(self, filename: str) -> bool:
        """
        Return True if the text after the final dot is an allowed extension.

        Example:
            >>> UploadValidator().is_allowed("Clip.MP4")
            True
            >>> UploadValidator().is_allowed("README")
            False
        """
        if not filename or "." not in filename:
            return False
        ext = filename.rsplit(".", 1)[1].lower()
        return bool(ext) and ext in self.allowed_extensions


def sanitize_filename(filename: str, max_length: int = MAX_FILENAME_STEM) -> str:
    """
    Sanitize a filename so it can never escape its target directory.

    - Strips directory components (both / and \\ are separators)
    - Removes null bytes and control characters
    - Replaces whitespace and any character outside [A-Za-z0-9._-] with _
    - Collapses dot runs and strips leading dots
    - Limits the stem to max_length characters (extension preserved)

    Example:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("my holiday clip.mp4")
        'my_holiday_clip.mp4'
    """
    filename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    filename = re.sub(r"\s", "_", filename)
    filename = _CONTROL_CHARS.sub("", filename)
    filename = _UNSAFE_CHARS.sub("_", filename)
    filename = _DOT_RUNS.sub(".", filename)

    # Split on the final dot before stripping so ".mp4" keeps its extension
    name, dot, ext = filename.rpartition(".")
    if not dot:
        name, ext = filename, ""
    elif ext:
        ext = f".{ext}"
    name = name.strip(".")[:max_length]

    if not name:
        name = uuid4().hex[:8]

    return f"{name}{ext}"


# =============================================================================
# Layout
# =============================================================================


@dataclass(frozen=True)
class VideoLayout:
    """Canonical directories for one video identity."""

    video_id: str
    upload_dir: Path
    output_dir: Path
    hls_dir: Path
    dash_dir: Path

    @property
    def hls_entry(self) -> Path:
        return self.hls_dir / HLS_ENTRY_FILE

    @property
    def dash_entry(self) -> Path:
        return self.dash_dir / DASH_ENTRY_FILE


@dataclass(frozen=True)
class UploadRecord:
    """An uploaded file persisted under its video identity."""

    video_id: str
    original_filename: str
    sanitized_filename: str
    path: Path
    size_bytes: int
    layout: VideoLayout


class StorageLayout:
    """
    Derives per-video paths from the two configured roots.

    The structure is:
        {upload_root}/{video_id}/{sanitized_filename}
        {output_root}/{video_id}/hls/playlist.m3u8
        {output_root}/{video_id}/dash/manifest.mpd
    """

    def __init__(self, upload_root: Path, output_root: Path):
        self.upload_root = Path(upload_root).resolve()
        self.output_root = Path(output_root).resolve()

    def layout_for(self, video_id: str) -> VideoLayout:
        """
        Compute the directories for a video. Performs no I/O.

        Raises:
            ValueError: If video_id is not a valid UUID
        """
        if not validate_video_id(video_id):
            raise ValueError("Invalid video ID: must be a valid UUID")

        output_dir = self.output_root / video_id
        return VideoLayout(
            video_id=video_id,
            upload_dir=self.upload_root / video_id,
            output_dir=output_dir,
            hls_dir=output_dir / HLS_DIR_NAME,
            dash_dir=output_dir / DASH_DIR_NAME,
        )

    def ensure_roots(self) -> None:
        """Create both storage roots if missing."""
        self.upload_root.mkdir(parents=True, exist_ok=True)
        self.output_root.mkdir(parents=True, exist_ok=True)

    def ensure_directories(self, layout: VideoLayout) -> None:
        """Create the upload and output directories of a video (idempotent)."""
        try:
            layout.upload_dir.mkdir(parents=True, exist_ok=True)
            layout.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directories for {layout.video_id}: {e}") from e

    def upload_path(self, layout: VideoLayout, sanitized_filename: str) -> Path:
        """
        Join a sanitized filename to the video's upload directory.

        Raises:
            ValueError: If the resulting path escapes the upload directory
        """
        path = (layout.upload_dir / sanitized_filename).resolve()
        if path.parent != layout.upload_dir.resolve():
            raise ValueError("Path traversal detected: path escapes upload directory")
        return path

    def stream_path(self, video_id: str, format_type: str, relative_path: str) -> Optional[Path]:
        """
        Resolve a requested stream file, or None if it is not servable.

        Returns None for an unknown format, an invalid video ID, a path that
        escapes the format directory, or a file that does not exist.
        """
        if format_type not in ENTRY_FILES or not validate_video_id(video_id):
            return None

        relative_path = relative_path.lstrip("/")
        if not relative_path or "\x00" in relative_path:
            return None

        base = (self.output_root / video_id / format_type).resolve()
        candidate = (base / relative_path).resolve()

        if base not in candidate.parents:
            logger.warning(f"Rejected stream path outside {base}: {relative_path!r}")
            return None

        if not candidate.is_file():
            return None

        return candidate


# =============================================================================
# Artifact store
# =============================================================================


def save_upload(
    source: BinaryIO,
    destination: Path,
    max_bytes: Optional[int] = None,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> int:
    """
    Copy an uploaded byte stream to destination.

    Bytes are written to a hidden .part sibling and renamed into place only
    once the whole stream has been copied, so destination never holds a
    truncated file.

    Args:
        source: Readable binary stream
        destination: Final file path (parents are created)
        max_bytes: Optional upper bound on the number of bytes accepted
        chunk_size: Read size per iteration

    Returns:
        int: Number of bytes written

    Raises:
        UploadTooLargeError: If the stream is longer than max_bytes
        StorageError: If the file cannot be created or written
    """
    destination = Path(destination)
    temp_path = destination.with_name(f".{destination.name}.part")
    written = 0

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "wb") as out:
            while True:
                chunk = source.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if max_bytes is not None and written > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                out.write(chunk)
            out.flush()
            os.fsync(out.fileno())
        os.replace(temp_path, destination)
    except StorageError:
        _discard(temp_path)
        raise
    except OSError as e:
        _discard(temp_path)
        raise StorageError(f"Failed to save file {destination}: {e}") from e

    logger.info(f"File uploaded: {destination} ({written} bytes)")
    return written


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial upload {path}: {e}")
