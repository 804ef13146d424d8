# Core modules for StreamPack
from .config import Settings, get_settings
from .storage import (
    DASH_ENTRY_FILE,
    DEFAULT_ALLOWED_EXTENSIONS,
    HLS_ENTRY_FILE,
    StorageError,
    StorageLayout,
    UploadRecord,
    UploadTooLargeError,
    UploadValidator,
    VideoLayout,
    new_video_id,
    sanitize_filename,
    save_upload,
    validate_video_id,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Storage
    "DASH_ENTRY_FILE",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "HLS_ENTRY_FILE",
    "StorageError",
    "StorageLayout",
    "UploadRecord",
    "UploadTooLargeError",
    "UploadValidator",
    "VideoLayout",
    "new_video_id",
    "sanitize_filename",
    "save_upload",
    "validate_video_id",
]
