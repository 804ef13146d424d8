"""
Stream file endpoint for StreamPack.

Serves playlist, manifest and segment files from a video's HLS or DASH
tree. Paths are resolved inside the format directory only.
"""

import mimetypes
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from streampack.api.deps import get_storage_layout
from streampack.core.storage import StorageLayout

router = APIRouter()


STREAM_MEDIA_TYPES: dict[str, str] = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".mpd": "application/dash+xml",
    ".ts": "video/mp2t",
    ".m4s": "video/iso.segment",
    ".mp4": "video/mp4",
}


def media_type_for(path: Path) -> str:
    """Content type for a stream file, by extension."""
    suffix = path.suffix.lower()
    if suffix in STREAM_MEDIA_TYPES:
        return STREAM_MEDIA_TYPES[suffix]
    return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


@router.get(
    "/stream/{video_id}/{format_type}/{file_path:path}",
    summary="Fetch a stream file",
    name="stream_file",
)
async def stream_file(
    video_id: str,
    format_type: str,
    file_path: str,
    layout: StorageLayout = Depends(get_storage_layout),
) -> FileResponse:
    """Return the raw bytes of a playlist, manifest or segment."""
    path = layout.stream_path(video_id, format_type, file_path)

    if path is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "File not found"},
        )

    return FileResponse(path, media_type=media_type_for(path))
