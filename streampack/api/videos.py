"""
Video listing endpoint for StreamPack.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from streampack.core.config import Settings, get_settings
from streampack.schemas.video import VideoListItem, dash_url, hls_url, player_url
from streampack.services.catalog import CatalogError, list_available

router = APIRouter()


@router.get(
    "/videos",
    response_model=List[VideoListItem],
    summary="List packaged videos",
    name="list_videos",
)
async def list_videos(settings: Settings = Depends(get_settings)) -> List[VideoListItem]:
    """List every video with at least one available format."""
    try:
        entries = await run_in_threadpool(list_available, settings.output_root)
    except CatalogError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "catalog_unavailable", "message": "Failed to read videos directory"},
        )

    return [
        VideoListItem(
            id=entry.video_id,
            player_url=player_url(entry.video_id),
            hls_url=hls_url(entry.video_id) if entry.hls_available else None,
            dash_url=dash_url(entry.video_id) if entry.dash_available else None,
        )
        for entry in entries
    ]
