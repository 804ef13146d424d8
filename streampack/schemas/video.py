"""
Pydantic schemas for video endpoints.

Includes response models for upload and listing, and the URL helpers that
every endpoint uses to point at a video's streams and player page.
"""

from typing import Literal, Optional

from pydantic import BaseModel


def hls_url(video_id: str) -> str:
    return f"/stream/{video_id}/hls/playlist.m3u8"


def dash_url(video_id: str) -> str:
    return f"/stream/{video_id}/dash/manifest.mpd"


def player_url(video_id: str) -> str:
    return f"/player/{video_id}"


# --- Response Schemas ---


class UploadResponse(BaseModel):
    """Response for a successfully packaged upload."""

    id: str
    status: Literal["success"] = "success"
    hls_url: str
    dash_url: str
    player_url: str

    @classmethod
    def for_video(cls, video_id: str) -> "UploadResponse":
        return cls(
            id=video_id,
            hls_url=hls_url(video_id),
            dash_url=dash_url(video_id),
            player_url=player_url(video_id),
        )


class VideoListItem(BaseModel):
    """One packaged video in the listing; a missing format is null."""

    id: str
    player_url: str
    hls_url: Optional[str] = None
    dash_url: Optional[str] = None
