"""
Pydantic schemas for StreamPack API.
"""

from .video import UploadResponse, VideoListItem, hls_url, dash_url, player_url

__all__ = [
    "UploadResponse",
    "VideoListItem",
    "dash_url",
    "hls_url",
    "player_url",
]
