"""
HTML pages for StreamPack: the landing page and the player.
"""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from streampack.schemas.video import dash_url, hls_url

router = APIRouter()
templates = Jinja2Templates(directory=Path(__file__).resolve().parents[1] / "templates")


@router.get("/", response_class=HTMLResponse, name="index")
async def index_page(request: Request):
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/player/{video_id}", response_class=HTMLResponse, name="player")
async def player_page(request: Request, video_id: str):
    return templates.TemplateResponse(
        request,
        "player.html",
        {
            "video_id": video_id,
            "hls_url": hls_url(video_id),
            "dash_url": dash_url(video_id),
        },
    )
