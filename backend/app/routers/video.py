"""Video clip analysis endpoint."""

from __future__ import annotations

import json

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from backend.app.core.config import settings
from backend.app.models.schemas import JudgeResponse
from backend.app.services.judge import judge_service

router = APIRouter(prefix="/api/video", tags=["video"])

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".avi", ".mkv")
ANALYSIS_TYPES = ("teamfight", "gank", "objective", "laning", "custom")
CHUNK_SIZE = 1024 * 1024


@router.post("/analyze", response_model=JudgeResponse)
async def analyze_video(
    video: UploadFile = File(...),
    analysis_type: str = Form("custom"),
    target_characters: str = Form("[]"),  # JSON array or comma-separated
    start_time: float = Form(0),
    end_time: float = Form(0),
    custom_description: str = Form(""),
):
    """
    Judge a situation from an uploaded clip.

    Frames are not inspected; the verdict comes from the analysis type,
    target characters and description.
    """
    if not video.filename or not video.filename.lower().endswith(VIDEO_EXTENSIONS):
        raise HTTPException(status_code=400, detail="지원하지 않는 영상 형식입니다.")
    if analysis_type not in ANALYSIS_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown analysis type: {analysis_type}")

    file_size = await _upload_size(video, settings.MAX_VIDEO_BYTES)

    characters = _parse_characters(target_characters)

    try:
        result = await run_in_threadpool(
            judge_service.judge_video, analysis_type, characters, start_time, end_time, custom_description
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result["video_analysis"]["file_name"] = video.filename
    result["video_analysis"]["file_size"] = file_size
    return result


async def _upload_size(video: UploadFile, limit: int) -> int:
    """Size of the upload, rejecting it as soon as it passes `limit` bytes."""
    too_big = HTTPException(status_code=400, detail="영상 파일 크기는 100MB를 초과할 수 없습니다.")
    if video.size is not None and video.size > limit:
        raise too_big

    size = 0
    while chunk := await video.read(CHUNK_SIZE):
        size += len(chunk)
        if size > limit:
            raise too_big
    return size


def _parse_characters(raw: str) -> list[str]:
    raw = raw.strip()
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="target_characters must be a JSON array")
        return [str(c) for c in parsed]
    return [c.strip() for c in raw.split(",") if c.strip()]
