"""Replay upload endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile

from backend.replay_parser import generate_replay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/replay", tags=["replay"])


@router.post("/analyze")
async def analyze_replay(file: UploadFile = File(...)):
    """
    Upload a .rofl replay file and get a match record.

    The record's `source` is `"header"` when the replay header was readable
    and `"fallback"` when the numbers were made up from the file size alone.
    """
    if not file.filename or not file.filename.endswith(".rofl"):
        raise HTTPException(status_code=400, detail="ROFL 파일만 업로드 가능합니다.")

    content = await file.read()
    record = generate_replay(content, file.filename)

    return {
        "success": True,
        "game_data": record.to_dict(),
        "game_duration": record.duration,
        "message": "ROFL 파일 분석이 완료되었습니다.",
    }
