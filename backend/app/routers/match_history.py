"""Match-history lookup through the Riot API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from backend.app.models.schemas import MatchHistoryRequest, MatchHistoryResponse
from backend.app.services.riot_api import RiotAPIClient, RiotAPIError, riot_client

router = APIRouter(prefix="/api/match-history", tags=["match-history"])


@router.post("", response_model=MatchHistoryResponse)
def match_history(request: MatchHistoryRequest):
    client = riot_client
    if request.platform and request.platform != riot_client.platform:
        client = RiotAPIClient(platform=request.platform, http_client=riot_client.client)

    try:
        matches = client.match_history(request.game_name, request.tag_line, request.count)
    except RiotAPIError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="소환사를 찾을 수 없습니다.")
        if e.status_code == 503:
            raise HTTPException(status_code=503, detail=str(e))
        raise HTTPException(status_code=502, detail=f"전적을 불러오는 중 오류가 발생했습니다: {e}")

    return MatchHistoryResponse(matches=matches)
