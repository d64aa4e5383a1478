"""Verdict and reward-table endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from backend.app.models.schemas import JudgeRequest, JudgeResponse, LearningData, LearnRequest, LearnResponse
from backend.app.services.judge import judge_service

router = APIRouter(prefix="/api/judge", tags=["judge"])


@router.post("", response_model=JudgeResponse)
def judge_case(request: JudgeRequest):
    """
    Judge a dispute described in free text.

    - **case_description**: What happened, in Korean
    - **game_data**: (optional) a replay record from `/api/replay/analyze`
    """
    try:
        return judge_service.judge(request.case_description, request.game_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/learn", response_model=LearnResponse)
def learn(request: LearnRequest):
    reward = judge_service.learn(request.action, request.situation, request.actual_reward)
    return LearnResponse(action=request.action, reward=reward)


@router.get("/learning-data", response_model=LearningData)
def export_learning_data():
    return judge_service.export_learning_data()


@router.put("/learning-data")
def import_learning_data(data: LearningData):
    judge_service.import_learning_data(data.model_dump())
    return {"status": "ok", "actions": len(data.action_rewards)}
