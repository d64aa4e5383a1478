"""Request/response models for the HTTP API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class JudgeRequest(BaseModel):
    case_description: str = Field(..., min_length=1)
    game_data: dict[str, Any] | None = None  # ReplayRecord as returned by /api/replay/analyze


class CharacterAnalysisModel(BaseModel):
    primary_fault: str | None = None
    secondary_fault: str | None = None
    fault_comparison: str = ""


class JudgeResponse(BaseModel):
    verdict: str
    reasoning: str
    punishment: str | None = None
    confidence: float
    factors: list[str] = []
    recommendations: list[str] = []
    character_analysis: CharacterAnalysisModel | None = None
    source: Literal["llm", "rules"]
    reward_analysis: dict[str, Any]
    keyword_analysis: dict[str, Any]
    game_context: dict[str, Any] | None = None
    responsibility_analysis: str | None = None
    video_analysis: dict[str, Any] | None = None


class LearnRequest(BaseModel):
    action: str = Field(..., min_length=1)
    situation: str
    actual_reward: float


class LearnResponse(BaseModel):
    action: str
    reward: float


class LearningData(BaseModel):
    action_rewards: dict[str, float]
    state_action_values: dict[str, dict[str, float]] = {}
    learning_rate: float = 0.1
    discount_factor: float = 0.9


class CostRequest(BaseModel):
    duration: float = Field(..., ge=0)  # seconds
    file_type: Literal["video", "rofl"] = "video"
    quality: Literal["standard", "high", "ultra"] = "standard"


class CostResponse(BaseModel):
    api_cost: float
    platform_fee: float
    total_cost: float
    currency: str
    total_cost_krw: int
    message: str


class PaymentRequest(BaseModel):
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    payment_method: str
    file_name: str = ""
    duration: float = 0


class PaymentResponse(BaseModel):
    success: bool
    payment_id: str
    message: str


class MatchHistoryRequest(BaseModel):
    game_name: str = Field(..., min_length=1)
    tag_line: str = Field(..., min_length=1)
    platform: str | None = None
    count: int = Field(10, ge=1, le=20)


class MatchHighlight(BaseModel):
    start_time: int
    end_time: int
    description: str


class MatchSummary(BaseModel):
    match_id: str
    game_mode: str
    game_duration: int
    game_date: str | None = None
    champion: str
    kills: int
    deaths: int
    assists: int
    win: bool
    highlights: list[MatchHighlight] = []


class MatchHistoryResponse(BaseModel):
    matches: list[MatchSummary]
