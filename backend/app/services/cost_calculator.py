"""Analysis cost estimation (LLM token usage + platform fee)."""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict

# USD per 1K tokens
API_COSTS = {
    "gpt4": 0.03,
    "gpt4_vision": 0.01,
    "rofl_analysis": 0.02,
}

RATE_BY_FILE_TYPE = {
    "video": API_COSTS["gpt4_vision"],
    "rofl": API_COSTS["rofl_analysis"],
}

TOKENS_PER_SECOND = {
    "video": 50,
    "rofl": 30,
}

QUALITY_MULTIPLIER = {
    "standard": 1.0,
    "high": 1.5,
    "ultra": 2.0,
}

PLATFORM_FEE_RATE = 0.3
KRW_PER_USD = 1300


@dataclass(frozen=True)
class CostBreakdown:
    api_cost: float
    platform_fee: float
    total_cost: float
    currency: str = "USD"

    def to_dict(self) -> dict:
        return asdict(self)


def _round_half_up(value: float, digits: int = 2) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def calculate_cost(duration: float, file_type: str = "video", quality: str = "standard") -> CostBreakdown:
    """Estimate the cost of analysing `duration` seconds of footage or replay."""
    if file_type not in TOKENS_PER_SECOND:
        raise ValueError(f"Unknown file type: {file_type!r} (expected one of {sorted(TOKENS_PER_SECOND)})")
    if quality not in QUALITY_MULTIPLIER:
        raise ValueError(f"Unknown quality: {quality!r} (expected one of {sorted(QUALITY_MULTIPLIER)})")
    if duration < 0:
        raise ValueError("Duration must be non-negative")

    total_tokens = duration * TOKENS_PER_SECOND[file_type] * QUALITY_MULTIPLIER[quality]
    api_cost = (total_tokens / 1000) * RATE_BY_FILE_TYPE[file_type]
    platform_fee = api_cost * PLATFORM_FEE_RATE
    total_cost = api_cost + platform_fee

    return CostBreakdown(
        api_cost=_round_half_up(api_cost),
        platform_fee=_round_half_up(platform_fee),
        total_cost=_round_half_up(total_cost),
    )


def convert_to_krw(usd_amount: float) -> int:
    return int(math.floor(usd_amount * KRW_PER_USD + 0.5))


def cost_message(cost: CostBreakdown, duration: int) -> str:
    """Korean cost notice shown before payment."""
    return (
        f"분석 구간: {duration // 60}분 {duration % 60}초\n"
        f"\n"
        f"💰 비용 내역:\n"
        f"• API 사용료: ${cost.api_cost} (₩{convert_to_krw(cost.api_cost)})\n"
        f"• 플랫폼 수수료: ${cost.platform_fee} (₩{convert_to_krw(cost.platform_fee)})\n"
        f"• 총 비용: ${cost.total_cost} (₩{convert_to_krw(cost.total_cost)})"
    )
