"""
Judge service: turns a case description into a verdict.

Every case goes through the fault estimator (reward table) and the keyword
analyzer. When an OpenAI key is configured, the chat-completions API is asked
for a JSON verdict as well; if that call or its parsing fails, the keyword
analyzer's verdict is returned instead.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

import httpx

from backend.app.core.config import settings
from backend.app.services.case_extraction import (
    UNKNOWN_ACTION,
    enhance_case_with_game_data,
    extract_game_state,
    extract_player_action,
    game_context,
)
from backend.app.services.reward_table import FaultEstimate, FaultEstimator, GameState, fault_estimator
from backend.app.services.verdict_analyzer import analyze_case

logger = logging.getLogger(__name__)

# ─── Prompt templates ────────────────────────────────────────────────────────

SYSTEM_PROMPT = """당신은 리그 오브 레전드의 전문 판사입니다.

당신의 역할:
1. 게임 상황을 정확히 분석
2. 각 플레이어의 행동을 객관적으로 평가
3. 누가 더 큰 책임이 있는지 판단
4. 구체적인 근거와 함께 판결 제시

판단 기준:
- 게임 시간 (초반/중반/후반)
- 팀 상황 (골드 차이, 오브젝트 상황)
- 개인 vs 팀 이익의 균형
- 위험도와 보상의 비율
- 스펠 유무, 레벨 차이, 아이템 상황
- 맵 리딩과 시야 상황

응답 형식 (JSON):
{
  "verdict": "최종 판결",
  "reasoning": "판결 근거",
  "punishment": "벌칙 (선택사항)",
  "confidence": 0.0-1.0,
  "character_analysis": {
    "primary_fault": "주요 책임자 캐릭터명",
    "secondary_fault": "보조 책임자 캐릭터명 (선택사항)",
    "fault_comparison": "책임 비교 설명"
  },
  "factors": ["고려한 요소1", "고려한 요소2"],
  "recommendations": ["개선 제안1", "개선 제안2"]
}"""

USER_PROMPT_TEMPLATE = """다음 게임 상황을 분석해주세요:

{case}

보상 테이블 분석 결과:
- 최적 행동: {optimal_action}
- 예상 보상: {expected_reward:.1f}
- 플레이어 보상: {actual_reward:.1f}
- 잘못 정도: {fault_pct:.1f}%

이 정보를 참고하여 최종 판결을 내려주세요."""

VIDEO_SITUATIONS = {
    "teamfight": "팀파이트 상황에서 {characters}의 판단을 분석합니다.",
    "gank": "갱킹 상황에서 {characters}의 판단을 분석합니다.",
    "objective": "오브젝트 상황에서 {characters}의 판단을 분석합니다.",
    "laning": "라인전 상황에서 {characters}의 판단을 분석합니다.",
    "custom": "커스텀 상황에서 {characters}의 판단을 분석합니다.",
}
VIDEO_SITUATION_DEFAULT = "{characters}의 게임 플레이를 분석합니다."

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class LLMError(Exception):
    """The LLM call failed or returned something that isn't a verdict."""


def situation_description(analysis_type: str, target_characters: list[str], custom_description: str = "") -> str:
    characters = ", ".join(target_characters)
    if analysis_type == "custom" and custom_description:
        return custom_description
    template = VIDEO_SITUATIONS.get(analysis_type, VIDEO_SITUATION_DEFAULT)
    return template.format(characters=characters)


def parse_llm_verdict(content: str) -> dict[str, Any]:
    """Extract and normalize the JSON verdict object from an LLM reply."""
    match = _JSON_OBJECT_RE.search(content)
    if not match:
        raise LLMError("LLM reply contains no JSON object")
    try:
        raw = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMError(f"LLM reply is not valid JSON: {e}") from e
    if not isinstance(raw, dict) or not isinstance(raw.get("verdict"), str):
        raise LLMError("LLM reply has no verdict")

    try:
        confidence = float(raw.get("confidence", 0.8))
    except (TypeError, ValueError):
        confidence = 0.8

    character = raw.get("character_analysis") or raw.get("characterAnalysis")
    if isinstance(character, dict):
        character = {
            "primary_fault": _optional_str(character, "primary_fault", "primaryFault"),
            "secondary_fault": _optional_str(character, "secondary_fault", "secondaryFault"),
            "fault_comparison": _optional_str(character, "fault_comparison", "faultComparison") or "",
        }
    elif character is not None:
        raise LLMError(f"character_analysis must be an object, got {type(character).__name__}")

    return {
        "verdict": raw["verdict"],
        "reasoning": str(raw.get("reasoning", "")),
        "punishment": _optional_str(raw, "punishment") or None,
        "confidence": max(0.0, min(1.0, confidence)),
        "factors": _str_list(raw, "factors"),
        "recommendations": _str_list(raw, "recommendations"),
        "character_analysis": character,
    }


def _optional_str(obj: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = obj.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise LLMError(f"{key} must be a string, got {type(value).__name__}")
        if value:
            return value
    return None


def _str_list(obj: dict[str, Any], key: str) -> list[str]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise LLMError(f"{key} must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


class JudgeService:
    """
    Combines the reward-table estimate, the keyword analyzer and, when
    configured, an LLM verdict.
    """

    def __init__(
        self,
        estimator: FaultEstimator | None = None,
        http_client: httpx.Client | None = None,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        max_retries: int = 3,
    ):
        self.estimator = estimator or fault_estimator
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.model = model or settings.OPENAI_MODEL
        self.base_url = (base_url or settings.OPENAI_BASE_URL).rstrip("/")
        self.max_retries = max_retries
        self.client = http_client or httpx.Client(timeout=settings.LLM_TIMEOUT)

    @property
    def llm_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def table(self):
        return self.estimator.table

    def judge(self, case_description: str, game_data: dict[str, Any] | None = None) -> dict[str, Any]:
        if not case_description or not case_description.strip():
            raise ValueError("소송 사유가 필요합니다.")

        text = case_description
        if game_data:
            text = enhance_case_with_game_data(case_description, game_data)

        result = self._verdict(text, extract_game_state(text), extract_player_action(text))
        if game_data:
            result.update(game_context(case_description, game_data))
        return result

    def judge_video(
        self,
        analysis_type: str,
        target_characters: list[str],
        start_time: float,
        end_time: float,
        custom_description: str = "",
    ) -> dict[str, Any]:
        if end_time < start_time:
            raise ValueError("분석 종료 시간이 시작 시간보다 빠릅니다.")

        situation = situation_description(analysis_type, target_characters, custom_description)
        state = GameState(game_time=int(start_time))
        result = self._verdict(situation, state, UNKNOWN_ACTION)
        result["video_analysis"] = {
            "analysis_type": analysis_type,
            "target_characters": target_characters,
            "time_range": {"start": start_time, "end": end_time, "duration": end_time - start_time},
        }
        return result

    def _verdict(self, text: str, state: GameState, action: str) -> dict[str, Any]:
        estimate = self.estimator.estimate_fault(text, state, action)
        keyword = analyze_case(text).to_dict()

        verdict = None
        if self.llm_configured:
            try:
                verdict = self._llm_verdict(text, estimate)
            except LLMError as e:
                logger.warning(f"LLM verdict failed, using keyword analysis: {e}")

        source = "llm"
        if verdict is None:
            verdict = dict(keyword)
            source = "rules"

        return {
            **verdict,
            "source": source,
            "reward_analysis": estimate.to_dict(),
            "keyword_analysis": keyword,
        }

    def _llm_verdict(self, text: str, estimate: FaultEstimate) -> dict[str, Any]:
        prompt = USER_PROMPT_TEMPLATE.format(
            case=text,
            optimal_action=estimate.optimal_action or "없음",
            expected_reward=estimate.expected_reward,
            actual_reward=estimate.actual_reward,
            fault_pct=estimate.fault * 100,
        )
        return parse_llm_verdict(self._chat(prompt))

    def _chat(self, prompt: str) -> str:
        """Call the chat-completions endpoint and return the reply text."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.3,
            "max_tokens": 1000,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        for attempt in range(self.max_retries):
            try:
                resp = self.client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
            except httpx.HTTPError as e:
                raise LLMError(f"LLM request failed: {e}") from e

            if resp.status_code == 200:
                try:
                    content = resp.json()["choices"][0]["message"]["content"]
                except (ValueError, KeyError, IndexError, TypeError) as e:
                    raise LLMError(f"Unexpected LLM response shape: {e}") from e
                if not content:
                    raise LLMError("Empty LLM response")
                return content
            elif resp.status_code == 429 and attempt < self.max_retries - 1:
                wait = 2 ** (attempt + 1)
                logger.info(f"LLM rate limited, waiting {wait}s...")
                time.sleep(wait)
            else:
                raise LLMError(f"LLM API error {resp.status_code}: {resp.text[:200]}")

        raise LLMError("LLM rate limit retries exhausted")

    # Reward table passthrough

    def learn(self, action: str, situation: str, actual_reward: float) -> float:
        return self.table.learn_from_result(action, situation, actual_reward)

    def export_learning_data(self) -> dict[str, Any]:
        return self.table.export_learning_data()

    def import_learning_data(self, data: dict[str, Any]):
        self.table.import_learning_data(data)


# Singleton
judge_service = JudgeService()
