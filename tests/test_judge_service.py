import json

import httpx
import numpy as np
import pytest

from backend.app.services.case_extraction import (
    UNKNOWN_ACTION,
    enhance_case_with_game_data,
    extract_game_state,
    extract_player_action,
    game_context,
)
from backend.app.services.judge import JudgeService, LLMError, parse_llm_verdict, situation_description
from backend.app.services.reward_table import FaultEstimator
from backend.replay_parser import generate_replay

GANK_CASE = "15분에 정글러가 갱킹을 실패했고 탑 라이너가 도망갔습니다"

LLM_VERDICT = {
    "verdict": "유죄",
    "reasoning": "정글러의 무리한 갱킹",
    "confidence": 1.4,
    "character_analysis": {"primary_fault": "리신", "fault_comparison": "리신 70% / 다리우스 30%"},
    "factors": ["갱킹 타이밍"],
    "recommendations": ["와드 확인 후 갱킹"],
}


def chat_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_service(estimator: FaultEstimator, handler, api_key: str = "sk-test") -> JudgeService:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return JudgeService(estimator=estimator, http_client=client, api_key=api_key, model="gpt-4")


def test_llm_verdict_is_used_when_available(estimator: FaultEstimator) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=chat_reply("판결입니다:\n" + json.dumps(LLM_VERDICT, ensure_ascii=False)))

    result = make_service(estimator, handler).judge(GANK_CASE)

    assert result["source"] == "llm"
    assert result["verdict"] == "유죄"
    assert result["confidence"] == 1.0
    assert result["character_analysis"]["primary_fault"] == "리신"
    assert result["reward_analysis"]["optimal_action"] == "gank_response_kill"
    assert result["keyword_analysis"]["verdict"] in {"무죄", "부분 유죄"}

    request = seen[0]
    assert request.url.path.endswith("/chat/completions")
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4"
    assert "gank_response_kill" in body["messages"][1]["content"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="upstream down"),
        httpx.Response(401, json={"error": "bad key"}),
        httpx.Response(200, json=chat_reply("죄송합니다, 판단할 수 없습니다.")),
        httpx.Response(200, json=chat_reply("{not json}")),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json=chat_reply('{"verdict": "유죄", "recommendations": 3}')),
        httpx.Response(200, json=chat_reply('{"verdict": "유죄", "factors": "갱킹"}')),
        httpx.Response(200, json=chat_reply('{"verdict": "유죄", "character_analysis": {"primary_fault": 7}}')),
        httpx.Response(200, json=chat_reply('{"verdict": "유죄", "character_analysis": ["리신"]}')),
        httpx.Response(200, json=chat_reply('{"verdict": "유죄", "punishment": {"days": 3}}')),
    ],
)
def test_llm_failure_falls_back_to_rules(estimator: FaultEstimator, response: httpx.Response) -> None:
    service = make_service(estimator, lambda request: response)
    result = service.judge(GANK_CASE)

    assert result["source"] == "rules"
    assert result["verdict"] == result["keyword_analysis"]["verdict"]
    assert result["verdict"] in {"무죄", "부분 유죄"}


def test_transport_error_falls_back_to_rules(estimator: FaultEstimator) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert make_service(estimator, handler).judge(GANK_CASE)["source"] == "rules"


def test_no_api_key_skips_llm(estimator: FaultEstimator) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("LLM must not be called without a key")

    service = make_service(estimator, handler, api_key="")
    assert not service.llm_configured
    assert service.judge(GANK_CASE)["source"] == "rules"


def test_blank_case_is_rejected(estimator: FaultEstimator) -> None:
    service = make_service(estimator, lambda request: httpx.Response(500), api_key="")
    with pytest.raises(ValueError):
        service.judge("   ")


def test_parse_llm_verdict_accepts_camel_case() -> None:
    content = json.dumps({
        "verdict": "무죄",
        "characterAnalysis": {"primaryFault": "야스오", "faultComparison": "비슷함"},
    })
    parsed = parse_llm_verdict(content)
    assert parsed["character_analysis"] == {
        "primary_fault": "야스오",
        "secondary_fault": None,
        "fault_comparison": "비슷함",
    }
    assert parsed["confidence"] == 0.8
    assert parsed["factors"] == []


def test_parse_llm_verdict_treats_null_lists_as_empty() -> None:
    parsed = parse_llm_verdict('{"verdict": "무죄", "factors": null, "recommendations": null, "punishment": ""}')
    assert parsed["factors"] == []
    assert parsed["recommendations"] == []
    assert parsed["punishment"] is None
    assert parsed["character_analysis"] is None


def test_parse_llm_verdict_requires_verdict() -> None:
    with pytest.raises(LLMError):
        parse_llm_verdict('{"reasoning": "없음"}')


def test_game_state_extraction() -> None:
    state = extract_game_state("25분 레벨 14 상황, 3000 골드 앞서는 중, 드래곤과 타워, 팀파이트 2번, 시야 나쁨, 압박 심함")
    assert state.game_time == 1500
    assert state.player_level == 14
    assert state.team_gold == 15000
    assert state.enemy_gold == 12000
    assert state.objectives == ["dragon", "tower"]
    assert state.team_fights == 2
    assert state.vision == 0.2
    assert state.pressure == 0.8


def test_game_state_defaults() -> None:
    state = extract_game_state("그냥 졌어요")
    assert (state.game_time, state.player_level, state.team_gold, state.enemy_gold) == (900, 10, 15000, 14000)
    assert extract_game_state("2000 골드 뒤처짐").enemy_gold == 17000


def test_player_action_extraction() -> None:
    assert extract_player_action("탑이 갱킹 무시하고 CS 집중") == "gank_ignore_safe"
    assert extract_player_action("CS 집중했습니다") == "cs_focus_safe"
    assert extract_player_action("아무것도 안 함") == UNKNOWN_ACTION


def test_case_enriched_with_replay(estimator: FaultEstimator) -> None:
    record = generate_replay(b"", "broken.rofl", np.random.default_rng(3)).to_dict()
    champion = record["participants"][0]["champion"]
    case = f"{champion}가 갱킹을 실패했습니다"

    enriched = enhance_case_with_game_data(case, record)
    assert enriched.startswith(case)
    assert "게임 통계:" in enriched
    assert f"- {champion}: KDA" in enriched

    service = make_service(estimator, lambda request: httpx.Response(500), api_key="")
    result = service.judge(case, record)
    assert result["game_context"]["mentioned_champions"] == [champion]
    assert result["game_context"]["participants"] == 10
    assert result["game_context"]["source"] == "fallback"
    assert champion in result["responsibility_analysis"]


def test_game_context_without_mentions_uses_top_players() -> None:
    record = generate_replay(b"", "broken.rofl", np.random.default_rng(5)).to_dict()
    extra = game_context("누가 잘못했나요", record)
    assert extra["game_context"]["mentioned_champions"] == []
    assert [p["rank"] for p in extra["game_context"]["relevant_players"]] == [1, 2, 3]
    assert "언급되지 않아" in extra["responsibility_analysis"]


def test_video_situation_text() -> None:
    assert situation_description("gank", ["리신", "다리우스"]) == "갱킹 상황에서 리신, 다리우스의 판단을 분석합니다."
    assert situation_description("custom", ["리신"], "바론 앞에서 싸움") == "바론 앞에서 싸움"
    assert situation_description("custom", ["리신"]) == "커스텀 상황에서 리신의 판단을 분석합니다."
    assert situation_description("dance", ["리신"]) == "리신의 게임 플레이를 분석합니다."


def test_judge_video(estimator: FaultEstimator) -> None:
    service = make_service(estimator, lambda request: httpx.Response(500), api_key="")
    result = service.judge_video("gank", ["리신"], 300, 345)

    assert result["video_analysis"]["time_range"] == {"start": 300, "end": 345, "duration": 45}
    assert result["reward_analysis"]["optimal_action"] == "gank_response_kill"
    assert result["reward_analysis"]["actual_reward"] == 0

    with pytest.raises(ValueError):
        service.judge_video("gank", ["리신"], 100, 50)


def test_learning_passthrough(estimator: FaultEstimator) -> None:
    service = make_service(estimator, lambda request: httpx.Response(500), api_key="")
    assert service.learn("cs_focus_safe", "CS", 140) == pytest.approx(50.0)
    exported = service.export_learning_data()
    assert exported["action_rewards"]["cs_focus_safe"] == pytest.approx(50.0)
    service.import_learning_data(exported)
    assert service.export_learning_data() == exported
