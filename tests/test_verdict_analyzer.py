import pytest

from backend.app.services.game_knowledge import analyze_role_conflict, get_phase, get_role
from backend.app.services.verdict_analyzer import (
    GUILTY,
    JUSTIFIED,
    NOT_GUILTY,
    PARTIALLY_GUILTY,
    analyze_case,
    extract_behavior,
    extract_context,
)

CONFIDENCES = {0.9, 0.85, 0.8, 0.75}
VERDICTS = {GUILTY, PARTIALLY_GUILTY, JUSTIFIED, NOT_GUILTY}


def test_failed_gank_and_fleeing_laner() -> None:
    result = analyze_case("정글러가 갱킹을 실패했고 탑 라이너가 도망갔습니다")

    assert result.verdict in {NOT_GUILTY, PARTIALLY_GUILTY}
    assert result.confidence in CONFIDENCES
    assert "주요 책임은 정글러에게 있습니다" in result.reasoning
    assert any("탑 라이너" in f for f in result.factors)


def test_failed_gank_role_conflict_recommendation() -> None:
    result = analyze_case("정글러가 갱킹을 실패했고 탑 라이너가 도망갔습니다")
    assert any("갱킹 타이밍과 대응 문제" in r for r in result.recommendations)


def test_insult_is_guilty() -> None:
    result = analyze_case("야스오가 팀원에게 욕을 했습니다")
    assert result.verdict == GUILTY
    assert result.confidence == 0.9
    assert result.punishment is not None


def test_losing_team_moderate_negative_is_guilty() -> None:
    result = analyze_case("지고 있는데 미드가 콜을 무시했습니다")
    assert result.verdict == GUILTY
    assert result.confidence == 0.85


def test_positive_behavior_is_justified() -> None:
    result = analyze_case("서폿이 원딜을 끝까지 보호했습니다")
    assert result.verdict == JUSTIFIED
    assert result.punishment is None


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "아무 일도 없었습니다",
        "후반 한타에서 원딜이 도망",
        "CS를 뺏었고 정글러가 화내며 탓했습니다",
        "🙂 lorem ipsum 12345",
    ],
)
def test_any_input_gives_valid_verdict(text: str) -> None:
    result = analyze_case(text)
    assert result.verdict in VERDICTS
    assert result.confidence in CONFIDENCES
    assert result.reasoning
    assert result.recommendations


def test_strongest_behavior_wins() -> None:
    behavior = extract_behavior("실패하고 나서 비난했습니다")
    assert behavior.behavior == "비난"
    assert behavior.intent == "negative"
    assert behavior.severity == 3


def test_no_behavior_keyword() -> None:
    behavior = extract_behavior("평범한 게임")
    assert behavior.intent == "neutral"
    assert behavior.severity == 0


def test_context_detection() -> None:
    context = extract_context("후반에 우세했는데 원딜과 서폿이 싸웠다")
    assert context.phase == "late"
    assert context.team_state == "winning"
    assert [r.key for r in context.roles] == ["adc", "support"]


def test_champion_fault_split_follows_mention_order() -> None:
    result = analyze_case("야스오가 리신을 비난했습니다")
    analysis = result.character_analysis
    assert analysis.primary_fault == "야스오"
    assert analysis.secondary_fault == "리신"
    assert analysis.fault_comparison.startswith("야스오 70% / 리신 30%")


def test_fleeing_champion_takes_larger_share() -> None:
    result = analyze_case("이즈리얼과 카이사가 싸우다 카이사가 도망갔습니다")
    analysis = result.character_analysis
    assert analysis.primary_fault == "카이사"
    assert analysis.fault_comparison.startswith("카이사 60% / 이즈리얼 40%")


def test_single_champion_has_no_comparison() -> None:
    assert analyze_case("야스오가 실수했습니다").character_analysis is None


def test_to_dict_shape() -> None:
    data = analyze_case("야스오가 리신을 비난했습니다").to_dict()
    assert set(data) == {
        "verdict", "reasoning", "punishment", "confidence",
        "factors", "recommendations", "character_analysis",
    }
    assert isinstance(data["factors"], list)
    assert data["character_analysis"]["primary_fault"] == "야스오"


def test_game_knowledge_lookups() -> None:
    assert get_role("정글러").key == "jungle"
    assert get_role("support").name == "서폿"
    assert get_role("감독") is None
    assert get_phase("nonsense").key == "mid"
    assert analyze_role_conflict("adc", "support", "원딜이 명령조로 말함").responsibility == "원딜 70%, 서폿 30%"
    assert analyze_role_conflict("top", "감독", "").conflict == "역할 불명확"
