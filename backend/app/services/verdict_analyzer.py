"""
Keyword-rule verdict analyzer.

Classifies a free-text case description and produces a verdict without any
model or network call. It is also what the judge falls back to when the LLM
path is unavailable, so it must return a valid verdict for any input,
including an empty string.

Steps:
  1. context        game phase, team state, roles, champions
  2. behavior       strongest behavior keyword (intent + severity)
  3. responsibility who is primarily at fault, and between two champions
  4. synthesis      verdict label, confidence, reasoning, recommendations

Every step is driven by the ordered rule tables below; the first matching
rule wins unless noted otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from backend.app.services.game_knowledge import (
    CHAMPIONS,
    ROLES,
    RoleProfile,
    analyze_role_conflict,
    get_phase,
    relevant_rules,
)

logger = logging.getLogger(__name__)

GUILTY = "유죄"
PARTIALLY_GUILTY = "부분 유죄"
JUSTIFIED = "정당한 행동"
NOT_GUILTY = "무죄"

UNDETERMINED = "상황에 따라 다름"


# ─── Rule tables ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class KeywordRule:
    keywords: tuple[str, ...]
    value: str


PHASE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("초반", "라인전", "갱"), "early"),
    KeywordRule(("후반", "한타", "넥서스"), "late"),
)

TEAM_STATE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("이기고", "이기는", "우세", "앞서", "유리"), "winning"),
    KeywordRule(("지고", "지는", "열세", "밀리", "뒤처", "불리"), "losing"),
)

TEAM_STATE_LABELS = {"winning": "우세", "losing": "열세", "even": "비등"}


@dataclass(frozen=True)
class BehaviorRule:
    keyword: str
    behavior: str
    intent: str  # "negative" | "neutral" | "positive"
    severity: int  # negative for positive behavior


BEHAVIOR_RULES: tuple[BehaviorRule, ...] = (
    BehaviorRule("비난", "비난", "negative", 3),
    BehaviorRule("욕", "욕설", "negative", 3),
    BehaviorRule("트롤", "트롤링", "negative", 3),
    BehaviorRule("잠수", "잠수", "negative", 3),
    BehaviorRule("고의", "고의적 방해", "negative", 3),
    BehaviorRule("화내", "화내기", "negative", 2),
    BehaviorRule("탓", "책임 전가", "negative", 2),
    BehaviorRule("무시", "콜 무시", "negative", 2),
    BehaviorRule("뺏", "CS 뺏기", "negative", 2),
    BehaviorRule("도망", "도망", "neutral", 2),
    BehaviorRule("실패", "실패", "neutral", 1),
    BehaviorRule("늦", "늦은 합류", "neutral", 1),
    BehaviorRule("협력", "협력", "positive", -2),
    BehaviorRule("칭찬", "칭찬", "positive", -2),
    BehaviorRule("양보", "양보", "positive", -1),
    BehaviorRule("도움", "도움", "positive", -1),
    BehaviorRule("도와", "도움", "positive", -1),
    BehaviorRule("보호", "보호", "positive", -1),
)


@dataclass(frozen=True)
class ResponsibilityRule:
    keywords: tuple[str, ...]  # all required
    roles: tuple[str, ...]  # role keys, all required
    primary: str
    secondary: str | None
    level: float


LANER = "라이너"

RESPONSIBILITY_RULES: tuple[ResponsibilityRule, ...] = (
    ResponsibilityRule(("CS", "뺏"), ("jungle",), "정글러", LANER, 0.75),
    ResponsibilityRule(("갱", "실패"), ("jungle",), "정글러", LANER, 0.7),
    ResponsibilityRule(("명령",), ("adc", "support"), "원딜", "서폿", 0.7),
    ResponsibilityRule(("불만",), ("adc", "support"), "원딜", "서폿", 0.7),
    ResponsibilityRule(("욕",), (), "욕설한 플레이어", None, 0.9),
    ResponsibilityRule(("트롤",), (), "트롤링한 플레이어", None, 0.9),
    ResponsibilityRule(("비난",), (), "비난한 플레이어", None, 0.8),
    ResponsibilityRule(("한타", "도망"), (), "한타에서 이탈한 플레이어", None, 0.8),
    ResponsibilityRule(("오브젝트", "무시"), (), "콜을 무시한 플레이어", None, 0.75),
)


@dataclass(frozen=True)
class CharacterRule:
    keywords: tuple[str, ...]  # any
    first_share: float  # share of fault for the first-named champion
    justification: str


CHARACTER_RULES: tuple[CharacterRule, ...] = (
    CharacterRule(("비난", "욕"), 0.7, "게임 중 비난과 욕설은 팀 분위기를 해치므로 더 큰 책임이 있습니다"),
    CharacterRule(("뺏",), 0.65, "팀원의 자원을 가져간 쪽에 더 큰 책임이 있습니다"),
    CharacterRule(("갱",), 0.6, "갱킹을 시도한 쪽이 타이밍과 라인 상태를 확인할 책임이 있습니다"),
    CharacterRule(("도망",), 0.4, "교전에서 이탈한 쪽에 더 큰 책임이 있습니다"),
)

DEFAULT_CHARACTER_JUSTIFICATION = "양쪽 모두 비슷한 책임이 있습니다"


@dataclass(frozen=True)
class VerdictRule:
    intent: str | None  # None matches any intent
    min_severity: int  # compared against |severity|
    phases: tuple[str, ...] | None
    team_states: tuple[str, ...] | None
    verdict: str
    confidence: float
    reasoning: str


VERDICT_RULES: tuple[VerdictRule, ...] = (
    VerdictRule("negative", 3, None, None, GUILTY, 0.9,
                "{phase} 단계의 '{behavior}' 행동은 명백한 비매너로 팀 전체에 피해를 줍니다."),
    VerdictRule("negative", 2, None, ("losing",), GUILTY, 0.85,
                "불리한 {phase} 상황에서 '{behavior}' 행동이 팀의 역전 가능성을 낮췄습니다."),
    VerdictRule("negative", 1, None, None, PARTIALLY_GUILTY, 0.8,
                "{phase} 단계의 '{behavior}' 행동은 팀에 부담을 주었지만 상황적 요인도 있습니다."),
    VerdictRule("positive", 0, None, None, JUSTIFIED, 0.85,
                "{phase} 단계에서 '{behavior}'은(는) 팀을 위한 올바른 판단입니다."),
    VerdictRule("neutral", 2, ("early",), None, NOT_GUILTY, 0.75,
                "초반 라인전에서 '{behavior}'은(는) 생존을 위한 합리적인 선택일 수 있습니다."),
    VerdictRule("neutral", 2, None, None, PARTIALLY_GUILTY, 0.8,
                "{phase} 단계에서 '{behavior}'은(는) 팀 합류를 늦춰 불리한 상황을 만들었습니다."),
    VerdictRule(None, 0, None, None, NOT_GUILTY, 0.75,
                "{phase} 단계의 상황만으로는 명백한 잘못을 찾기 어렵습니다."),
)

PUNISHMENTS = {
    GUILTY: "게임 매너 및 판단력 개선 필요",
    PARTIALLY_GUILTY: "상호 이해 및 소통 개선 권장",
}


# ─── Results ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CaseContext:
    phase: str
    team_state: str
    roles: tuple[RoleProfile, ...]
    champions: tuple[str, ...]


@dataclass(frozen=True)
class Behavior:
    behavior: str
    intent: str
    severity: int


@dataclass(frozen=True)
class Responsibility:
    primary: str
    secondary: str | None
    level: float


@dataclass(frozen=True)
class CharacterAnalysis:
    primary_fault: str
    secondary_fault: str | None
    fault_comparison: str


@dataclass(frozen=True)
class VerdictAnalysis:
    verdict: str
    reasoning: str
    confidence: float
    punishment: str | None = None
    factors: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    character_analysis: CharacterAnalysis | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict,
            "reasoning": self.reasoning,
            "punishment": self.punishment,
            "confidence": self.confidence,
            "factors": list(self.factors),
            "recommendations": list(self.recommendations),
            "character_analysis": (
                {
                    "primary_fault": self.character_analysis.primary_fault,
                    "secondary_fault": self.character_analysis.secondary_fault,
                    "fault_comparison": self.character_analysis.fault_comparison,
                }
                if self.character_analysis
                else None
            ),
        }


# ─── Extraction ──────────────────────────────────────────────────────────────

def _first_match(text: str, rules: tuple[KeywordRule, ...], default: str) -> str:
    for rule in rules:
        if any(k in text for k in rule.keywords):
            return rule.value
    return default


def extract_context(text: str) -> CaseContext:
    text = text.upper()
    roles = tuple(r for r in ROLES if any(k in text for k in r.keywords))

    positions = {}
    for name in CHAMPIONS:
        idx = text.find(name)
        if idx >= 0:
            positions[name] = idx
    champions = tuple(sorted(positions, key=positions.get))

    return CaseContext(
        phase=_first_match(text, PHASE_RULES, "mid"),
        team_state=_first_match(text, TEAM_STATE_RULES, "even"),
        roles=roles,
        champions=champions,
    )


def extract_behavior(text: str) -> Behavior:
    text = text.upper()
    best = None
    for rule in BEHAVIOR_RULES:
        if rule.keyword in text and (best is None or abs(rule.severity) > abs(best.severity)):
            best = rule
    if best is None:
        return Behavior(behavior="특이 행동 없음", intent="neutral", severity=0)
    return Behavior(behavior=best.behavior, intent=best.intent, severity=best.severity)


def extract_responsibility(text: str, context: CaseContext) -> Responsibility:
    text = text.upper()
    role_keys = {r.key for r in context.roles}
    for rule in RESPONSIBILITY_RULES:
        if all(k in text for k in rule.keywords) and all(r in role_keys for r in rule.roles):
            secondary = rule.secondary
            if secondary == LANER:
                laners = [r.name for r in context.roles if r.key != "jungle"]
                if laners:
                    secondary = laners[0]
            return Responsibility(rule.primary, secondary, rule.level)
    return Responsibility(UNDETERMINED, None, 0.5)


def compare_characters(text: str, champions: tuple[str, ...]) -> CharacterAnalysis | None:
    """Split fault between the first two champions named in the text."""
    if len(champions) < 2:
        return None
    first, second = champions[0], champions[1]
    text = text.upper()

    share, justification = 0.5, DEFAULT_CHARACTER_JUSTIFICATION
    for rule in CHARACTER_RULES:
        if any(k in text for k in rule.keywords):
            share, justification = rule.first_share, rule.justification
            break

    if share >= 0.5:
        primary, secondary, primary_share = first, second, share
    else:
        primary, secondary, primary_share = second, first, 1 - share

    comparison = (
        f"{primary} {round(primary_share * 100)}% / {secondary} {round((1 - primary_share) * 100)}% - "
        f"{justification}"
    )
    return CharacterAnalysis(primary_fault=primary, secondary_fault=secondary, fault_comparison=comparison)


# ─── Synthesis ───────────────────────────────────────────────────────────────

def _select_verdict(behavior: Behavior, context: CaseContext) -> VerdictRule:
    for rule in VERDICT_RULES:
        if rule.intent is not None and rule.intent != behavior.intent:
            continue
        if abs(behavior.severity) < rule.min_severity:
            continue
        if rule.phases is not None and context.phase not in rule.phases:
            continue
        if rule.team_states is not None and context.team_state not in rule.team_states:
            continue
        return rule
    return VERDICT_RULES[-1]


def _recommendations(behavior: Behavior, context: CaseContext, text: str) -> list[str]:
    phase = get_phase(context.phase)
    recs = []

    if behavior.intent == "negative":
        recs.append(relevant_rules("소통")[0].description)
    elif behavior.intent == "positive":
        recs.append("현재의 팀 중심 플레이를 유지하세요.")
    else:
        recs.append("행동하기 전에 핑과 채팅으로 팀원과 의도를 공유하세요.")

    recs.append(f"{phase.label} 우선순위: {', '.join(phase.priorities)}")

    for role in context.roles[:2]:
        recs.append(f"{role.name}: {role.common_issues[0]}에 주의하세요.")

    if len(context.roles) >= 2:
        conflict = analyze_role_conflict(context.roles[0].key, context.roles[1].key, text)
        recs.append(f"{conflict.conflict}: {conflict.resolution}")
        recs.append(f"{phase.label}에 자주 생기는 갈등({phase.common_conflicts[0]})은 미리 역할을 나눠 예방하세요.")

    return recs


def analyze_case(case_text: str) -> VerdictAnalysis:
    """Produce a verdict from a case description. Never raises."""
    text = case_text or ""
    context = extract_context(text)
    behavior = extract_behavior(text)
    responsibility = extract_responsibility(text, context)
    characters = compare_characters(text, context.champions)

    phase = get_phase(context.phase)
    rule = _select_verdict(behavior, context)
    verdict = rule.verdict
    if responsibility.level > 0.7 and verdict == NOT_GUILTY:
        verdict = PARTIALLY_GUILTY

    reasoning = rule.reasoning.format(phase=phase.label, behavior=behavior.behavior)
    if responsibility.primary != UNDETERMINED:
        reasoning += f" 주요 책임은 {responsibility.primary}에게 있습니다 ({responsibility.level:.0%})."

    factors = [
        f"게임 단계: {phase.label} ({phase.duration})",
        f"팀 상황: {TEAM_STATE_LABELS[context.team_state]}",
        f"감지된 행동: {behavior.behavior} (심각도 {behavior.severity})",
        f"주요 책임: {responsibility.primary}",
    ]
    if context.roles:
        factors.append(f"관련 포지션: {', '.join(r.name for r in context.roles)}")
    if context.champions:
        factors.append(f"언급된 챔피언: {', '.join(context.champions)}")

    logger.debug(
        f"Rule verdict {verdict} (phase={context.phase}, intent={behavior.intent}, "
        f"severity={behavior.severity}, responsibility={responsibility.level})"
    )

    return VerdictAnalysis(
        verdict=verdict,
        reasoning=reasoning,
        confidence=rule.confidence,
        punishment=PUNISHMENTS.get(verdict),
        factors=tuple(factors),
        recommendations=tuple(_recommendations(behavior, context, text)),
        character_analysis=characters,
    )
