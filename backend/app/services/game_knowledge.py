"""Static League of Legends knowledge: roles, game phases, meta rules, champions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RoleProfile:
    key: str
    name: str
    keywords: tuple[str, ...]
    responsibilities: tuple[str, ...]
    common_issues: tuple[str, ...]


@dataclass(frozen=True)
class PhaseProfile:
    key: str
    label: str
    duration: str
    objectives: tuple[str, ...]
    priorities: tuple[str, ...]
    common_conflicts: tuple[str, ...]


@dataclass(frozen=True)
class MetaRule:
    category: str
    rule: str
    importance: int
    description: str


@dataclass(frozen=True)
class RoleConflict:
    conflict: str
    resolution: str
    responsibility: str


ROLES: tuple[RoleProfile, ...] = (
    RoleProfile(
        key="jungle",
        name="정글러",
        keywords=("정글",),
        responsibilities=("갱킹으로 라인 우위 확보", "오브젝티브(드래곤, 바론) 컨트롤", "팀 전체 맵 압박", "라인 밸런싱"),
        common_issues=("갱킹 타이밍 부족", "오브젝티브 놓침", "라인 밸런싱 실패", "팀원과의 소통 부족"),
    ),
    RoleProfile(
        key="top",
        name="탑 라이너",
        keywords=("탑",),
        responsibilities=("라인 우위 확보", "스플릿 푸시", "팀파이트 참여", "탱킹 역할"),
        common_issues=("갱킹 대응 실패", "스플릿 타이밍 부족", "팀파이트 참여 지연", "라인 밸런싱 실패"),
    ),
    RoleProfile(
        key="mid",
        name="미드 라이너",
        keywords=("미드",),
        responsibilities=("라인 우위 확보", "로밍으로 사이드 라인 지원", "오브젝티브 참여", "AP/AD 데미지 딜링"),
        common_issues=("로밍 타이밍 부족", "CS 관리 실패", "오브젝티브 참여 지연", "라인 밸런싱 실패"),
    ),
    RoleProfile(
        key="adc",
        name="원딜",
        keywords=("원딜", "바텀"),
        responsibilities=("CS 수급", "안전한 포지셔닝", "팀파이트 데미지 딜링", "오브젝티브 데미지"),
        common_issues=("포지셔닝 실패", "CS 수급 부족", "팀파이트 참여 지연", "오브젝티브 참여 부족"),
    ),
    RoleProfile(
        key="support",
        name="서폿",
        keywords=("서폿", "서포터"),
        responsibilities=("원딜 보호", "시야 확보", "팀파이트 이니시", "오브젝티브 참여"),
        common_issues=("시야 관리 실패", "원딜 보호 부족", "팀파이트 이니시 실패", "로밍 타이밍 부족"),
    ),
)

PHASES: dict[str, PhaseProfile] = {
    "early": PhaseProfile(
        key="early",
        label="초반",
        duration="1-15분",
        objectives=("라인 우위", "갱킹 성공", "CS 수급"),
        priorities=("라인 밸런싱", "갱킹 대응", "CS 관리"),
        common_conflicts=("정글러 갱킹 vs 라이너 도망", "CS 분배 문제", "시야 확보 vs 로밍"),
    ),
    "mid": PhaseProfile(
        key="mid",
        label="중반",
        duration="15-25분",
        objectives=("오브젝티브 컨트롤", "타워 밀기", "팀파이트"),
        priorities=("드래곤/바론", "타워 밀기", "팀파이트"),
        common_conflicts=("오브젝티브 vs CS 수급", "스플릿 vs 그룹", "타워 밀기 vs 오브젝티브"),
    ),
    "late": PhaseProfile(
        key="late",
        label="후반",
        duration="25분+",
        objectives=("한타 승리", "넥서스 밀기", "바론 컨트롤"),
        priorities=("한타", "오브젝티브", "넥서스"),
        common_conflicts=("한타 vs 스플릿", "바론 vs 넥서스", "팀파이트 포지셔닝"),
    ),
}

META_RULES: tuple[MetaRule, ...] = (
    MetaRule("팀워크", "팀 전체의 이익이 개인의 이익보다 우선", 5,
             "개인적인 플레이보다 팀 전체의 승리를 위한 플레이가 우선되어야 합니다."),
    MetaRule("소통", "건설적이고 존중하는 소통", 4,
             "비난보다는 건설적인 피드백과 제안을 해야 합니다."),
    MetaRule("책임", "각자의 역할에 대한 책임감", 4,
             "자신의 역할을 제대로 수행하고 실수에 대해 책임을 져야 합니다."),
    MetaRule("객관성", "상황을 객관적으로 판단", 3,
             "감정적 판단보다는 게임 상황을 객관적으로 분석해야 합니다."),
    MetaRule("개선", "지속적인 개선 의지", 3,
             "실수를 통해 배우고 개선하려는 의지가 있어야 합니다."),
)

CHAMPIONS: tuple[str, ...] = (
    "이즈리얼", "세라핀", "리 신", "리신", "다리우스", "트런들", "야스오", "자르반", "카이사",
    "루시안", "베인", "케이틀린", "애쉬", "징크스", "트리스타나", "드레이븐", "미스 포츈",
    "카직스", "렉사이", "엘리스", "누누", "람머스", "아무무", "피들스틱", "갱플랭크",
    "가렌", "나서스", "말파이트", "세주아니", "쉔", "케넨", "퀸", "쓰레쉬", "레오나",
    "아리", "제드", "르블랑", "신드라", "럭스", "블리츠크랭크", "나미", "그레이브즈",
)


def get_role(role: str) -> RoleProfile | None:
    """Look a role up by key or Korean name."""
    for profile in ROLES:
        if role == profile.key or role in profile.name or profile.name in role:
            return profile
    return None


def get_phase(phase: str) -> PhaseProfile:
    return PHASES.get(phase, PHASES["mid"])


def relevant_rules(category: str | None = None) -> list[MetaRule]:
    if category:
        return [rule for rule in META_RULES if rule.category == category]
    return list(META_RULES)


LANER_KEYS = ("top", "mid", "adc")


def analyze_role_conflict(role1: str, role2: str, situation: str) -> RoleConflict:
    """Common conflict patterns between two roles."""
    first = get_role(role1)
    second = get_role(role2)
    if first is None or second is None:
        return RoleConflict("역할 불명확", "역할과 책임을 명확히 하세요", "팀 전체")

    if first.key == "jungle" and second.key in LANER_KEYS:
        if "갱" in situation and "실패" in situation:
            return RoleConflict(
                "갱킹 타이밍과 대응 문제",
                "정글러는 갱킹 타이밍을, 라이너는 대응을 개선해야 합니다",
                "정글러 60%, 라이너 40%",
            )

    if first.key == "adc" and second.key == "support":
        if "명령" in situation or "불만" in situation:
            return RoleConflict(
                "소통 방식 문제",
                "원딜은 건설적인 요청을, 서폿은 적극적인 협력을 해야 합니다",
                "원딜 70%, 서폿 30%",
            )

    return RoleConflict("일반적인 팀워크 문제", "상호 이해와 소통을 통해 해결해야 합니다", "양쪽 모두")
