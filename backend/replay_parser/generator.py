"""
Pseudo-replay generator.

Builds a full ReplayRecord for an uploaded .rofl file from two inputs only:
the byte length and the 32-byte header. Every stat, event and highlight is
drawn from a numpy Generator within bounds scaled by file size.

When the header can't be read, the record is built from the file size alone
and marked `source="fallback"` with the reason code.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from .parser import (
    GameEvent,
    Participant,
    ReplayRecord,
    RoflHeader,
    RoflHeaderError,
    RoflParser,
)

logger = logging.getLogger(__name__)

MIN_DURATION = 600  # 10 min
MAX_DURATION = 2400  # 40 min
METADATA_DURATION_BOOST = 1.2
MIN_INTENSITY = 0.5
MAX_INTENSITY = 3.0
BLUE_TEAM_BONUS = 1.1
EVENT_INTERVAL = 30  # seconds
MAX_EVENTS = 400
MAX_HIGHLIGHTS = 8
TEAMFIGHT_INTERVAL = 180

BLUE_TEAM = 100
RED_TEAM = 200

CHAMPION_POOL = (
    "이즈리얼", "세라핀", "리신", "다리우스", "트런들", "야스오", "자르반", "카이사",
    "루시안", "베인", "케이틀린", "애쉬", "징크스", "트리스타나", "드레이븐",
    "미스 포츈", "카직스", "렉사이", "엘리스", "누누", "람머스", "아무무",
    "피들스틱", "갱플랭크", "가렌", "나서스", "말파이트", "세주아니", "쉔", "케넨",
)

EVENT_TYPES = (
    "CHAMPION_KILL",
    "ELITE_MONSTER_KILL",
    "BUILDING_KILL",
    "WARD_PLACED",
    "WARD_KILL",
    "ITEM_PURCHASED",
    "SKILL_LEVEL_UP",
)
FALLBACK_EVENT_TYPES = EVENT_TYPES[:5]
HIGHLIGHT_TYPES = {"CHAMPION_KILL", "ELITE_MONSTER_KILL", "BUILDING_KILL"}

MONSTER_TYPES = ("DRAGON", "BARON_NASHOR", "RIFT_HERALD")
BUILDING_TYPES = ("TOWER_BUILDING", "INHIBITOR_BUILDING")
LANES = ("TOP_LANE", "MID_LANE", "BOT_LANE")
WARD_TYPES = ("YELLOW_TRINKET", "CONTROL_WARD", "SIGHT_WARD", "BLUE_TRINKET")
ITEM_IDS = (1001, 1036, 1038, 1055, 1056, 2003, 3006, 3031, 3047, 3071, 3089, 3153)

MONSTER_LABELS = {"DRAGON": "드래곤", "BARON_NASHOR": "바론", "RIFT_HERALD": "전령"}
BUILDING_LABELS = {"TOWER_BUILDING": "타워", "INHIBITOR_BUILDING": "억제기"}

TEAM_EVALUATIONS = {
    "winner": (
        "초반 라인전에서 우위를 점했으며, 오브젝트 통제와 팀파이트에서 안정적인 플레이를 보여주었습니다.",
        ["초반 라인전 우위", "오브젝트 통제력", "팀워크"],
        ["후반 집중력 부족", "개별 플레이어 실수"],
    ),
    "loser": (
        "초반에 어려움을 겪었지만, 후반에 반격을 시도했으나 오브젝트 통제에서 밀렸습니다.",
        ["후반 집중력", "개별 플레이어 기량"],
        ["초반 라인전", "팀워크 부족", "오브젝트 통제력"],
    ),
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_duration(file_size: int, header: RoflHeader | None = None) -> int:
    """Game length in seconds, from file size and header section layout."""
    duration = _clamp(file_size / 1000, MIN_DURATION, MAX_DURATION)
    if header is not None and header.has_metadata and header.payload_length(file_size) > 0:
        duration = _clamp(duration * METADATA_DURATION_BOOST, MIN_DURATION, MAX_DURATION)
    return int(duration)


def estimate_intensity(file_size: int) -> float:
    return _clamp(file_size / 1_000_000, MIN_INTENSITY, MAX_INTENSITY)


def participant_score(kills: int, deaths: int, assists: int, cs: int, level: int) -> int:
    """Composite 1-100 score: KDA 50%, CS 30%, level 20%."""
    kda = (kills + assists) / max(deaths, 1) if kills > 0 else 0.0
    cs_score = min(cs / 300, 1) * 100
    level_score = (level / 18) * 100
    total = _round_half_up((kda * 50 + cs_score * 30 + level_score * 20) / 100)
    return int(_clamp(total, 1, 100))


def player_evaluation(kills: int, deaths: int, assists: int, cs: int) -> str:
    kda = (kills + assists) / max(deaths, 1) if kills > 0 else 0.0
    if kda > 5 and cs > 250:
        return "완벽한 캐리 플레이를 보여주었으며, 팀의 승리에 크게 기여했습니다."
    if kda > 3 and cs > 200:
        return "안정적인 플레이를 보여주었으며, 팀에 긍정적인 영향을 주었습니다."
    if kda > 1.5 and cs > 150:
        return "평균적인 성과를 보여주었으며, 개선의 여지가 있습니다."
    if deaths > kills * 2:
        return "과도한 데스로 인해 팀에 부담을 주었으며, 플레이 스타일 개선이 필요합니다."
    return "기본적인 역할은 수행했으나, 더 나은 성과를 위해 노력이 필요합니다."


def assign_ranks(participants: list[Participant]):
    """Rank 1..10 by score descending, lower id first on ties."""
    ordered = sorted(participants, key=lambda p: (-p.score, p.id))
    for rank, player in enumerate(ordered, start=1):
        player.rank = rank


class ReplayGenerator:
    def __init__(self, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.parser = RoflParser()

    def generate(self, data: bytes, file_name: str) -> ReplayRecord:
        """Never raises for any byte buffer."""
        try:
            header = self.parser.parse_header(data)
        except RoflHeaderError as e:
            logger.warning(f"Could not read .rofl header of {file_name} ({e.reason}): {e}; using size-only fallback")
            return self.generate_fallback(len(data), file_name, e.reason)

        file_size = len(data)
        duration = estimate_duration(file_size, header)
        intensity = estimate_intensity(file_size)

        participants = self._participants(intensity)
        count = min(MAX_EVENTS, int(duration / EVENT_INTERVAL * intensity))
        timestamps = np.sort(self.rng.integers(0, duration * 1000, size=count))
        events = [
            self._event(int(ts), str(self.rng.choice(EVENT_TYPES)), participants)
            for ts in timestamps
        ]

        logger.info(
            f"Generated replay for {file_name}: {duration}s, intensity {intensity:.2f}, {len(events)} events"
        )
        return ReplayRecord(
            file_name=file_name,
            file_size=file_size,
            duration=duration,
            game_version=f"{header.magic} v{header.version}",
            participants=participants,
            events=events,
            analysis=self._analysis(duration, participants, events),
            source="header",
            header=header,
        )

    def generate_fallback(self, file_size: int, file_name: str, reason: str) -> ReplayRecord:
        """Size-only record: one event every 30 seconds over five kinds."""
        duration = estimate_duration(file_size)
        participants = self._participants(1.0)
        events = [
            self._event(i * EVENT_INTERVAL * 1000, str(self.rng.choice(FALLBACK_EVENT_TYPES)), participants)
            for i in range(math.ceil(duration / EVENT_INTERVAL))
        ]
        return ReplayRecord(
            file_name=file_name,
            file_size=file_size,
            duration=duration,
            participants=participants,
            events=events,
            analysis=self._analysis(duration, participants, events),
            source="fallback",
            fallback_reason=reason,
        )

    def _participants(self, intensity: float) -> list[Participant]:
        picks = self.rng.choice(len(CHAMPION_POOL), size=10, replace=False)
        participants = []
        for i, pick in enumerate(picks):
            team = BLUE_TEAM if i < 5 else RED_TEAM
            bonus = BLUE_TEAM_BONUS if team == BLUE_TEAM else 1.0
            kills = int(self.rng.integers(0, 10) * intensity * bonus)
            deaths = int(self.rng.integers(0, 8) * intensity)
            assists = int(self.rng.integers(0, 15) * intensity * bonus)
            cs = int(self.rng.integers(100, 300) * (0.8 + 0.2 * intensity))
            level = min(18, int(self.rng.integers(12, 17) + intensity))
            participants.append(
                Participant(
                    id=i + 1,
                    champion=CHAMPION_POOL[int(pick)],
                    team=team,
                    kills=kills,
                    deaths=deaths,
                    assists=assists,
                    cs=cs,
                    level=level,
                    evaluation=player_evaluation(kills, deaths, assists, cs),
                    score=participant_score(kills, deaths, assists, cs, level),
                )
            )
        assign_ranks(participants)
        return participants

    def _event(self, timestamp: int, kind: str, participants: list[Participant]) -> GameEvent:
        rng = self.rng
        actor = participants[int(rng.integers(0, len(participants)))]

        if kind == "CHAMPION_KILL":
            enemies = [p.id for p in participants if p.team != actor.team]
            allies = [p.id for p in participants if p.team == actor.team and p.id != actor.id]
            n_assists = int(rng.integers(0, 4))
            data = {
                "killer_id": actor.id,
                "victim_id": int(rng.choice(enemies)),
                "assisting_ids": sorted(int(a) for a in rng.choice(allies, size=n_assists, replace=False)),
                "position": {"x": int(rng.integers(0, 15000)), "y": int(rng.integers(0, 15000))},
            }
        elif kind == "ELITE_MONSTER_KILL":
            data = {"monster_type": str(rng.choice(MONSTER_TYPES)), "killer_team": actor.team}
        elif kind == "BUILDING_KILL":
            data = {
                "building_type": str(rng.choice(BUILDING_TYPES)),
                "lane": str(rng.choice(LANES)),
                "team_id": RED_TEAM if actor.team == BLUE_TEAM else BLUE_TEAM,
            }
        elif kind in ("WARD_PLACED", "WARD_KILL"):
            data = {"ward_type": str(rng.choice(WARD_TYPES))}
        elif kind == "ITEM_PURCHASED":
            data = {"item_id": int(rng.choice(ITEM_IDS))}
        else:
            data = {"skill_slot": int(rng.integers(1, 5))}

        return GameEvent(timestamp=timestamp, type=kind, participant_id=actor.id, data=data)

    def _analysis(self, duration: int, participants: list[Participant], events: list[GameEvent]) -> dict:
        total_kills = sum(p.kills for p in participants)
        total_deaths = sum(p.deaths for p in participants)
        total_assists = sum(p.assists for p in participants)

        objectives = {"dragons": 0, "barons": 0, "heralds": 0, "towers": 0, "inhibitors": 0}
        for event in events:
            if event.type == "ELITE_MONSTER_KILL":
                key = {"DRAGON": "dragons", "BARON_NASHOR": "barons", "RIFT_HERALD": "heralds"}[event.data["monster_type"]]
                objectives[key] += 1
            elif event.type == "BUILDING_KILL":
                key = "towers" if event.data["building_type"] == "TOWER_BUILDING" else "inhibitors"
                objectives[key] += 1
        total_objectives = sum(objectives.values())
        teamfights = duration // TEAMFIGHT_INTERVAL

        blue = [p for p in participants if p.team == BLUE_TEAM]
        red = [p for p in participants if p.team == RED_TEAM]
        winner = BLUE_TEAM if sum(p.kills for p in blue) >= sum(p.kills for p in red) else RED_TEAM

        def team_block(team_id: int, players: list[Participant], share: float) -> dict:
            evaluation, strengths, weaknesses = TEAM_EVALUATIONS["winner" if team_id == winner else "loser"]
            return {
                "total_kills": sum(p.kills for p in players),
                "total_deaths": sum(p.deaths for p in players),
                "total_assists": sum(p.assists for p in players),
                "objectives": int(total_objectives * share),
                "teamfight_wins": int(teamfights * share),
                "evaluation": evaluation,
                "strengths": strengths,
                "weaknesses": weaknesses,
            }

        winner_share, loser_share = 0.6, 0.4
        return {
            "total_kills": total_kills,
            "total_deaths": total_deaths,
            "total_assists": total_assists,
            "objectives": objectives,
            "teamfights": teamfights,
            "highlights": highlights(events, participants),
            "game_summary": {
                "duration": duration,
                "winner": winner,
                "game_type": "CLASSIC",
                "map_name": "소환사의 협곡",
            },
            "team_analysis": {
                "blue_team": team_block(BLUE_TEAM, blue, winner_share if winner == BLUE_TEAM else loser_share),
                "red_team": team_block(RED_TEAM, red, winner_share if winner == RED_TEAM else loser_share),
            },
            "meta_analysis": meta_analysis(duration, objectives),
        }


def highlights(events: list[GameEvent], participants: list[Participant]) -> list[dict]:
    """First kill/objective/building events as display entries."""
    champions = {p.id: p.champion for p in participants}
    result = []
    for event in events:
        if event.type not in HIGHLIGHT_TYPES:
            continue
        seconds = event.timestamp // 1000
        clock = f"{seconds // 60}:{seconds % 60:02d}"
        actor = champions.get(event.participant_id, "?")

        if event.type == "CHAMPION_KILL":
            victim = champions.get(event.data["victim_id"], "?")
            description = f"{clock} {actor}이(가) {victim}을(를) 처치"
            involved = [event.participant_id, event.data["victim_id"], *event.data["assisting_ids"]]
        elif event.type == "ELITE_MONSTER_KILL":
            description = f"{clock} {actor}의 팀이 {MONSTER_LABELS[event.data['monster_type']]} 처치"
            involved = [event.participant_id]
        else:
            description = f"{clock} {actor}의 팀이 {BUILDING_LABELS[event.data['building_type']]} 파괴"
            involved = [event.participant_id]

        result.append({"time": seconds, "type": event.type, "description": description, "participants": involved})
        if len(result) == MAX_HIGHLIGHTS:
            break
    return result


def meta_analysis(duration: int, objectives: dict[str, int]) -> dict:
    has_dragon = objectives.get("dragons", 0) > 0
    has_baron = objectives.get("barons", 0) > 0

    key_moments = []
    turning_points = []
    if has_dragon:
        key_moments.append("드래곤 오브젝트 전투")
        turning_points.append("첫 드래곤 전투 결과가 초반 주도권을 결정")
    if has_baron:
        key_moments.append("바론 오브젝트 전투")
        turning_points.append("바론 획득 이후 운영 방향 전환")
    key_moments.append("후반 결정적 팀파이트" if duration > 1800 else "중반 팀파이트 교전")
    turning_points.append("결정적 팀파이트 승리 팀이 넥서스 돌파")

    recommendations = ["오브젝트 타이밍 최적화", "팀워크 및 소통 개선 권장"]
    if not has_dragon:
        recommendations.insert(0, "드래곤 컨트롤 강화 필요")
    if duration > 1800:
        recommendations.insert(0, "후반 집중력 유지 필요")

    return {
        "game_phase": "장기전 - 후반 오브젝트 중심" if duration > 1800 else "중단기전 - 팀파이트 중심",
        "key_moments": key_moments,
        "turning_points": turning_points,
        "recommendations": recommendations,
    }


def generate_replay(data: bytes, file_name: str, rng: np.random.Generator | None = None) -> ReplayRecord:
    return ReplayGenerator(rng).generate(data, file_name)
