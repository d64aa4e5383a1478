"""
Pulls structured game information out of a free-text case description,
and folds uploaded replay data back into the case.
"""

from __future__ import annotations

import re
from typing import Any

from backend.app.services.reward_table import GameState

DEFAULT_GAME_TIME = 900
DEFAULT_LEVEL = 10
DEFAULT_TEAM_GOLD = 15000
DEFAULT_ENEMY_GOLD = 14000

# Phrase → action name in the reward table, first match wins
PLAYER_ACTION_PHRASES: tuple[tuple[str, str], ...] = (
    ("갱킹 호응", "gank_response_kill"),
    ("갱킹 무시", "gank_ignore_safe"),
    ("CS 집중", "cs_focus_safe"),
    ("오브젝트 참여", "objective_join_win"),
    ("팀파이트 참여", "teamfight_engage_win"),
)
UNKNOWN_ACTION = "unknown_action"

OBJECTIVE_KEYWORDS = (("드래곤", "dragon"), ("바론", "baron"), ("타워", "tower"))

_MINUTES_RE = re.compile(r"(\d+)분")
_LEVEL_RE = re.compile(r"레벨\s*(\d+)")
_TEAMFIGHT_RE = re.compile(r"팀파이트\s*(\d+)")
_GOLD_LEAD_RE = re.compile(r"(\d+)\s*골드\s*(?:앞|우세|이득)")
_GOLD_DEFICIT_RE = re.compile(r"(\d+)\s*골드\s*(?:뒤|열세|손해)")


def extract_game_state(text: str) -> GameState:
    minutes = _MINUTES_RE.search(text)
    level = _LEVEL_RE.search(text)
    fights = _TEAMFIGHT_RE.search(text)
    team_gold, enemy_gold = _extract_gold(text)

    vision = 0.5
    if "시야 좋음" in text:
        vision = 0.8
    elif "시야 나쁨" in text:
        vision = 0.2

    pressure = 0.5
    if "압박 심함" in text:
        pressure = 0.8
    elif "압박 없음" in text:
        pressure = 0.2

    return GameState(
        game_time=int(minutes.group(1)) * 60 if minutes else DEFAULT_GAME_TIME,
        player_level=int(level.group(1)) if level else DEFAULT_LEVEL,
        team_gold=team_gold,
        enemy_gold=enemy_gold,
        objectives=[name for keyword, name in OBJECTIVE_KEYWORDS if keyword in text],
        team_fights=int(fights.group(1)) if fights else 0,
        vision=vision,
        pressure=pressure,
    )


def _extract_gold(text: str) -> tuple[int, int]:
    lead = _GOLD_LEAD_RE.search(text)
    if lead:
        return DEFAULT_TEAM_GOLD, max(0, DEFAULT_TEAM_GOLD - int(lead.group(1)))
    deficit = _GOLD_DEFICIT_RE.search(text)
    if deficit:
        return DEFAULT_TEAM_GOLD, DEFAULT_TEAM_GOLD + int(deficit.group(1))
    return DEFAULT_TEAM_GOLD, DEFAULT_ENEMY_GOLD


def extract_player_action(text: str) -> str:
    for phrase, action in PLAYER_ACTION_PHRASES:
        if phrase in text:
            return action
    return UNKNOWN_ACTION


# ─── Replay enrichment ──────────────────────────────────────────────────────

def mentioned_champions(text: str, participants: list[dict]) -> list[str]:
    lowered = text.lower()
    seen = []
    for p in participants:
        champion = p.get("champion", "")
        if champion and champion.lower() in lowered and champion not in seen:
            seen.append(champion)
    return seen


def relevant_players(mentioned: list[str], participants: list[dict]) -> list[dict]:
    """Players named in the case, or the top three by rank when nobody is."""
    if not mentioned:
        return sorted(participants, key=lambda p: p.get("rank", 0))[:3]
    return [p for p in participants if p.get("champion") in mentioned]


def key_events(events: list[dict], participants: list[dict], mentioned: list[str], limit: int = 5) -> list[dict]:
    champions = {p.get("id"): p.get("champion", "?") for p in participants}
    mentioned_ids = {pid for pid, champ in champions.items() if champ in mentioned}

    result = []
    for event in events:
        kind = event.get("type")
        data = event.get("data", {})
        if kind == "CHAMPION_KILL":
            killer, victim = data.get("killer_id"), data.get("victim_id")
            if mentioned_ids and killer not in mentioned_ids and victim not in mentioned_ids:
                continue
            description = f"{champions.get(killer, '?')}이(가) {champions.get(victim, '?')}을(를) 처치"
        elif kind == "ELITE_MONSTER_KILL":
            description = f"{data.get('monster_type', 'MONSTER')} 처치"
        elif kind == "BUILDING_KILL":
            description = f"{data.get('building_type', 'BUILDING')} 파괴"
        else:
            continue
        result.append({"timestamp": event.get("timestamp", 0), "type": kind, "description": description})
        if len(result) == limit:
            break
    return result


def enhance_case_with_game_data(text: str, game_data: dict[str, Any]) -> str:
    participants = game_data.get("participants", [])
    analysis = game_data.get("analysis", {})
    objectives = analysis.get("objectives", {})
    mentioned = mentioned_champions(text, participants)

    sections = [
        text,
        "게임 통계:\n"
        f"- 총 킬: {analysis.get('total_kills', 0)}\n"
        f"- 총 데스: {analysis.get('total_deaths', 0)}\n"
        f"- 총 어시스트: {analysis.get('total_assists', 0)}\n"
        f"- 게임 시간: {int(game_data.get('duration', 0)) // 60}분\n"
        f"- 드래곤: {objectives.get('dragons', 0)}개\n"
        f"- 바론: {objectives.get('barons', 0)}개\n"
        f"- 타워: {objectives.get('towers', 0)}개\n"
        f"- 팀파이트: {analysis.get('teamfights', 0)}회",
    ]

    players = relevant_players(mentioned, participants)
    if players:
        lines = [
            f"- {p.get('champion')}: KDA {p.get('kills', 0)}/{p.get('deaths', 0)}/{p.get('assists', 0)}, "
            f"CS {p.get('cs', 0)}, 점수 {p.get('score', 0)}점 ({p.get('rank', 0)}위)"
            for p in players
        ]
        sections.append("관련 플레이어 성과:\n" + "\n".join(lines))

    events = key_events(game_data.get("events", []), participants, mentioned)
    if events:
        lines = [f"- {e['description']} ({e['timestamp'] // 1000}초)" for e in events]
        sections.append("주요 이벤트:\n" + "\n".join(lines))

    sections.append("위의 게임 데이터를 바탕으로 정확한 판결을 내려주세요.")
    return "\n\n".join(sections)


def _kda(player: dict) -> float:
    kills = player.get("kills", 0)
    if kills <= 0:
        return 0.0
    return (kills + player.get("assists", 0)) / max(player.get("deaths", 0), 1)


def responsibility_analysis(mentioned: list[str], participants: list[dict]) -> str:
    if not mentioned:
        return "소송 사유에서 특정 챔피언이 언급되지 않아 전체적인 게임 상황을 바탕으로 판단합니다."

    lines = []
    for player in participants:
        if player.get("champion") not in mentioned:
            continue
        kda = _kda(player)
        score = player.get("score", 0)
        champion = player.get("champion")
        if kda > 3 and score > 70:
            lines.append(f"{champion}은 우수한 성과(KDA {kda:.1f}, 점수 {score}점)를 보여주었으며, 책임도가 낮습니다.")
        elif kda > 1.5 and score > 50:
            lines.append(
                f"{champion}은 평균적인 성과(KDA {kda:.1f}, 점수 {score}점)를 보여주었으며, 부분적인 책임이 있을 수 있습니다."
            )
        else:
            lines.append(f"{champion}은 낮은 성과(KDA {kda:.1f}, 점수 {score}점)를 보여주었으며, 높은 책임도가 있습니다.")

    blue = [p.get("score", 0) for p in participants if p.get("team") == 100]
    red = [p.get("score", 0) for p in participants if p.get("team") == 200]
    if blue and red:
        blue_avg = sum(blue) / len(blue)
        red_avg = sum(red) / len(red)
        if abs(blue_avg - red_avg) > 20:
            leader = "블루팀" if blue_avg > red_avg else "레드팀"
            lines.append(f"전체적으로 {leader}이 우세한 성과를 보여주었습니다.")

    return "\n".join(lines)


def game_context(text: str, game_data: dict[str, Any]) -> dict[str, Any]:
    """Extra response fields when a replay accompanies the case."""
    participants = game_data.get("participants", [])
    analysis = game_data.get("analysis", {})
    mentioned = mentioned_champions(text, participants)

    return {
        "game_context": {
            "total_kills": analysis.get("total_kills", 0),
            "total_deaths": analysis.get("total_deaths", 0),
            "total_assists": analysis.get("total_assists", 0),
            "game_duration": game_data.get("duration", 0),
            "participants": len(participants),
            "mentioned_champions": mentioned,
            "relevant_players": [
                {k: p.get(k) for k in ("champion", "kills", "deaths", "assists", "cs", "score", "rank")}
                for p in relevant_players(mentioned, participants)
            ],
            "source": game_data.get("source", "header"),
        },
        "responsibility_analysis": responsibility_analysis(mentioned, participants),
    }
