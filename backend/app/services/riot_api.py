"""
Riot Games API client for match-history lookup.

account-v1 and match-v5 live on the regional routing host (americas, asia,
europe, sea), derived from the configured platform.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

PLATFORM_TO_REGION = {
    "na1": "americas",
    "br1": "americas",
    "la1": "americas",
    "la2": "americas",
    "euw1": "europe",
    "eun1": "europe",
    "tr1": "europe",
    "ru": "europe",
    "kr": "asia",
    "jp1": "asia",
    "oc1": "sea",
    "ph2": "sea",
    "sg2": "sea",
    "th2": "sea",
    "tw2": "sea",
    "vn2": "sea",
}

MAX_HIGHLIGHTS = 5


class RiotAPIError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class RiotAPIClient:
    def __init__(
        self,
        api_key: str | None = None,
        platform: str | None = None,
        http_client: httpx.Client | None = None,
        retry_delay: float = 5,
    ):
        self.api_key = settings.RIOT_API_KEY if api_key is None else api_key
        self.platform = platform or settings.RIOT_PLATFORM
        self.region = PLATFORM_TO_REGION.get(self.platform, "asia")
        self.headers = {"X-Riot-Token": self.api_key}
        self.client = http_client or httpx.Client(timeout=30)
        self.retry_delay = retry_delay

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, url: str, params: dict | None = None, retries: int = 3) -> dict | list:
        try:
            resp = self.client.get(url, headers=self.headers, params=params)
        except httpx.HTTPError as e:
            raise RiotAPIError(502, f"Riot API request failed: {e}") from e

        if resp.status_code == 200:
            return resp.json()
        elif resp.status_code == 429 and retries > 0:
            retry_after = int(resp.headers.get("Retry-After", 10))
            logger.info(f"Rate limited, waiting {retry_after}s...")
            time.sleep(retry_after)
            return self._get(url, params, retries - 1)
        elif resp.status_code >= 500 and retries > 0:
            wait = (4 - retries) * self.retry_delay
            logger.warning(f"Server error {resp.status_code}, retrying in {wait}s...")
            time.sleep(wait)
            return self._get(url, params, retries - 1)

        raise RiotAPIError(resp.status_code, f"Riot API error {resp.status_code}: {resp.text[:200]}")

    def _regional(self, path: str) -> str:
        return f"https://{self.region}.api.riotgames.com{path}"

    def get_account_by_riot_id(self, game_name: str, tag_line: str) -> dict:
        return self._get(
            self._regional(f"/riot/account/v1/accounts/by-riot-id/{quote(game_name)}/{quote(tag_line)}")
        )

    def get_match_ids(self, puuid: str, count: int = 10, start: int = 0) -> list[str]:
        data = self._get(
            self._regional(f"/lol/match/v5/matches/by-puuid/{puuid}/ids"),
            params={"start": start, "count": count},
        )
        return data if isinstance(data, list) else []

    def get_match(self, match_id: str) -> dict:
        return self._get(self._regional(f"/lol/match/v5/matches/{match_id}"))

    def get_match_timeline(self, match_id: str) -> dict:
        return self._get(self._regional(f"/lol/match/v5/matches/{match_id}/timeline"))

    def match_history(self, game_name: str, tag_line: str, count: int = 10) -> list[dict]:
        """Recent match summaries for a Riot ID. Matches that fail to load are skipped."""
        if not self.configured:
            raise RiotAPIError(503, "Riot API 키가 설정되지 않았습니다.")

        account = self.get_account_by_riot_id(game_name, tag_line)
        puuid = account["puuid"]

        matches = []
        for match_id in self.get_match_ids(puuid, count=count):
            try:
                match = self.get_match(match_id)
                timeline = self.get_match_timeline(match_id)
            except RiotAPIError as e:
                logger.error(f"Failed to load match {match_id}: {e}")
                continue

            summary = summarize_match(match_id, match, timeline, puuid)
            if summary is not None:
                matches.append(summary)
        return matches


def summarize_match(match_id: str, match: dict, timeline: dict | None, puuid: str) -> dict | None:
    info = match.get("info", {})
    player = next((p for p in info.get("participants", []) if p.get("puuid") == puuid), None)
    if player is None:
        return None

    created = info.get("gameCreation")
    return {
        "match_id": match_id,
        "game_mode": info.get("gameMode", ""),
        "game_duration": info.get("gameDuration", 0),
        "game_date": (
            datetime.fromtimestamp(created / 1000, tz=timezone.utc).isoformat() if created else None
        ),
        "champion": player.get("championName", ""),
        "kills": player.get("kills", 0),
        "deaths": player.get("deaths", 0),
        "assists": player.get("assists", 0),
        "win": bool(player.get("win", False)),
        "highlights": match_highlights(timeline or {}, player.get("participantId"), info.get("gameDuration", 0)),
    }


def _timeline_events(timeline: dict) -> list[dict]:
    frames = timeline.get("info", {}).get("frames", [])
    return [event for frame in frames for event in frame.get("events", [])]


def match_highlights(timeline: dict, participant_id: int | None, game_duration: int) -> list[dict]:
    """Clip windows (seconds) worth reviewing: skirmishes, objectives, first kill, game end."""
    events = _timeline_events(timeline)
    highlights = []

    def window(center_start: float, center_end: float, pad: int, description: str):
        highlights.append({
            "start_time": max(0, int(center_start - pad)),
            "end_time": min(game_duration, int(center_end + pad)),
            "description": description,
        })

    # Runs of kills less than a minute apart
    run: list[float] = []
    kills = [e["timestamp"] / 1000 for e in events if e.get("type") == "CHAMPION_KILL"]
    for t in kills + [None]:
        if t is not None and (not run or t - run[-1] <= 60):
            run.append(t)
            continue
        if len(run) >= 3:
            window(run[0], run[-1], 30, f"{len(run)}킬 연속 팀파이트")
        elif len(run) == 2:
            window(run[0], run[-1], 30, f"{len(run)}킬 연속 전투")
        run = [t] if t is not None else []

    for e in events:
        if e.get("type") == "ELITE_MONSTER_KILL" and e.get("monsterType") in ("DRAGON", "BARON_NASHOR"):
            t = e["timestamp"] / 1000
            window(t, t, 60, f"{'드래곤' if e['monsterType'] == 'DRAGON' else '바론'} 오브젝트")

    first_kill = next(
        (
            e for e in events
            if e.get("type") == "CHAMPION_KILL"
            and (e.get("killerId") == participant_id or participant_id in e.get("assistingParticipantIds", []))
        ),
        None,
    )
    if first_kill is not None:
        t = first_kill["timestamp"] / 1000
        window(t, t, 30, "첫 킬 구간")

    if game_duration > 180:
        window(game_duration - 180, game_duration, 0, "게임 종료 구간")

    return highlights[:MAX_HIGHLIGHTS]


# Singleton
riot_client = RiotAPIClient()
