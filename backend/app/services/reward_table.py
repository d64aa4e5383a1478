"""
Heuristic reward table and fault estimator.

Each named in-game action has a hand-assigned reward. Given a situation
description and a game state, the estimator enumerates the actions that
apply, weights them by game time and gold lead, picks the best one, and
measures how far the player's actual action fell short of it.

The table can be nudged with an exponential moving average
(`learn_from_result`), which is the only mutation path. There is no
training loop behind it.

Flow:
  situation text → candidate actions → weighted scores → optimal action
                                                       → fault in [0, 1]
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_ACTION_REWARDS: dict[str, float] = {
    # Gank
    "gank_response_kill": 100,
    "gank_response_assist": 50,
    "gank_response_fail": -20,
    "gank_ignore_safe": 30,
    "gank_ignore_risky": -50,
    # CS
    "cs_focus_safe": 40,
    "cs_focus_risky": -30,
    "cs_share_teammate": 60,
    "cs_steal_teammate": -40,
    # Objectives
    "objective_join_win": 80,
    "objective_join_loss": -40,
    "objective_ignore_team_loss": -60,
    "objective_ignore_team_win": 20,
    # Teamfights
    "teamfight_engage_win": 90,
    "teamfight_engage_loss": -50,
    "teamfight_avoid_safe": 30,
    "teamfight_avoid_team_loss": -70,
}

LEARNING_RATE = 0.1
DISCOUNT_FACTOR = 0.9


def _unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass
class GameState:
    game_time: int = 900  # seconds
    player_level: int = 10
    team_gold: int = 15000
    enemy_gold: int = 14000
    objectives: list[str] = field(default_factory=list)
    team_fights: int = 0
    vision: float = 0.5
    pressure: float = 0.5

    def __post_init__(self):
        self.vision = _unit(self.vision)
        self.pressure = _unit(self.pressure)


@dataclass
class GameAction:
    action: str
    situation: str
    expected_reward: float
    risk: float
    time_cost: int
    team_benefit: float
    personal_benefit: float

    def __post_init__(self):
        self.risk = _unit(self.risk)
        self.team_benefit = _unit(self.team_benefit)
        self.personal_benefit = _unit(self.personal_benefit)


@dataclass(frozen=True)
class ActionTemplate:
    action: str
    risk: float
    time_cost: int
    team_benefit: float
    personal_benefit: float


@dataclass(frozen=True)
class SituationRule:
    """Keywords that, when present, make a family of actions applicable."""

    keywords: tuple[str, ...]
    actions: tuple[ActionTemplate, ...]


SITUATION_RULES: tuple[SituationRule, ...] = (
    SituationRule(
        keywords=("갱킹", "gank"),
        actions=(
            ActionTemplate("gank_response_kill", 0.3, 30, 0.8, 0.9),
            ActionTemplate("gank_response_assist", 0.2, 20, 0.7, 0.6),
            ActionTemplate("gank_ignore_safe", 0.1, 0, 0.3, 0.8),
        ),
    ),
    SituationRule(
        keywords=("CS", "미니언"),
        actions=(
            ActionTemplate("cs_focus_safe", 0.1, 0, 0.4, 0.9),
            ActionTemplate("cs_share_teammate", 0.0, 0, 0.9, 0.2),
        ),
    ),
    SituationRule(
        keywords=("드래곤", "바론", "오브젝트"),
        actions=(
            ActionTemplate("objective_join_win", 0.4, 60, 0.9, 0.6),
            ActionTemplate("objective_ignore_team_win", 0.1, 0, 0.2, 0.8),
        ),
    ),
)

# Situation classes for the per-situation action values, first match wins
SITUATION_KEYS: tuple[tuple[str, str], ...] = (
    ("갱킹", "gank_situation"),
    ("CS", "cs_situation"),
    ("오브젝트", "objective_situation"),
    ("팀파이트", "teamfight_situation"),
)


@dataclass
class ScoredAction:
    action: GameAction
    final_reward: float


@dataclass
class FaultEstimate:
    verdict: str
    reasoning: str
    optimal_action: str | None
    expected_reward: float
    actual_reward: float
    fault: float
    alternatives: list[ScoredAction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict,
            "reasoning": self.reasoning,
            "optimal_action": self.optimal_action,
            "expected_reward": round(self.expected_reward, 2),
            "actual_reward": round(self.actual_reward, 2),
            "fault": round(self.fault, 4),
            "alternatives": [
                {"action": s.action.action, "final_reward": round(s.final_reward, 2)}
                for s in self.alternatives
            ],
        }


class HeuristicRewardTable:
    """
    Action name → reward, plus per-situation action values.

    One instance is shared per process. Updates are serialized with a lock
    because sync FastAPI endpoints run on a thread pool.
    """

    def __init__(self, rewards: dict[str, float] | None = None):
        self.action_rewards: dict[str, float] = dict(DEFAULT_ACTION_REWARDS if rewards is None else rewards)
        self.state_action_values: dict[str, dict[str, float]] = {}
        self.learning_rate = LEARNING_RATE
        self.discount_factor = DISCOUNT_FACTOR
        self._lock = threading.Lock()

    def reward(self, action: str) -> float:
        return float(self.action_rewards.get(action, 0))

    def learn_from_result(self, action: str, situation: str, observed_reward: float) -> float:
        """EMA update toward the observed reward. Returns the new table value."""
        with self._lock:
            current = self.action_rewards.get(action, 0)
            updated = current + self.learning_rate * (observed_reward - current)
            self.action_rewards[action] = updated

            state_key = situation_key(situation)
            state_actions = self.state_action_values.setdefault(state_key, {})
            value = state_actions.get(action, 0)
            state_actions[action] = value + self.learning_rate * (observed_reward - value)

        logger.debug(f"Reward for {action} moved {current:.2f} -> {updated:.2f} ({state_key})")
        return updated

    def export_learning_data(self) -> dict[str, Any]:
        with self._lock:
            return {
                "action_rewards": dict(self.action_rewards),
                "state_action_values": {
                    state: dict(actions) for state, actions in self.state_action_values.items()
                },
                "learning_rate": self.learning_rate,
                "discount_factor": self.discount_factor,
            }

    def import_learning_data(self, data: dict[str, Any]):
        """Overwrite the whole table. The input shape is trusted."""
        with self._lock:
            self.action_rewards = {k: float(v) for k, v in data["action_rewards"].items()}
            self.state_action_values = {
                state: {k: float(v) for k, v in actions.items()}
                for state, actions in data.get("state_action_values", {}).items()
            }
            self.learning_rate = float(data.get("learning_rate", LEARNING_RATE))
            self.discount_factor = float(data.get("discount_factor", DISCOUNT_FACTOR))

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.export_learning_data(), ensure_ascii=False, indent=2))

    def load(self, path: str | Path):
        path = Path(path)
        self.import_learning_data(json.loads(path.read_text()))
        logger.info(f"Loaded reward table snapshot from {path} ({len(self.action_rewards)} actions)")


def situation_key(situation: str) -> str:
    for keyword, key in SITUATION_KEYS:
        if keyword in situation:
            return key
    return "general_situation"


def time_weight(game_time: float) -> float:
    if game_time < 300:
        return 0.8
    if game_time < 900:
        return 1.0
    if game_time < 1800:
        return 1.2
    return 1.5


def team_weight(state: GameState) -> float:
    gold_ratio = (state.team_gold - state.enemy_gold) / max(state.team_gold, state.enemy_gold, 1)
    if gold_ratio > 0.2:
        return 1.3
    if gold_ratio > 0:
        return 1.1
    if gold_ratio > -0.2:
        return 1.0
    return 0.8


def candidate_actions(situation: str) -> list[GameAction]:
    """Enumerate actions applicable to a situation description."""
    actions = []
    for rule in SITUATION_RULES:
        if any(keyword in situation for keyword in rule.keywords):
            for t in rule.actions:
                actions.append(
                    GameAction(
                        action=t.action,
                        situation=situation,
                        expected_reward=DEFAULT_ACTION_REWARDS[t.action],
                        risk=t.risk,
                        time_cost=t.time_cost,
                        team_benefit=t.team_benefit,
                        personal_benefit=t.personal_benefit,
                    )
                )
    return actions


class FaultEstimator:
    """Compares a player's action against the best applicable action."""

    def __init__(self, table: HeuristicRewardTable):
        self.table = table

    def final_reward(self, action: GameAction, state: GameState) -> float:
        base = self.table.reward(action.action)
        risk_adjustment = action.risk * -50
        balance = action.team_benefit * 0.7 + action.personal_benefit * 0.3
        return base * time_weight(state.game_time) * team_weight(state) + risk_adjustment + balance * 100

    def score_candidates(self, situation: str, state: GameState) -> list[ScoredAction]:
        return [ScoredAction(a, self.final_reward(a, state)) for a in candidate_actions(situation)]

    def estimate_fault(self, situation: str, state: GameState, actual_action: str) -> FaultEstimate:
        scored = self.score_candidates(situation, state)
        actual_reward = self.table.reward(actual_action)

        best = None
        for s in scored:
            # strict comparison keeps the first candidate on ties
            if best is None or s.final_reward > best.final_reward:
                best = s

        if best is None:
            return FaultEstimate(
                verdict="판단할 수 있는 행동이 없습니다. 상황을 더 자세히 설명해주세요.",
                reasoning="상황 설명에서 갱킹, CS, 오브젝트 관련 키워드를 찾지 못했습니다.",
                optimal_action=None,
                expected_reward=0.0,
                actual_reward=actual_reward,
                fault=0.0,
            )

        optimal = best.final_reward
        if optimal <= 0:
            fault = 0.0
        else:
            fault = min(1.0, max(0.0, (optimal - actual_reward) / optimal))

        return FaultEstimate(
            verdict=verdict_text(fault, best.action.action),
            reasoning=_reasoning(best, state),
            optimal_action=best.action.action,
            expected_reward=optimal,
            actual_reward=actual_reward,
            fault=fault,
            alternatives=scored,
        )


def verdict_text(fault: float, optimal_action: str) -> str:
    if fault < 0.2:
        return f"올바른 판단입니다. {optimal_action}이 최적의 선택이었습니다."
    if fault < 0.5:
        return f"개선의 여지가 있습니다. {optimal_action}이 더 나은 선택이었을 것입니다."
    return f"잘못된 판단입니다. {optimal_action}을 선택했어야 했습니다."


def _reasoning(best: ScoredAction, state: GameState) -> str:
    action = best.action
    reasons = []
    if action.team_benefit > 0.7:
        reasons.append("팀 전체의 이익을 크게 도움")
    if action.risk < 0.2:
        reasons.append("위험도가 낮아 안전함")
    if best.final_reward > 50:
        reasons.append("예상 보상값이 높음")
    if state.game_time > 1800 and action.team_benefit > action.personal_benefit:
        reasons.append("후반에는 팀플레이가 중요")
    return ", ".join(reasons)


# Singleton
reward_table = HeuristicRewardTable()
fault_estimator = FaultEstimator(reward_table)
