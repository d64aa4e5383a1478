import threading

import pytest

from backend.app.services.reward_table import (
    FaultEstimator,
    GameState,
    HeuristicRewardTable,
    candidate_actions,
    situation_key,
    team_weight,
    time_weight,
)


def test_unknown_action_has_zero_reward(table: HeuristicRewardTable) -> None:
    assert table.reward("dance_at_fountain") == 0


def test_game_state_clamps_vision_and_pressure() -> None:
    state = GameState(vision=1.7, pressure=-0.3)
    assert state.vision == 1.0
    assert state.pressure == 0.0


@pytest.mark.parametrize(
    "seconds, weight",
    [(0, 0.8), (299, 0.8), (300, 1.0), (899, 1.0), (900, 1.2), (1799, 1.2), (1800, 1.5)],
)
def test_time_weight_bands(seconds: int, weight: float) -> None:
    assert time_weight(seconds) == weight


def test_team_weight_follows_gold_ratio() -> None:
    assert team_weight(GameState(team_gold=15000, enemy_gold=10000)) == 1.3
    assert team_weight(GameState(team_gold=15000, enemy_gold=14000)) == 1.1
    assert team_weight(GameState(team_gold=14000, enemy_gold=15000)) == 1.0
    assert team_weight(GameState(team_gold=10000, enemy_gold=15000)) == 0.8
    assert team_weight(GameState(team_gold=0, enemy_gold=0)) == 1.0


def test_candidates_union_over_matching_families() -> None:
    names = [a.action for a in candidate_actions("갱킹 오다가 드래곤 싸움")]
    assert names == [
        "gank_response_kill",
        "gank_response_assist",
        "gank_ignore_safe",
        "objective_join_win",
        "objective_ignore_team_win",
    ]
    assert candidate_actions("라인전 상황") == []


def test_gank_situation_prefers_responding_to_gank(estimator: FaultEstimator) -> None:
    result = estimator.estimate_fault("탑 갱킹 상황", GameState(), "gank_ignore_safe")

    # 15 min, slightly ahead: 100 * 1.2 * 1.1 - 15 + 83
    assert result.optimal_action == "gank_response_kill"
    assert result.expected_reward == pytest.approx(200.0)
    assert result.actual_reward == 30
    assert result.fault == pytest.approx(0.85)
    assert result.verdict.startswith("잘못된 판단입니다.")
    assert len(result.alternatives) == 3


def test_no_applicable_action_returns_sentinel(estimator: FaultEstimator) -> None:
    result = estimator.estimate_fault("라인전에서 싸웠습니다", GameState(), "gank_response_kill")
    assert result.optimal_action is None
    assert result.fault == 0.0
    assert result.alternatives == []
    assert result.to_dict()["optimal_action"] is None


@pytest.mark.parametrize(
    "situation",
    ["갱킹", "CS 문제", "바론 앞 싸움", "갱킹 중 미니언 CS 그리고 오브젝트"],
)
@pytest.mark.parametrize(
    "action",
    ["gank_response_kill", "cs_steal_teammate", "teamfight_avoid_team_loss", "unknown_action"],
)
def test_fault_is_bounded(estimator: FaultEstimator, situation: str, action: str) -> None:
    for state in (GameState(game_time=60), GameState(game_time=2400, team_gold=5000, enemy_gold=20000)):
        fault = estimator.estimate_fault(situation, state, action).fault
        assert 0.0 <= fault <= 1.0


def test_learn_moves_reward_toward_observation(table: HeuristicRewardTable) -> None:
    updated = table.learn_from_result("gank_response_kill", "갱킹 상황", 200)

    assert updated == pytest.approx(110.0)
    assert table.reward("gank_response_kill") == pytest.approx(110.0)
    assert table.state_action_values["gank_situation"]["gank_response_kill"] == pytest.approx(20.0)


def test_learning_changes_estimator_through_shared_table(table: HeuristicRewardTable) -> None:
    estimator = FaultEstimator(table)
    before = estimator.estimate_fault("갱킹", GameState(), "gank_ignore_safe").expected_reward
    table.learn_from_result("gank_response_kill", "갱킹", 300)
    after = estimator.estimate_fault("갱킹", GameState(), "gank_ignore_safe").expected_reward
    assert after > before


def test_situation_key_defaults_to_general() -> None:
    assert situation_key("팀파이트 도중") == "teamfight_situation"
    assert situation_key("아무 일도 없었다") == "general_situation"


def test_export_import_is_idempotent(table: HeuristicRewardTable) -> None:
    table.learn_from_result("cs_focus_safe", "CS 분배", -10)
    exported = table.export_learning_data()

    other = HeuristicRewardTable()
    other.import_learning_data(exported)
    assert other.export_learning_data() == exported

    other.import_learning_data(other.export_learning_data())
    assert other.export_learning_data() == exported


def test_import_restores_fault_estimates(table: HeuristicRewardTable) -> None:
    table.learn_from_result("gank_response_assist", "갱킹", 400)
    table.learn_from_result("cs_share_teammate", "CS", -100)
    restored = HeuristicRewardTable()
    restored.import_learning_data(table.export_learning_data())

    state = GameState(game_time=1200, team_gold=12000, enemy_gold=16000)
    for situation, action in [("갱킹", "gank_ignore_safe"), ("CS 미니언", "cs_focus_safe"), ("바론", "objective_join_win")]:
        before = FaultEstimator(table).estimate_fault(situation, state, action)
        copy = FaultEstimator(restored).estimate_fault(situation, state, action)
        assert copy.to_dict() == before.to_dict()


def test_save_and_load_snapshot(table: HeuristicRewardTable, tmp_path) -> None:
    table.learn_from_result("objective_join_win", "오브젝트", 0)
    path = tmp_path / "snapshots" / "rewards.json"
    table.save(path)

    restored = HeuristicRewardTable()
    restored.load(path)
    assert restored.reward("objective_join_win") == pytest.approx(72.0)


def test_explicit_empty_table_stays_empty() -> None:
    table = HeuristicRewardTable({})
    assert table.action_rewards == {}
    assert table.reward("gank_response_kill") == 0


def test_concurrent_learning_loses_no_updates(table: HeuristicRewardTable) -> None:
    threads, updates, observed = 8, 10, 300.0
    start = threading.Barrier(threads)

    def worker() -> None:
        start.wait()
        for _ in range(updates):
            table.learn_from_result("gank_response_kill", "갱킹", observed)

    pool = [threading.Thread(target=worker) for _ in range(threads)]
    for t in pool:
        t.start()
    for t in pool:
        t.join()

    n = threads * updates
    assert table.reward("gank_response_kill") == pytest.approx(observed + (100 - observed) * 0.9**n)
    value = table.state_action_values["gank_situation"]["gank_response_kill"]
    assert value == pytest.approx(observed + (0 - observed) * 0.9**n)
