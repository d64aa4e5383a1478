import numpy as np
import pytest
from fastapi.testclient import TestClient

from backend.app.main import app
from backend.app.services.judge import judge_service
from backend.app.services.reward_table import FaultEstimator, HeuristicRewardTable


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def table() -> HeuristicRewardTable:
    return HeuristicRewardTable()


@pytest.fixture
def estimator(table: HeuristicRewardTable) -> FaultEstimator:
    return FaultEstimator(table)


@pytest.fixture
def client(monkeypatch, estimator: FaultEstimator) -> TestClient:
    # Rules only, and a private reward table so tests don't leak updates
    monkeypatch.setattr(judge_service, "api_key", "")
    monkeypatch.setattr(judge_service, "estimator", estimator)
    return TestClient(app)
