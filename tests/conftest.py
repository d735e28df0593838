"""Shared fixtures for payee duplicate detection tests."""

import asyncio
from typing import Any, List, Tuple

import pytest

from payeecore.deduplication.models import AIJudgment


class StubOracle:
    """Oracle returning a fixed verdict and recording every call."""

    def __init__(self, is_duplicate: bool = True, confidence: float = 88.0,
                 reasoning: str = "Same entity"):
        self.verdict = AIJudgment(
            is_duplicate=is_duplicate, confidence=confidence, reasoning=reasoning
        )
        self.calls: List[Tuple[Any, Any]] = []

    async def judge(self, name_a, name_b):
        self.calls.append((name_a, name_b))
        return self.verdict


class FailingOracle:
    """Oracle whose every call raises."""

    def __init__(self, error: Exception = None):
        self.error = error or ConnectionError("service unavailable")
        self.calls = 0

    async def judge(self, name_a, name_b):
        self.calls += 1
        raise self.error


class SlowOracle:
    """Oracle that sleeps before answering and tracks peak concurrency."""

    def __init__(self, delay: float = 0.05, result: Any = None):
        self.delay = delay
        self.result = result or {"is_duplicate": False, "confidence": 70, "reasoning": "Different"}
        self.active = 0
        self.peak = 0

    async def judge(self, name_a, name_b):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
            return self.result
        finally:
            self.active -= 1


@pytest.fixture
def stub_oracle():
    """Oracle that judges every pair a duplicate."""
    return StubOracle()


@pytest.fixture
def rejecting_oracle():
    """Oracle that judges every pair distinct."""
    return StubOracle(is_duplicate=False, confidence=91.0, reasoning="Different people")


@pytest.fixture
def failing_oracle():
    return FailingOracle()


@pytest.fixture
def slow_oracle():
    return SlowOracle()


@pytest.fixture
def ambiguous_records():
    """Two records whose pair lands between the default thresholds."""
    return [
        {"payee_id": "1", "payee_name": "John Smith"},
        {"payee_id": "2", "payee_name": "Jane Smith"},
    ]


@pytest.fixture
def mixed_records():
    """A batch with two duplicate clusters and unrelated payees."""
    return [
        {"payee_id": "1", "payee_name": "Christa INC"},
        {"payee_id": "2", "payee_name": "Acme Corp"},
        {"payee_id": "3", "payee_name": "CHRISTA"},
        {"payee_id": "4", "payee_name": "ACME CORPORATION"},
        {"payee_id": "5", "payee_name": "Zebra Industries"},
        {"payee_id": "6", "payee_name": "Christa"},
        {"payee_id": "7", "payee_name": None},
    ]
