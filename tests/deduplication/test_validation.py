"""Tests for the built-in duplicate detection scenarios."""

import pytest

from payeecore.deduplication.core_engine import DuplicateDetectionEngine
from payeecore.deduplication.validation import (
    DUPLICATE_TEST_CASES,
    DuplicateTestCase,
    run_duplicate_tests,
)

pytestmark = pytest.mark.asyncio


class TestRunDuplicateTests:
    """Tests for run_duplicate_tests."""

    async def test_builtin_scenarios_pass(self):
        report = await run_duplicate_tests()
        assert report.passed == len(DUPLICATE_TEST_CASES) == 4
        assert report.failed == 0
        assert report.all_passed
        assert all(result.details.startswith("PASS") for result in report.results)

    async def test_groups_reported_sorted(self):
        report = await run_duplicate_tests(test_cases=DUPLICATE_TEST_CASES[2:3])
        assert report.results[0].actual_groups == [["10", "8", "9"]]

    async def test_mismatch_reported_as_failure(self):
        case = DuplicateTestCase(
            description="Jane is not John",
            records=[
                {"payee_id": "1", "payee_name": "John Smith"},
                {"payee_id": "2", "payee_name": "Jane Smith"},
            ],
            expected_duplicates=[["1", "2"]],
        )
        report = await run_duplicate_tests(test_cases=[case])
        assert report.failed == 1
        assert not report.all_passed
        assert report.results[0].actual_groups == []
        assert "Expected groups: [['1', '2']]" in report.results[0].details

    async def test_run_error_reported(self):
        case = DuplicateTestCase(
            description="Repeated ids",
            records=[
                {"payee_id": "1", "payee_name": "Acme"},
                {"payee_id": "1", "payee_name": "Acme"},
            ],
            expected_duplicates=[],
        )
        report = await run_duplicate_tests(test_cases=[case])
        assert report.failed == 1
        assert report.results[0].details.startswith("ERROR: Repeated ids")

    async def test_supplied_engine_is_used_and_left_open(self, stub_oracle):
        case = DuplicateTestCase(
            description="Oracle merges similar people",
            records=[
                {"payee_id": "1", "payee_name": "John Smith"},
                {"payee_id": "2", "payee_name": "Jane Smith"},
            ],
            expected_duplicates=[["1", "2"]],
        )
        engine = DuplicateDetectionEngine(oracle=stub_oracle)
        try:
            report = await run_duplicate_tests(engine=engine, test_cases=[case])
            assert report.all_passed
            # still usable afterwards
            await engine.detect_duplicates([{"payee_id": "1", "payee_name": "Acme"}])
        finally:
            await engine.shutdown()
        assert len(stub_oracle.calls) == 1
