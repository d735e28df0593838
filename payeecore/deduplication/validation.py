"""
Built-in Duplicate Detection Scenarios

Known payee batches with their expected duplicate groups, used to check a
configured engine end to end.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import PayeeCoreError
from .core_engine import DuplicateDetectionEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateTestCase:
    """A batch of records and the member-id groups it should produce."""

    description: str
    records: List[Dict[str, Any]]
    expected_duplicates: List[List[str]]


@dataclass
class ValidationResult:
    test_case: DuplicateTestCase
    actual_groups: List[List[str]]
    passed: bool
    details: str


@dataclass
class ValidationReport:
    passed: int = 0
    failed: int = 0
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return self.failed == 0


DUPLICATE_TEST_CASES = [
    DuplicateTestCase(
        description="Christa variants should all be detected as duplicates",
        records=[
            {"payee_id": "1", "payee_name": "Christa INC"},
            {"payee_id": "2", "payee_name": "CHRISTA"},
            {"payee_id": "3", "payee_name": "Christa"},
        ],
        expected_duplicates=[["1", "2", "3"]],
    ),
    DuplicateTestCase(
        description=(
            "Apple with different business suffixes should be duplicates, "
            "Microsoft should be separate"
        ),
        records=[
            {"payee_id": "4", "payee_name": "Apple Inc"},
            {"payee_id": "5", "payee_name": "Apple Corporation"},
            {"payee_id": "6", "payee_name": "Apple LLC"},
            {"payee_id": "7", "payee_name": "Microsoft Corp"},
        ],
        expected_duplicates=[["4", "5", "6"]],
    ),
    DuplicateTestCase(
        description=(
            "John Smith case variations should be duplicates, "
            "Jane Smith should be separate"
        ),
        records=[
            {"payee_id": "8", "payee_name": "john smith"},
            {"payee_id": "9", "payee_name": "John Smith"},
            {"payee_id": "10", "payee_name": "JOHN SMITH"},
            {"payee_id": "11", "payee_name": "Jane Smith"},
        ],
        expected_duplicates=[["8", "9", "10"]],
    ),
    DuplicateTestCase(
        description="Completely different companies should not be duplicates",
        records=[
            {"payee_id": "12", "payee_name": "Apple Inc"},
            {"payee_id": "13", "payee_name": "Microsoft Corp"},
            {"payee_id": "14", "payee_name": "Google LLC"},
        ],
        expected_duplicates=[],
    ),
]


def _normalize_groups(groups: List[List[str]]) -> List[List[str]]:
    return sorted(sorted(group) for group in groups)


async def run_duplicate_tests(
    engine: Optional[DuplicateDetectionEngine] = None,
    test_cases: Optional[List[DuplicateTestCase]] = None,
) -> ValidationReport:
    """
    Run the scenarios through an engine and compare the groups it finds.

    Args:
        engine: Engine to check; a throwaway engine with AI judgment
            disabled is used if omitted
        test_cases: Scenarios to run (``DUPLICATE_TEST_CASES`` if omitted)

    Returns:
        ValidationReport with one result per scenario
    """
    owns_engine = engine is None
    if owns_engine:
        engine = DuplicateDetectionEngine(config={"enable_ai_judgment": False})

    report = ValidationReport()
    try:
        for test_case in test_cases or DUPLICATE_TEST_CASES:
            expected = _normalize_groups(test_case.expected_duplicates)
            try:
                result = await engine.detect_duplicates(test_case.records)
            except PayeeCoreError as e:
                report.failed += 1
                details = f"ERROR: {test_case.description} - {e}"
                report.results.append(ValidationResult(test_case, [], False, details))
                logger.error(details)
                continue

            actual = _normalize_groups(
                [[member.payee_id for member in group.members] for group in result.duplicate_groups]
            )
            passed = actual == expected
            if passed:
                report.passed += 1
                details = f"PASS: {test_case.description}"
            else:
                report.failed += 1
                details = (
                    f"FAIL: {test_case.description}\n"
                    f"Expected groups: {expected}\nActual groups: {actual}"
                )
            report.results.append(ValidationResult(test_case, actual, passed, details))
            logger.info(details)
    finally:
        if owns_engine:
            await engine.shutdown()

    logger.info(f"Duplicate scenarios completed: {report.passed} passed, {report.failed} failed")
    return report
