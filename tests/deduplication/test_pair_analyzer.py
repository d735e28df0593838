"""Tests for candidate pair generation, scoring and tiering."""

import inspect

import pytest

from payeecore.deduplication.models import (
    CleanedRecord,
    ConfidenceTier,
    DuplicateDetectionConfig,
)
from payeecore.deduplication.name_normalizer import normalize_name
from payeecore.deduplication.pair_analyzer import (
    PairAnalyzer,
    classify_confidence,
    find_duplicate_pairs,
    iter_candidate_pairs,
)


def cleaned(*names):
    return [
        CleanedRecord(payee_id=str(i + 1), payee_name=name, cleaned_name=normalize_name(name))
        for i, name in enumerate(names)
    ]


class TestClassifyConfidence:
    """Tests for the threshold partition."""

    @pytest.fixture
    def config(self):
        return DuplicateDetectionConfig()

    @pytest.mark.parametrize(
        "score, tier",
        [
            (100.0, ConfidenceTier.HIGH),
            (95.0, ConfidenceTier.HIGH),
            (94.99, ConfidenceTier.AMBIGUOUS),
            (80.0, ConfidenceTier.AMBIGUOUS),
            (75.01, ConfidenceTier.AMBIGUOUS),
            (75.0, ConfidenceTier.LOW),
            (0.0, ConfidenceTier.LOW),
        ],
    )
    def test_boundaries(self, config, score, tier):
        assert classify_confidence(score, config) is tier

    def test_equal_thresholds_resolve_high(self):
        config = DuplicateDetectionConfig.from_overrides(
            {"highConfidenceThreshold": 80, "lowConfidenceThreshold": 80}
        )
        assert classify_confidence(80.0, config) is ConfidenceTier.HIGH
        assert classify_confidence(79.9, config) is ConfidenceTier.LOW


class TestIterCandidatePairs:
    """Tests for pair enumeration."""

    def test_enumerates_i_before_j(self):
        records = cleaned("a", "b", "c", "d")
        ids = [(a.payee_id, b.payee_id) for a, b in iter_candidate_pairs(records)]
        assert ids == [("1", "2"), ("1", "3"), ("1", "4"), ("2", "3"), ("2", "4"), ("3", "4")]

    def test_is_lazy(self):
        assert inspect.isgenerator(iter_candidate_pairs(cleaned("a", "b")))

    def test_fewer_than_two_records(self):
        assert list(iter_candidate_pairs(cleaned("a"))) == []
        assert list(iter_candidate_pairs([])) == []


class TestPairAnalyzer:
    """Tests for scoring, the shortcut floor and filtering."""

    @pytest.fixture
    def analyzer(self):
        return PairAnalyzer(DuplicateDetectionConfig())

    def test_identical_names_are_high(self, analyzer):
        first, second = cleaned("Acme Corp", "ACME CORPORATION")
        pair = analyzer.analyze_pair(first, second)
        assert pair.final_duplicate_score == 100.0
        assert pair.confidence_tier is ConfidenceTier.HIGH
        assert pair.record1.payee_id == "1"
        assert pair.record2.payee_id == "2"

    def test_reordered_names_lifted_to_high(self, analyzer):
        first, second = cleaned("John Smith", "Smith John")
        pair = analyzer.analyze_pair(first, second)
        assert pair.same_entity
        assert pair.final_duplicate_score >= 95.0
        assert pair.final_duplicate_score >= pair.similarity_scores.combined
        assert pair.confidence_tier is ConfidenceTier.HIGH

    def test_initialism_floor_follows_high_threshold(self, analyzer):
        first, second = cleaned("IBM", "International Business Machines")
        pair = analyzer.analyze_pair(first, second)
        assert pair.similarity_scores.combined < 90.0
        assert pair.final_duplicate_score == 95.0
        assert pair.confidence_tier is ConfidenceTier.HIGH

    def test_shortcut_floor_is_at_least_90(self):
        config = DuplicateDetectionConfig.from_overrides({"highConfidenceThreshold": 85})
        first, second = cleaned("IBM", "International Business Machines")
        pair = PairAnalyzer(config).analyze_pair(first, second)
        assert pair.final_duplicate_score == 90.0
        assert pair.confidence_tier is ConfidenceTier.HIGH

    def test_similar_people_are_ambiguous(self, analyzer):
        first, second = cleaned("John Smith", "Jane Smith")
        pair = analyzer.analyze_pair(first, second)
        assert not pair.same_entity
        assert pair.confidence_tier is ConfidenceTier.AMBIGUOUS

    def test_low_pairs_dropped(self):
        records = cleaned("Acme Corp", "Zebra Industries", "CHRISTA", "Christa INC")
        pairs = find_duplicate_pairs(records)
        assert [(p.record1.payee_id, p.record2.payee_id) for p in pairs] == [("3", "4")]

    def test_empty_names_never_pair(self, analyzer):
        records = cleaned(None, "", "Acme")
        assert analyzer.find_duplicate_pairs(records) == []

    def test_tier_invariant_holds_for_every_kept_pair(self, analyzer):
        records = cleaned(
            "John Smith", "Jane Smith", "Smith John", "Acme", "ACME Inc", "Acme Widgets"
        )
        for pair in analyzer.iter_pairs(records):
            assert pair.confidence_tier is classify_confidence(
                pair.final_duplicate_score, analyzer.config
            )
