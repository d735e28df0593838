"""
Candidate Pair Analysis

Enumerates every unordered pair of cleaned records, scores it, applies the
same-entity shortcut and assigns a confidence tier.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

from .entity_shortcuts import SAME_ENTITY_SCORE_FLOOR, is_same_entity
from .models import (
    CleanedRecord,
    ConfidenceTier,
    DuplicateDetectionConfig,
    DuplicatePair,
)
from .similarity_scoring import SimilarityScorer


def classify_confidence(score: float, config: DuplicateDetectionConfig) -> ConfidenceTier:
    """Map a duplicate score onto its confidence tier.

    ``score >= high`` is High, ``score <= low`` is Low, anything between is
    Ambiguous. High is checked first so ``high == low`` never yields two tiers.
    """
    if score >= config.high_confidence_threshold:
        return ConfidenceTier.HIGH
    if score <= config.low_confidence_threshold:
        return ConfidenceTier.LOW
    return ConfidenceTier.AMBIGUOUS


def iter_candidate_pairs(
    records: Sequence[CleanedRecord],
) -> Iterator[Tuple[CleanedRecord, CleanedRecord]]:
    """Yield each (records[i], records[j]) with i < j, lazily."""
    for i in range(len(records)):
        for j in range(i + 1, len(records)):
            yield records[i], records[j]


class PairAnalyzer:
    """Scores and tiers candidate pairs for one detection run."""

    def __init__(
        self,
        config: DuplicateDetectionConfig,
        scorer: Optional[SimilarityScorer] = None,
    ):
        self.config = config
        self.scorer = scorer or SimilarityScorer(config.algorithm_weights)

    def analyze_pair(self, first: CleanedRecord, second: CleanedRecord) -> DuplicatePair:
        """Score one pair and decide its tier.

        A same-entity pair has its score lifted to at least the shortcut floor
        and the high threshold, so it always lands in the High tier.
        """
        scores = self.scorer.score(first.cleaned_name, second.cleaned_name)
        final_score = scores.combined

        same_entity = is_same_entity(first.payee_name, second.payee_name)
        if same_entity:
            final_score = max(
                final_score,
                SAME_ENTITY_SCORE_FLOOR,
                self.config.high_confidence_threshold,
            )

        return DuplicatePair(
            record1=first.source,
            record2=second.source,
            similarity_scores=scores,
            final_duplicate_score=final_score,
            confidence_tier=classify_confidence(final_score, self.config),
            same_entity=same_entity,
        )

    def iter_pairs(self, records: Sequence[CleanedRecord]) -> Iterator[DuplicatePair]:
        """Yield the pairs worth deciding, in i < j enumeration order.

        Pairs at or below the low threshold are dropped unless they are
        Ambiguous.
        """
        for first, second in iter_candidate_pairs(records):
            pair = self.analyze_pair(first, second)
            if (
                pair.final_duplicate_score > self.config.low_confidence_threshold
                or pair.confidence_tier is ConfidenceTier.AMBIGUOUS
            ):
                yield pair

    def find_duplicate_pairs(self, records: Sequence[CleanedRecord]) -> List[DuplicatePair]:
        return list(self.iter_pairs(records))


def find_duplicate_pairs(
    records: Sequence[CleanedRecord],
    config: Optional[DuplicateDetectionConfig] = None,
    scorer: Optional[SimilarityScorer] = None,
) -> List[DuplicatePair]:
    """Score, tier and filter every candidate pair of ``records``."""
    analyzer = PairAnalyzer(config or DuplicateDetectionConfig(), scorer)
    return analyzer.find_duplicate_pairs(records)
