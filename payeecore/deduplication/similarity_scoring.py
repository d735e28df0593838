"""
Similarity Scoring System

String similarity metrics for normalized payee names and the weighted
combination that produces a pair's duplicate score.
"""

from typing import Optional, Set

import jellyfish
from fuzzywuzzy import fuzz

from .models import AlgorithmWeights, SimilarityScores


class SimilarityScorer:
    """
    Multi-metric similarity scoring for payee names.

    Every metric is computed over already-normalized names and reported on a
    0-100 scale. The arguments are put in a canonical order first, so each
    metric and the combined score are symmetric in their two inputs.
    """

    def __init__(self, weights: Optional[AlgorithmWeights] = None):
        """Initialize the scorer with metric weights (defaults if omitted)."""
        self.weights = weights or AlgorithmWeights()

    def score(self, name_a: str, name_b: str) -> SimilarityScores:
        """
        Calculate all similarity metrics for two normalized names.

        Args:
            name_a: First normalized name
            name_b: Second normalized name

        Returns:
            SimilarityScores including the weighted ``combined`` score
        """
        if not name_a or not name_b:
            return SimilarityScores()

        first, second = sorted((name_a, name_b))

        if first == second:
            metrics = {metric: 100.0 for metric in SimilarityScores.METRICS}
        else:
            metrics = {
                "levenshtein": self._levenshtein_similarity(first, second),
                "jaro": jellyfish.jaro_similarity(first, second) * 100,
                "jaro_winkler": jellyfish.jaro_winkler_similarity(first, second) * 100,
                "dice": self._dice_coefficient(first, second),
                "token_sort": float(fuzz.token_sort_ratio(first, second)),
                "token_set": float(fuzz.token_set_ratio(first, second)),
            }

        return SimilarityScores(combined=self._weighted_score(metrics), **metrics)

    def _weighted_score(self, metrics: dict) -> float:
        """Weighted sum of the metrics, clamped to [0, 100]."""
        weights = self.weights.as_dict()
        total = sum(metrics[metric] * weight for metric, weight in weights.items())
        return max(0.0, min(100.0, total))

    def _levenshtein_similarity(self, a: str, b: str) -> float:
        """Edit distance as a percentage of the longer string."""
        max_length = max(len(a), len(b))
        if max_length == 0:
            return 100.0
        distance = jellyfish.levenshtein_distance(a, b)
        return (max_length - distance) / max_length * 100

    def _dice_coefficient(self, a: str, b: str) -> float:
        """Sørensen-Dice coefficient over character bigrams."""
        if len(a) < 2 or len(b) < 2:
            return 0.0

        bigrams_a = self._bigrams(a)
        bigrams_b = self._bigrams(b)
        overlap = len(bigrams_a & bigrams_b)
        return (2.0 * overlap / (len(bigrams_a) + len(bigrams_b))) * 100

    @staticmethod
    def _bigrams(text: str) -> Set[str]:
        return {text[i:i + 2] for i in range(len(text) - 1)}


def calculate_similarity(
    name_a: str, name_b: str, weights: Optional[AlgorithmWeights] = None
) -> SimilarityScores:
    """Score two normalized names with the given (or default) weights."""
    return SimilarityScorer(weights).score(name_a, name_b)
