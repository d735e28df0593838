"""
Payee Duplicate Detection

This module finds payee records that refer to the same real-world person or
business, even when their names differ in case, punctuation, word order or
legal suffix.

Components:
- Name Normalizer: Reduces raw names to a canonical comparison form
- Similarity Scoring: Multi-metric fuzzy matching with configurable weights
- Entity Shortcuts: Same-entity patterns the metrics underrate
- Tiered Processor: High/Low/Ambiguous decision funnel
- LLM Analyzer: AI arbitration of ambiguous pairs using GPT/Claude
- Group Manager: Canonical duplicate groups and enriched output
- Core Engine: Orchestrates the entire pipeline

Usage:
    from payeecore.deduplication import detect_duplicates

    result = await detect_duplicates(records, {"enableAiJudgment": False})
"""

from .core_engine import DuplicateDetectionEngine, detect_duplicates
from .entity_shortcuts import is_same_entity
from .group_manager import create_duplicate_groups, generate_enriched_output
from .llm_analyzer import LLMDuplicateJudge
from .models import (
    AIJudgment,
    AlgorithmWeights,
    CleanedRecord,
    ConfidenceTier,
    DetectionStatistics,
    DuplicateDetectionConfig,
    DuplicateDetectionInput,
    DuplicateDetectionOutput,
    DuplicateDetectionResult,
    DuplicateGroup,
    DuplicatePair,
    JudgedPair,
    JudgementMethod,
    SimilarityScores,
)
from .name_normalizer import NameNormalizer, normalize_name
from .pair_analyzer import PairAnalyzer, classify_confidence, find_duplicate_pairs
from .similarity_scoring import SimilarityScorer, calculate_similarity
from .statistics import generate_statistics
from .tiered_processor import ArbitrationOracle, TieredProcessor
from .validation import DUPLICATE_TEST_CASES, ValidationReport, run_duplicate_tests

__all__ = [
    # Core engine
    "DuplicateDetectionEngine",
    "detect_duplicates",
    # Data model
    "AIJudgment",
    "AlgorithmWeights",
    "CleanedRecord",
    "ConfidenceTier",
    "DetectionStatistics",
    "DuplicateDetectionConfig",
    "DuplicateDetectionInput",
    "DuplicateDetectionOutput",
    "DuplicateDetectionResult",
    "DuplicateGroup",
    "DuplicatePair",
    "JudgedPair",
    "JudgementMethod",
    "SimilarityScores",
    # Normalization and scoring
    "NameNormalizer",
    "normalize_name",
    "SimilarityScorer",
    "calculate_similarity",
    "is_same_entity",
    "PairAnalyzer",
    "classify_confidence",
    "find_duplicate_pairs",
    # Decision funnel
    "ArbitrationOracle",
    "TieredProcessor",
    "LLMDuplicateJudge",
    # Output
    "generate_enriched_output",
    "create_duplicate_groups",
    "generate_statistics",
    # Validation
    "DUPLICATE_TEST_CASES",
    "ValidationReport",
    "run_duplicate_tests",
]
