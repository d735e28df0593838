"""Summary statistics for a detection run."""

from typing import Sequence

from .models import DetectionStatistics, DuplicateDetectionOutput, JudgementMethod


def generate_statistics(
    processed_records: Sequence[DuplicateDetectionOutput],
    processing_time_ms: float,
) -> DetectionStatistics:
    """Count the run's outcomes from the enriched output rows."""
    method_counts = {method: 0 for method in JudgementMethod}
    for record in processed_records:
        method_counts[record.judgement_method] += 1

    return DetectionStatistics(
        total_processed=len(processed_records),
        duplicates_found=sum(1 for r in processed_records if r.is_potential_duplicate),
        high_confidence_matches=method_counts[JudgementMethod.HIGH_CONFIDENCE],
        low_confidence_matches=method_counts[JudgementMethod.LOW_CONFIDENCE],
        ai_judgments_made=method_counts[JudgementMethod.AI_JUDGMENT],
        processing_time_ms=processing_time_ms,
    )
