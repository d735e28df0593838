"""
Duplicate Group Assembly

Turns pairwise duplicate decisions into one enriched output row per input
record and the canonical duplicate groups built from those rows.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import (
    AIJudgment,
    DuplicateDetectionInput,
    DuplicateDetectionOutput,
    DuplicateGroup,
    JudgedPair,
    JudgementMethod,
    SimilarityScores,
)

UNIQUE_GROUP_PREFIX = "unique_"


@dataclass(frozen=True)
class _DuplicateLink:
    """Why one record was judged a duplicate of an earlier one."""

    duplicate_of: str
    final_duplicate_score: float
    judgement_method: JudgementMethod
    ai_judgment: Optional[AIJudgment]
    similarity_scores: SimilarityScores


def build_duplicate_map(judged_pairs: Sequence[JudgedPair]) -> Dict[str, _DuplicateLink]:
    """Map each duplicate record id to the record it duplicates.

    Pairs are read in enumeration order; record1 is canonical relative to
    record2 and the first claim on a record wins. Links are then resolved
    to the root canonical, so no record maps to another duplicate.
    """
    links: Dict[str, _DuplicateLink] = {}
    for judged in judged_pairs:
        if not judged.is_duplicate:
            continue
        duplicate_id = judged.record2.payee_id
        if duplicate_id in links:
            continue
        links[duplicate_id] = _DuplicateLink(
            duplicate_of=judged.record1.payee_id,
            final_duplicate_score=judged.final_duplicate_score,
            judgement_method=judged.judgement_method,
            ai_judgment=judged.ai_judgment,
            similarity_scores=judged.similarity_scores,
        )

    resolved = {}
    for duplicate_id, link in links.items():
        root = link.duplicate_of
        while root in links:
            root = links[root].duplicate_of
        resolved[duplicate_id] = (
            link if root == link.duplicate_of
            else _DuplicateLink(
                duplicate_of=root,
                final_duplicate_score=link.final_duplicate_score,
                judgement_method=link.judgement_method,
                ai_judgment=link.ai_judgment,
                similarity_scores=link.similarity_scores,
            )
        )
    return resolved


def generate_enriched_output(
    records: Sequence[DuplicateDetectionInput],
    judged_pairs: Sequence[JudgedPair],
) -> List[DuplicateDetectionOutput]:
    """Produce one output row per input record, in input order."""
    links = build_duplicate_map(judged_pairs)
    names = {record.payee_id: record.payee_name for record in records}
    canonical_ids = {link.duplicate_of for link in links.values()}

    output = []
    for record in records:
        link = links.get(record.payee_id)
        if link is not None:
            output.append(
                DuplicateDetectionOutput(
                    payee_id=record.payee_id,
                    payee_name=record.payee_name,
                    is_potential_duplicate=True,
                    duplicate_of_payee_id=link.duplicate_of,
                    duplicate_of_payee_name=names.get(link.duplicate_of),
                    final_duplicate_score=link.final_duplicate_score,
                    judgement_method=link.judgement_method,
                    ai_judgement_is_duplicate=(
                        link.ai_judgment.is_duplicate if link.ai_judgment else None
                    ),
                    ai_judgement_reasoning=(
                        link.ai_judgment.reasoning if link.ai_judgment else None
                    ),
                    duplicate_group_id=link.duplicate_of,
                    similarity_scores=link.similarity_scores,
                )
            )
        else:
            is_canonical = record.payee_id in canonical_ids
            output.append(
                DuplicateDetectionOutput(
                    payee_id=record.payee_id,
                    payee_name=record.payee_name,
                    is_potential_duplicate=False,
                    duplicate_of_payee_id=None,
                    duplicate_of_payee_name=None,
                    final_duplicate_score=0.0,
                    judgement_method=JudgementMethod.LOW_CONFIDENCE,
                    ai_judgement_is_duplicate=None,
                    ai_judgement_reasoning=None,
                    duplicate_group_id=(
                        record.payee_id if is_canonical
                        else f"{UNIQUE_GROUP_PREFIX}{record.payee_id}"
                    ),
                )
            )
    return output


def create_duplicate_groups(
    processed_records: Sequence[DuplicateDetectionOutput],
) -> List[DuplicateGroup]:
    """Group output rows by group id, keeping only groups of two or more.

    Groups are ordered by mean member score, highest first.
    """
    group_map: Dict[str, List[DuplicateDetectionOutput]] = {}
    for record in processed_records:
        group_map.setdefault(record.duplicate_group_id, []).append(record)

    groups = []
    for group_id, members in group_map.items():
        if len(members) < 2:
            continue
        canonical = next((m for m in members if not m.is_potential_duplicate), members[0])
        total_score = sum(m.final_duplicate_score for m in members) / len(members)
        groups.append(
            DuplicateGroup(
                group_id=group_id,
                canonical_payee_id=canonical.payee_id,
                canonical_payee_name=canonical.payee_name,
                members=list(members),
                total_score=total_score,
            )
        )

    groups.sort(key=lambda group: group.total_score, reverse=True)
    return groups
