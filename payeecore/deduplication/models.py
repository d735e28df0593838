"""
Duplicate Detection Data Model

Records, pairs, groups and run configuration shared by every stage of the
payee duplicate detection pipeline.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..errors import ConfigurationError


class ConfidenceTier(str, Enum):
    """Where a pair's combined score falls relative to the two thresholds."""

    HIGH = "High"
    LOW = "Low"
    AMBIGUOUS = "Ambiguous"


class JudgementMethod(str, Enum):
    """How the duplicate decision for a pair was reached."""

    HIGH_CONFIDENCE = "Algorithmic - High Confidence"
    LOW_CONFIDENCE = "Algorithmic - Low Confidence"
    AI_JUDGMENT = "AI Judgment"


@dataclass(frozen=True)
class DuplicateDetectionInput:
    """One payee record submitted to a detection run."""

    payee_id: str
    payee_name: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"payee_id": self.payee_id, "payee_name": self.payee_name}


@dataclass(frozen=True)
class CleanedRecord:
    """An input record with its normalized comparison form."""

    payee_id: str
    payee_name: Any
    cleaned_name: str

    @property
    def source(self) -> DuplicateDetectionInput:
        return DuplicateDetectionInput(payee_id=self.payee_id, payee_name=self.payee_name)


@dataclass(frozen=True)
class SimilarityScores:
    """Similarity metrics for one pair of cleaned names, each in [0, 100].

    ``combined`` is the weighted score before any same-entity floor.
    """

    levenshtein: float = 0.0
    jaro: float = 0.0
    jaro_winkler: float = 0.0
    dice: float = 0.0
    token_sort: float = 0.0
    token_set: float = 0.0
    combined: float = 0.0

    METRICS = ("levenshtein", "jaro", "jaro_winkler", "dice", "token_sort", "token_set")

    def metric(self, name: str) -> float:
        if name not in self.METRICS:
            raise KeyError(f"Unknown similarity metric: {name}")
        return getattr(self, name)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class AlgorithmWeights(BaseModel):
    """Weight of each similarity metric in the combined duplicate score."""

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    jaro_winkler: float = Field(
        0.2,
        ge=0,
        validation_alias=AliasChoices(
            "jaro_winkler", "jaroWinkler", "edit_distance", "editDistance"
        ),
    )
    token_sort: float = Field(
        0.4, ge=0, validation_alias=AliasChoices("token_sort", "tokenSort")
    )
    token_set: float = Field(
        0.4, ge=0, validation_alias=AliasChoices("token_set", "tokenSet")
    )
    levenshtein: float = Field(0.0, ge=0)
    jaro: float = Field(0.0, ge=0)
    dice: float = Field(0.0, ge=0)

    def as_dict(self) -> Dict[str, float]:
        return self.model_dump()


class DuplicateDetectionConfig(BaseModel):
    """Per-run settings for the duplicate detection engine.

    Accepts snake_case or camelCase keys. Unknown keys are rejected and any
    field left out keeps its documented default, including the individual
    entries of ``algorithm_weights``.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        allow_inf_nan=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    high_confidence_threshold: float = Field(95.0, ge=0, le=100)
    low_confidence_threshold: float = Field(75.0, ge=0, le=100)
    enable_ai_judgment: bool = True
    algorithm_weights: AlgorithmWeights = Field(default_factory=AlgorithmWeights)
    max_concurrent_judgments: int = Field(5, ge=1)
    judgment_timeout_seconds: Optional[float] = Field(30.0, gt=0)

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "DuplicateDetectionConfig":
        if self.low_confidence_threshold > self.high_confidence_threshold:
            raise ValueError(
                "low_confidence_threshold must not exceed high_confidence_threshold"
            )
        return self

    @classmethod
    def from_overrides(
        cls,
        overrides: Union["DuplicateDetectionConfig", Mapping[str, Any], None] = None,
    ) -> "DuplicateDetectionConfig":
        """Build a config from the documented defaults plus optional overrides.

        Raises:
            ConfigurationError: If the overrides are not a mapping or fail validation
        """
        if overrides is None:
            return cls()
        if isinstance(overrides, cls):
            return overrides
        return cls().merged(overrides)

    def merged(
        self,
        overrides: Union["DuplicateDetectionConfig", Mapping[str, Any], None] = None,
    ) -> "DuplicateDetectionConfig":
        """Return a copy of this config with ``overrides`` applied field by field."""
        if not overrides:
            return self

        if isinstance(overrides, DuplicateDetectionConfig):
            update = overrides.model_dump(exclude_unset=True)
        elif isinstance(overrides, Mapping):
            update = {_CONFIG_KEYS.get(key, key): value for key, value in overrides.items()}
        else:
            raise ConfigurationError(
                f"Config overrides must be a mapping, got {type(overrides).__name__}"
            )

        values = self.model_dump()
        weights = update.pop("algorithm_weights", None)
        if isinstance(weights, AlgorithmWeights):
            values["algorithm_weights"].update(weights.model_dump(exclude_unset=True))
        elif isinstance(weights, Mapping):
            values["algorithm_weights"].update(
                {_WEIGHT_KEYS.get(key, key): value for key, value in weights.items()}
            )
        elif weights is not None:
            raise ConfigurationError(
                "algorithm_weights must be a mapping of metric name to weight",
                config_key="algorithm_weights",
            )
        values.update(update)

        try:
            return DuplicateDetectionConfig.model_validate(values)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid duplicate detection config: {e}",
                config_key=key or None,
            ) from e


_CONFIG_KEYS = {
    to_camel(name): name for name in DuplicateDetectionConfig.model_fields
}

_WEIGHT_KEYS = {
    "jaroWinkler": "jaro_winkler",
    "editDistance": "jaro_winkler",
    "edit_distance": "jaro_winkler",
    "tokenSort": "token_sort",
    "tokenSet": "token_set",
}


@dataclass(frozen=True)
class DuplicatePair:
    """A scored, tiered pair of records (record1 precedes record2 in input order)."""

    record1: DuplicateDetectionInput
    record2: DuplicateDetectionInput
    similarity_scores: SimilarityScores
    final_duplicate_score: float
    confidence_tier: ConfidenceTier
    same_entity: bool = False


class AIJudgment(BaseModel):
    """Verdict returned by the arbitration oracle for one ambiguous pair."""

    model_config = ConfigDict(frozen=True)

    is_duplicate: StrictBool
    confidence: float
    reasoning: StrictStr

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence_is_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        if not math.isfinite(value):
            raise ValueError("confidence must be finite")
        return value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return max(0.0, min(100.0, float(value)))


@dataclass(frozen=True)
class JudgedPair:
    """A pair together with the funnel's duplicate decision."""

    pair: DuplicatePair
    is_duplicate: bool
    judgement_method: JudgementMethod
    ai_judgment: Optional[AIJudgment] = None

    @property
    def record1(self) -> DuplicateDetectionInput:
        return self.pair.record1

    @property
    def record2(self) -> DuplicateDetectionInput:
        return self.pair.record2

    @property
    def final_duplicate_score(self) -> float:
        return self.pair.final_duplicate_score

    @property
    def similarity_scores(self) -> SimilarityScores:
        return self.pair.similarity_scores

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return self.pair.confidence_tier


@dataclass
class DuplicateDetectionOutput:
    """An input record enriched with its duplicate status."""

    payee_id: str
    payee_name: Any
    is_potential_duplicate: bool
    duplicate_of_payee_id: Optional[str]
    duplicate_of_payee_name: Optional[Any]
    final_duplicate_score: float
    judgement_method: JudgementMethod
    ai_judgement_is_duplicate: Optional[bool]
    ai_judgement_reasoning: Optional[str]
    duplicate_group_id: str
    similarity_scores: Optional[SimilarityScores] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payee_id": self.payee_id,
            "payee_name": self.payee_name,
            "is_potential_duplicate": self.is_potential_duplicate,
            "duplicate_of_payee_id": self.duplicate_of_payee_id,
            "duplicate_of_payee_name": self.duplicate_of_payee_name,
            "final_duplicate_score": self.final_duplicate_score,
            "judgement_method": self.judgement_method.value,
            "ai_judgement_is_duplicate": self.ai_judgement_is_duplicate,
            "ai_judgement_reasoning": self.ai_judgement_reasoning,
            "duplicate_group_id": self.duplicate_group_id,
            "similarity_scores": (
                self.similarity_scores.to_dict() if self.similarity_scores else None
            ),
        }


@dataclass
class DuplicateGroup:
    """Two or more output records that refer to the same payee."""

    group_id: str
    canonical_payee_id: str
    canonical_payee_name: Any
    members: List[DuplicateDetectionOutput]
    total_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.group_id,
            "canonical_payee_id": self.canonical_payee_id,
            "canonical_payee_name": self.canonical_payee_name,
            "members": [member.to_dict() for member in self.members],
            "total_score": self.total_score,
        }


@dataclass
class DetectionStatistics:
    """Summary counts for one detection run."""

    total_processed: int = 0
    duplicates_found: int = 0
    high_confidence_matches: int = 0
    low_confidence_matches: int = 0
    ai_judgments_made: int = 0
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DuplicateDetectionResult:
    """Everything a detection run produces."""

    processed_records: List[DuplicateDetectionOutput] = field(default_factory=list)
    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    statistics: DetectionStatistics = field(default_factory=DetectionStatistics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed_records": [record.to_dict() for record in self.processed_records],
            "duplicate_groups": [group.to_dict() for group in self.duplicate_groups],
            "statistics": self.statistics.to_dict(),
        }
