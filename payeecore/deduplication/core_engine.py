"""
Core Duplicate Detection Engine

Orchestrates the payee duplicate detection pipeline: name normalization,
multi-metric pair scoring with same-entity shortcuts, the three-tier
decision funnel with AI arbitration, and canonical group assembly.
"""

import asyncio
import logging
import uuid
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Union

from ..errors import InputValidationError
from ..logging_config import Timer, log_context, log_event, log_performance
from .group_manager import create_duplicate_groups, generate_enriched_output
from .models import (
    CleanedRecord,
    DuplicateDetectionConfig,
    DuplicateDetectionInput,
    DuplicateDetectionResult,
    DuplicatePair,
)
from .name_normalizer import normalize_name
from .pair_analyzer import PairAnalyzer
from .statistics import generate_statistics
from .tiered_processor import ArbitrationOracle, TieredProcessor

ConfigOverrides = Union[DuplicateDetectionConfig, Mapping, None]


class DuplicateDetectionEngine:
    """
    Payee duplicate detection engine.

    Pair scoring is CPU bound and runs in a thread pool; only the oracle
    calls for Ambiguous pairs suspend the event loop. A run either returns a
    complete result or raises, never a partial result.
    """

    def __init__(
        self,
        config: ConfigOverrides = None,
        oracle: Optional[ArbitrationOracle] = None,
        logger: Optional[logging.Logger] = None,
        max_workers: int = 4,
        normalizer: Optional[Callable[[Any], str]] = None,
    ):
        """Initialize the engine.

        Args:
            config: Engine-wide config, merged over the defaults
            oracle: Arbitration oracle for Ambiguous pairs
            logger: Logger to report progress to (module logger if omitted)
            max_workers: Threads used for pair scoring
            normalizer: Name normalizer (``normalize_name`` if omitted)
        """
        self.config = DuplicateDetectionConfig.from_overrides(config)
        self.oracle = oracle
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = normalizer or normalize_name
        self.executor = ThreadPoolExecutor(max_workers=max_workers)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.shutdown()

    async def shutdown(self):
        """Shutdown the executor."""
        self.executor.shutdown(wait=True)

    def update_config(self, overrides: ConfigOverrides):
        """Apply overrides to the engine-wide configuration."""
        self.config = self.config.merged(overrides)

    async def detect_duplicates(
        self,
        records: Sequence,
        config: ConfigOverrides = None,
    ) -> DuplicateDetectionResult:
        """
        Detect duplicate payees in a batch of records.

        Args:
            records: ``DuplicateDetectionInput`` items or mappings with
                ``payee_id`` and ``payee_name``
            config: Per-run overrides of the engine config

        Returns:
            DuplicateDetectionResult with one output row per input record

        Raises:
            InputValidationError: If the batch cannot be processed
            ConfigurationError: If the overrides are invalid
        """
        run_config = self.config.merged(config)
        inputs = self._coerce_records(records)

        with log_context(detection_run_id=uuid.uuid4().hex[:12]), Timer() as timer:
            log_event(
                self.logger.name,
                f"Starting duplicate detection for {len(inputs)} records",
                record_count=len(inputs),
            )

            cleaned = [
                CleanedRecord(
                    payee_id=record.payee_id,
                    payee_name=record.payee_name,
                    cleaned_name=self.normalizer(record.payee_name),
                )
                for record in inputs
            ]

            loop = asyncio.get_running_loop()
            pairs = await loop.run_in_executor(
                self.executor, self._find_pairs, cleaned, run_config
            )
            self.logger.info(
                f"Found {len(pairs)} potential duplicate pairs in {timer.elapsed_ms:.1f}ms"
            )

            processor = TieredProcessor(run_config, oracle=self.oracle, logger=self.logger)
            judged_pairs = await processor.process(pairs)

            processed_records = generate_enriched_output(inputs, judged_pairs)
            duplicate_groups = create_duplicate_groups(processed_records)

        statistics = generate_statistics(processed_records, timer.duration_ms)
        log_performance(
            self.logger.name,
            "Duplicate detection",
            timer.duration_ms,
            total_processed=statistics.total_processed,
            duplicates_found=statistics.duplicates_found,
            ai_judgments_made=statistics.ai_judgments_made,
        )

        return DuplicateDetectionResult(
            processed_records=processed_records,
            duplicate_groups=duplicate_groups,
            statistics=statistics,
        )

    def _find_pairs(
        self, cleaned: List[CleanedRecord], config: DuplicateDetectionConfig
    ) -> List[DuplicatePair]:
        """Score and tier every candidate pair. Runs in the thread pool."""
        return PairAnalyzer(config).find_duplicate_pairs(cleaned)

    def _coerce_records(self, records: Any) -> List[DuplicateDetectionInput]:
        """Validate the batch and convert each item to a DuplicateDetectionInput."""
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            raise InputValidationError(
                f"Records must be a sequence, got {type(records).__name__}",
                field_name="records",
            )

        inputs = []
        seen_ids = set()
        for index, item in enumerate(records):
            if isinstance(item, DuplicateDetectionInput):
                payee_id, payee_name = item.payee_id, item.payee_name
            elif isinstance(item, Mapping):
                payee_id, payee_name = item.get("payee_id"), item.get("payee_name")
            else:
                raise InputValidationError(
                    f"Record {index} must be a mapping, got {type(item).__name__}",
                    field_name="records",
                    context={"index": index},
                )

            if isinstance(payee_id, int) and not isinstance(payee_id, bool):
                payee_id = str(payee_id)
            if not isinstance(payee_id, str) or not payee_id:
                raise InputValidationError(
                    f"Record {index} has no usable payee_id",
                    field_name="payee_id",
                    field_value=payee_id,
                    context={"index": index},
                )
            if payee_id in seen_ids:
                raise InputValidationError(
                    f"Duplicate payee_id {payee_id!r} in input",
                    field_name="payee_id",
                    field_value=payee_id,
                    context={"index": index},
                )
            seen_ids.add(payee_id)

            # Bad names are kept; they normalize to "" and match nothing
            inputs.append(DuplicateDetectionInput(payee_id=payee_id, payee_name=payee_name))
        return inputs


async def detect_duplicates(
    records: Sequence,
    config: ConfigOverrides = None,
    oracle: Optional[ArbitrationOracle] = None,
) -> DuplicateDetectionResult:
    """Run one detection with a throwaway engine."""
    async with DuplicateDetectionEngine(config=config, oracle=oracle) as engine:
        return await engine.detect_duplicates(records)
