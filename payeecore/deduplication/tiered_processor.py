"""
Tiered Decision Funnel

Turns scored pairs into duplicate decisions. High and Low tier pairs are
decided on their score alone; Ambiguous pairs go to the arbitration oracle
when AI judgment is enabled. Oracle failures never escape the funnel: the
pair is resolved as a non-duplicate with a synthesized judgment.
"""

import asyncio
import logging
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import ValidationError

from ..errors import OracleError, OracleResponseError
from ..logging_config import log_error
from .models import (
    AIJudgment,
    ConfidenceTier,
    DuplicateDetectionConfig,
    DuplicatePair,
    JudgedPair,
    JudgementMethod,
)

FAILED_JUDGMENT_CONFIDENCE = 50.0


@runtime_checkable
class ArbitrationOracle(Protocol):
    """External judgment service consulted for Ambiguous pairs."""

    async def judge(self, name_a: Any, name_b: Any) -> AIJudgment:
        ...


def failed_judgment(error: Any) -> AIJudgment:
    """Conservative verdict used when the oracle cannot be consulted."""
    return AIJudgment(
        is_duplicate=False,
        confidence=FAILED_JUDGMENT_CONFIDENCE,
        reasoning=f"AI analysis failed: {error}",
    )


class TieredProcessor:
    """
    Three-tier decision funnel for scored duplicate pairs.

    Oracle calls are issued concurrently, bounded by
    ``max_concurrent_judgments``, and each is subject to
    ``judgment_timeout_seconds``. Results come back in input order.
    """

    def __init__(
        self,
        config: DuplicateDetectionConfig,
        oracle: Optional[ArbitrationOracle] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.oracle = oracle
        self.logger = logger or logging.getLogger(__name__)
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def process(self, pairs: Sequence[DuplicatePair]) -> List[JudgedPair]:
        """Decide every pair. Never raises because of the oracle."""
        self._semaphore = asyncio.Semaphore(self.config.max_concurrent_judgments)
        return list(await asyncio.gather(*(self.process_pair(pair) for pair in pairs)))

    async def process_pair(self, pair: DuplicatePair) -> JudgedPair:
        """Run one pair through the funnel."""
        if pair.confidence_tier is ConfidenceTier.HIGH:
            self.logger.debug(
                f"High confidence duplicate: {pair.record1.payee_id} = "
                f"{pair.record2.payee_id} ({pair.final_duplicate_score:.1f}%)"
            )
            return JudgedPair(
                pair=pair,
                is_duplicate=True,
                judgement_method=JudgementMethod.HIGH_CONFIDENCE,
            )

        if pair.confidence_tier is ConfidenceTier.AMBIGUOUS and self.config.enable_ai_judgment:
            judgment = await self._judge(pair)
            return JudgedPair(
                pair=pair,
                is_duplicate=judgment.is_duplicate,
                judgement_method=JudgementMethod.AI_JUDGMENT,
                ai_judgment=judgment,
            )

        # Low tier, or Ambiguous with AI judgment disabled
        return JudgedPair(
            pair=pair,
            is_duplicate=False,
            judgement_method=JudgementMethod.LOW_CONFIDENCE,
        )

    async def _judge(self, pair: DuplicatePair) -> AIJudgment:
        """Consult the oracle, converting any failure into a fallback verdict."""
        self.logger.debug(
            f"Ambiguous pair {pair.record1.payee_id} vs {pair.record2.payee_id} "
            f"({pair.final_duplicate_score:.1f}%), requesting AI judgment"
        )

        semaphore = self._semaphore or asyncio.Semaphore(self.config.max_concurrent_judgments)
        async with semaphore:
            try:
                judgment = await self._call_oracle(pair)
            except asyncio.TimeoutError:
                message = (
                    f"oracle timed out after {self.config.judgment_timeout_seconds}s"
                )
                self.logger.warning(
                    f"AI judgment timed out for {pair.record1.payee_id} vs "
                    f"{pair.record2.payee_id}, defaulting to non-duplicate"
                )
                return failed_judgment(message)
            except Exception as e:
                log_error(
                    self.logger.name,
                    f"AI judgment failed for {pair.record1.payee_id} vs "
                    f"{pair.record2.payee_id}, defaulting to non-duplicate",
                    e,
                    payee_id=pair.record1.payee_id,
                    other_payee_id=pair.record2.payee_id,
                )
                return failed_judgment(e)

        self.logger.debug(
            f"AI judgment: {'DUPLICATE' if judgment.is_duplicate else 'NOT DUPLICATE'} "
            f"({judgment.confidence:.0f}%)"
        )
        return judgment

    async def _call_oracle(self, pair: DuplicatePair) -> AIJudgment:
        if self.oracle is None:
            raise OracleError("No arbitration oracle configured")

        call = self.oracle.judge(pair.record1.payee_name, pair.record2.payee_name)
        timeout = self.config.judgment_timeout_seconds
        raw = await asyncio.wait_for(call, timeout) if timeout else await call

        try:
            return AIJudgment.model_validate(raw)
        except ValidationError as e:
            raise OracleResponseError(
                f"Malformed oracle response: {e.error_count()} validation error(s)",
                raw_response=repr(raw),
            ) from e
