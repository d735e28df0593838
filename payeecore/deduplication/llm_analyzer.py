"""
LLM Duplicate Judge

Arbitration oracle backed by a Large Language Model. Asked only about pairs
whose similarity score falls between the confidence thresholds, it decides
whether two payee names refer to the same real-world entity.
"""

import asyncio
import json
import logging
import os
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import anthropic
import openai
from pydantic import ValidationError

from ..errors import OracleError, OracleResponseError
from .models import AIJudgment

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a duplicate detection expert. Analyze payee names and return "
    "accurate JSON responses."
)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-20241022",
}

API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class LLMDuplicateJudge:
    """
    Decides ambiguous payee pairs with an OpenAI or Anthropic model.

    Every failure (no client, API error, empty or unparseable answer) raises
    an ``OracleError`` so the decision funnel can apply its fallback. Use
    ``judge_many`` for a batch helper that never raises.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, client: Any = None):
        """Initialize the judge.

        Args:
            config: Oracle settings, merged over the defaults
            client: Pre-built async SDK client; built from the api key if omitted
        """
        self.config = self._load_default_config()
        if config:
            self.config.update({k: v for k, v in config.items() if v is not None})

        self.provider = self.config["provider"]
        if self.provider not in DEFAULT_MODELS:
            raise OracleError(f"Unsupported oracle provider: {self.provider}")
        self.model = self.config.get("model") or DEFAULT_MODELS[self.provider]

        self.client = client if client is not None else self._initialize_client()

        # Statistics
        self.stats = {
            "total_judgments": 0,
            "successful_judgments": 0,
            "failed_judgments": 0,
            "duplicates_found": 0,
            "average_processing_time": 0.0,
        }

        # Rate limiting
        self.last_request_time = 0.0
        self.min_request_interval = 60 / max(self.config["max_requests_per_minute"], 1)
        self._rate_lock = asyncio.Lock()

    def _load_default_config(self) -> Dict[str, Any]:
        """Load default configuration."""
        return {
            "provider": "openai",
            "model": None,
            "api_key": None,
            "temperature": 0.1,
            "max_tokens": 300,
            "timeout": 30.0,
            "max_requests_per_minute": 60,
        }

    def _initialize_client(self) -> Any:
        """Build the async SDK client for the configured provider."""
        api_key = self.config.get("api_key") or os.getenv(API_KEY_ENV_VARS[self.provider])
        if not api_key:
            logger.warning(
                f"No {API_KEY_ENV_VARS[self.provider]} set - AI judgment will fail open"
            )
            return None

        if self.provider == "anthropic":
            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=self.config["timeout"])
        else:
            client = openai.AsyncOpenAI(api_key=api_key, timeout=self.config["timeout"])
        logger.info(f"{self.provider} client initialized for model {self.model}")
        return client

    @property
    def available(self) -> bool:
        return self.client is not None

    async def judge(self, name_a: Any, name_b: Any) -> AIJudgment:
        """
        Ask the model whether two payee names are the same entity.

        Args:
            name_a: First raw payee name
            name_b: Second raw payee name

        Returns:
            AIJudgment with confidence clamped to [0, 100]

        Raises:
            OracleError: If the model cannot be reached or returns garbage
        """
        if self.client is None:
            raise OracleError("No LLM client available", provider=self.provider)

        start_time = time.time()
        await self._enforce_rate_limit()

        try:
            prompt = self._generate_prompt(name_a, name_b)
            if self.provider == "anthropic":
                raw_response = await self._complete_with_anthropic(prompt)
            else:
                raw_response = await self._complete_with_openai(prompt)
            judgment = self._parse_llm_response(raw_response)
        except OracleError:
            self._record_failure()
            raise
        except Exception as e:
            self._record_failure()
            raise OracleError(f"{self.provider} request failed: {e}", provider=self.provider) from e

        processing_time = time.time() - start_time
        self._record_success(judgment, processing_time)
        logger.debug(
            f"AI judgment {name_a!r} vs {name_b!r}: "
            f"{'DUPLICATE' if judgment.is_duplicate else 'NOT DUPLICATE'} "
            f"({judgment.confidence:.0f}%) in {processing_time:.2f}s"
        )
        return judgment

    async def judge_many(self, pairs: Sequence[Tuple[Any, Any]]) -> List[AIJudgment]:
        """Judge pairs one after another; failures yield the conservative verdict."""
        logger.debug(f"Judging {len(pairs)} pairs sequentially")
        results = []
        for name_a, name_b in pairs:
            try:
                results.append(await self.judge(name_a, name_b))
            except OracleError as e:
                logger.error(f"Batch judgment failed for {name_a!r} vs {name_b!r}: {e}")
                results.append(
                    AIJudgment(
                        is_duplicate=False,
                        confidence=50.0,
                        reasoning=(
                            f"AI analysis failed: {e}. "
                            "Conservative non-duplicate judgment applied."
                        ),
                    )
                )
        return results

    async def _enforce_rate_limit(self):
        """Enforce the minimum interval between API requests."""
        async with self._rate_lock:
            time_since_last_request = time.time() - self.last_request_time
            if time_since_last_request < self.min_request_interval:
                await asyncio.sleep(self.min_request_interval - time_since_last_request)
            self.last_request_time = time.time()

    def _generate_prompt(self, name_a: Any, name_b: Any) -> str:
        """Generate the payee comparison prompt."""
        return f"""You are an expert at analyzing payee names to determine if they represent the same entity. Compare these two payee names and determine if they are duplicates.

PAYEE NAME 1: "{name_a}"
PAYEE NAME 2: "{name_b}"

SPECIFIC ANALYSIS REQUIRED:
1. Are these names referring to the same person or business entity?
2. Consider variations in business suffixes (INC, LLC, CORP, etc.) - these are usually the SAME entity
3. Consider case variations, abbreviations, and formatting differences
4. Consider partial names vs full names of the same entity

KEY DUPLICATE INDICATORS:
- Same core name with different business suffixes (INC, LLC, etc.) -> DUPLICATE
- Case-only differences ("CHRISTA" vs "Christa") -> DUPLICATE
- Abbreviations vs full forms ("McDonald's" vs "McDonalds") -> DUPLICATE
- Punctuation differences ("AT&T" vs "AT T") -> DUPLICATE
- Partial vs full names of same entity ("J Smith" vs "John Smith") -> DUPLICATE

IMPORTANT: Focus on whether these represent the SAME REAL-WORLD ENTITY, not just textual similarity.

Examples:
- "Christa INC" vs "CHRISTA" vs "Christa" -> ALL DUPLICATES (same person/entity with variations)
- "WALMART INC" vs "WAL-MART STORES" -> DUPLICATE (same company)
- "John Smith" vs "Jonathan Smith" -> LIKELY NOT DUPLICATE (different people)
- "ABC Company LLC" vs "ABC Company Corp" -> DUPLICATE (same business, different structure)

Return your analysis as JSON:
{{
  "is_duplicate": boolean,
  "confidence": number (0-100),
  "reasoning": "Explain WHY these names represent the same or different real-world entities"
}}"""

    async def _complete_with_openai(self, prompt: str) -> str:
        """Run the prompt through OpenAI chat completions."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config["temperature"],
            max_tokens=self.config["max_tokens"],
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def _complete_with_anthropic(self, prompt: str) -> str:
        """Run the prompt through Anthropic messages."""
        response = await self.client.messages.create(
            model=self.model,
            system=SYSTEM_PROMPT,
            max_tokens=self.config["max_tokens"],
            temperature=self.config["temperature"],
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            getattr(block, "text", "") for block in response.content or []
        )

    def _parse_llm_response(self, raw_response: str) -> AIJudgment:
        """Parse the model's answer into a validated judgment."""
        content = (raw_response or "").strip()
        if not content:
            raise OracleResponseError(
                f"Empty response from {self.provider}", provider=self.provider
            )

        json_start = content.find("{")
        json_end = content.rfind("}") + 1
        if json_start == -1 or json_end <= json_start:
            raise OracleResponseError(
                "No JSON found in response", raw_response=content, provider=self.provider
            )

        try:
            analysis = json.loads(content[json_start:json_end])
            return AIJudgment.model_validate(analysis)
        except (json.JSONDecodeError, ValidationError) as e:
            raise OracleResponseError(
                f"Invalid response format from {self.provider}: {e}",
                raw_response=content,
                provider=self.provider,
            ) from e

    def _record_success(self, judgment: AIJudgment, processing_time: float):
        self.stats["total_judgments"] += 1
        self.stats["successful_judgments"] += 1
        if judgment.is_duplicate:
            self.stats["duplicates_found"] += 1
        successes = self.stats["successful_judgments"]
        self.stats["average_processing_time"] = (
            (self.stats["average_processing_time"] * (successes - 1) + processing_time)
            / successes
        )

    def _record_failure(self):
        self.stats["total_judgments"] += 1
        self.stats["failed_judgments"] += 1

    def get_statistics(self) -> Dict[str, Any]:
        """Get judge statistics."""
        success_rate = (
            self.stats["successful_judgments"] / max(self.stats["total_judgments"], 1)
        ) * 100

        return {
            **self.stats,
            "success_rate": success_rate,
            "provider": self.provider,
            "model": self.model,
            "available": self.available,
        }
