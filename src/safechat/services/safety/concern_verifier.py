"""
Concern Verifier

Second-pass severity scoring for messages flagged by the keyword
scanner. Calls an external classification model and enforces a
strict verdict contract on whatever comes back.

SAFETY-CRITICAL: verify() never raises. Timeout, transport errors,
non-2xx responses and unparseable bodies all produce a fail-open
verdict (real concern, level 3) so a teacher still reviews the
message. The system fails toward escalation, never toward silence.
"""

import asyncio
import math
import time
from typing import Any, Optional, Sequence

from safechat.config.logging_config import get_logger
from safechat.domain.enums.concern import ConcernCategory, ConcernLevel
from safechat.domain.models.concern_models import ChatTurn, ConcernVerdict
from safechat.infrastructure.llm.provider import LLMProvider, LLMProviderError, RateLimitError
from safechat.infrastructure.metrics.prometheus_metrics import (
    track_concern_level,
    track_verifier_failure,
    track_verifier_outcome,
)
from safechat.services.prompt.prompt_builder import VerificationPromptBuilder
from safechat.services.safety.helpline_registry import DEFAULT_CODE
from safechat.services.safety.safety_response import SafetyAdviceBuilder, ensure_disclosure
from safechat.services.safety.structured_decode import decode_json_object

logger = get_logger(__name__)

MISSING_EXPLANATION = "Analysis explanation missing or invalid format."


class ConcernVerifier:
    """
    Verifies keyword hits with a classification model.

    Contract enforcement on the model's JSON object:
    1. isRealConcern must be a bool, otherwise False
    2. concernLevel is rounded and clamped to [0, 5]; non-numbers give 0
    3. Missing analysisExplanation gets a placeholder
    4. Real concerns at or above the advice threshold always carry
       advice containing the disclosure sentence; below it, advice
       is dropped

    Usage:
        verifier = ConcernVerifier(provider, SafetyAdviceBuilder(HelplineRegistry()))
        verdict = await verifier.verify(text, ConcernCategory.SELF_HARM, context, "GB")
    """

    FAIL_OPEN_LEVEL: ConcernLevel = ConcernLevel.SIGNIFICANT

    def __init__(
        self,
        provider: LLMProvider,
        advice_builder: SafetyAdviceBuilder,
        prompt_builder: Optional[VerificationPromptBuilder] = None,
        timeout_seconds: float = 8.0,
        advice_threshold: int = 2,
    ) -> None:
        """
        Initialize verifier.

        Args:
            provider: Classification model provider
            advice_builder: Builds fallback advice from the helpline registry
            prompt_builder: Verification prompt builder
            timeout_seconds: Hard limit for one model call (including retries)
            advice_threshold: Minimum level at which advice is mandatory
        """
        self._provider = provider
        self._advice_builder = advice_builder
        self._prompt_builder = prompt_builder or VerificationPromptBuilder()
        self._timeout_seconds = timeout_seconds
        self._advice_threshold = advice_threshold

    async def verify(
        self,
        message: str,
        concern_type: ConcernCategory,
        context: Sequence[ChatTurn] = (),
        country_code: Optional[str] = None,
    ) -> ConcernVerdict:
        """
        Verify a flagged message.

        Args:
            message: Student message text
            concern_type: Category reported by the keyword scanner
            context: Prior turns, chronological (only the last few are used)
            country_code: Student's country code, may be None

        Returns:
            ConcernVerdict (fail-open verdict on any failure)
        """
        start_time = time.perf_counter()

        effective_code, entries = self._advice_builder.resolve(country_code)
        prompt = self._prompt_builder.build(
            message,
            concern_type,
            context,
            helpline_block=self._advice_builder.registry.format_block(entries),
            country_code=effective_code,
        )

        try:
            response = await asyncio.wait_for(
                self._provider.generate(prompt, json_mode=True),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Concern verification timeout - failing open",
                timeout=self._timeout_seconds,
            )
            return self._fail_open(concern_type, "timeout", "Verification timed out", start_time)
        except RateLimitError as e:
            logger.warning("Concern verification rate limited - failing open", error=str(e))
            return self._fail_open(concern_type, "rate_limited", str(e), start_time)
        except LLMProviderError as e:
            logger.error(
                "Concern verification provider error - failing open",
                provider=e.provider,
                status_code=e.status_code,
                error=str(e),
            )
            return self._fail_open(concern_type, "provider_error", str(e), start_time)
        except Exception as e:
            logger.error("Unexpected concern verification error - failing open", error=str(e))
            return self._fail_open(concern_type, "unexpected", str(e), start_time)

        decoded = decode_json_object(response.content)
        if not decoded.ok:
            logger.error(
                "Verifier response was not a JSON object - failing open",
                decode_error=decoded.error,
                response_chars=len(response.content or ""),
            )
            return self._fail_open(concern_type, "malformed", "Model response was not valid JSON", start_time)

        try:
            verdict = self.enforce_contract(
                decoded.value,
                concern_type,
                effective_code,
                tuple(e.name for e in entries),
            )
        except Exception as e:
            logger.error(
                "Verifier response violated the contract - failing open",
                error_type=type(e).__name__,
            )
            return self._fail_open(concern_type, "malformed", "Model response was unusable", start_time)

        outcome = "verified" if verdict.is_real_concern else "dismissed"
        track_verifier_outcome(outcome, time.perf_counter() - start_time)
        track_concern_level(concern_type.value, int(verdict.concern_level))

        logger.info(
            "Concern verified",
            concern_type=concern_type.value,
            is_real_concern=verdict.is_real_concern,
            concern_level=int(verdict.concern_level),
            decode_strategy=decoded.strategy,
            effective_country_code=effective_code,
        )

        return verdict

    def enforce_contract(
        self,
        analysis: dict[str, Any],
        concern_type: ConcernCategory,
        effective_code: str,
        helpline_names: tuple[str, ...] = (),
    ) -> ConcernVerdict:
        """
        Turn a decoded model object into a strict verdict.

        Args:
            analysis: Decoded JSON object from the model
            concern_type: Category under review
            effective_code: Resolved helpline table code
            helpline_names: Names of the resolved helplines

        Returns:
            ConcernVerdict satisfying the advice invariant
        """
        raw_real = analysis.get("isRealConcern")
        is_real_concern = raw_real if isinstance(raw_real, bool) else False

        concern_level = self._coerce_level(analysis.get("concernLevel"))

        raw_explanation = analysis.get("analysisExplanation")
        if isinstance(raw_explanation, str) and raw_explanation.strip():
            explanation = raw_explanation.strip()
        else:
            explanation = MISSING_EXPLANATION

        student_advice: Optional[str] = None
        if is_real_concern and concern_level >= self._advice_threshold:
            raw_advice = analysis.get("aiGeneratedAdvice")
            if isinstance(raw_advice, str) and raw_advice.strip():
                student_advice = ensure_disclosure(raw_advice.strip())
            else:
                logger.info("Model omitted advice, using fallback", concern_type=concern_type.value)
                student_advice = self._advice_builder.build(concern_type, effective_code).content

        return ConcernVerdict(
            is_real_concern=is_real_concern,
            concern_level=concern_level,
            explanation=explanation,
            student_advice=student_advice,
            effective_country_code=effective_code,
            helpline_names=helpline_names,
        )

    @staticmethod
    def _coerce_level(raw: Any) -> ConcernLevel:
        # bool is an int subclass but not a valid level
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return ConcernLevel.NONE
        # Range first: huge ints overflow float conversion
        if raw >= ConcernLevel.CRITICAL:
            return ConcernLevel.CRITICAL
        if raw <= ConcernLevel.NONE:
            return ConcernLevel.NONE
        if not math.isfinite(raw):
            return ConcernLevel.CRITICAL if raw > 0 else ConcernLevel.NONE
        return ConcernLevel.clamp(raw)

    def _fail_open(
        self,
        concern_type: ConcernCategory,
        reason: str,
        detail: str,
        start_time: float,
    ) -> ConcernVerdict:
        """Build the fail-open verdict from the DEFAULT helpline table."""
        track_verifier_failure(reason)
        track_verifier_outcome("fail_open", time.perf_counter() - start_time)

        advice = self._advice_builder.build_generic()
        return ConcernVerdict(
            is_real_concern=True,
            concern_level=self.FAIL_OPEN_LEVEL,
            explanation=f"Automated concern analysis failed ({detail}). Flagged for manual review.",
            student_advice=ensure_disclosure(advice.content),
            fail_open=True,
            effective_country_code=DEFAULT_CODE,
            helpline_names=advice.helpline_names,
        )
