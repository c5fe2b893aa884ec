"""
Escalation Orchestrator

Main entry point of the safety pipeline. Runs once per inbound
student message, after the message has been stored:

    Scan -> context fetch -> Verify -> Escalate (Flag + alert)
                                    -> Advise (system message)

The two side-effect branches are independent: a failed Flag insert
never prevents the advice message, and vice versa.

SAFETY-CRITICAL: check_message_safety() never raises into the
message-send path. Every external call is isolated so the worst
case is "logged and skipped".
"""

from datetime import datetime
from typing import Optional

from safechat.config.logging_config import get_logger, message_log_context
from safechat.config.settings import Settings
from safechat.domain.models.concern_models import (
    ChatTurn,
    Flag,
    Profile,
    RoomRef,
    SafetyAdviceMessage,
)
from safechat.domain.models.pipeline_stages import (
    Advised,
    BranchStatus,
    Escalated,
    NoConcern,
    PipelineStage,
    SafetyCheckOutcome,
    Scanned,
    Verified,
)
from safechat.infrastructure.llm.provider import LLMProvider
from safechat.infrastructure.metrics.prometheus_metrics import (
    track_advice_message,
    track_flag_created,
    track_keyword_hit,
    track_persistence_failure,
    track_safety_check,
    track_teacher_alert,
)
from safechat.infrastructure.monitoring.sentry_integration import (
    capture_exception_with_context,
    capture_safety_event,
)
from safechat.services.prompt.prompt_builder import VerificationPromptBuilder
from safechat.services.safety.concern_verifier import ConcernVerifier
from safechat.services.safety.helpline_registry import HelplineRegistry
from safechat.services.safety.interfaces import AlertDispatcher, ChatStore
from safechat.services.safety.keyword_scanner import KeywordScanner
from safechat.services.safety.safety_response import SafetyAdviceBuilder

logger = get_logger(__name__)

REVIEW_PATH = "/teacher-dashboard/concerns"


def fallback_student_name(student_id: str) -> str:
    """Display name used when the student profile has no name."""
    return f"Student ({student_id[:6]}...)"


class EscalationOrchestrator:
    """
    Sequences the safety pipeline and owns its side effects.

    No deduplication guard: callers must invoke it at most once
    per message.

    Usage:
        orchestrator = EscalationOrchestrator(scanner, verifier, store, dispatcher)
        outcome = await orchestrator.check_message_safety(
            message_content="...",
            message_id=message_id,
            student_id=student_id,
            room=RoomRef(room_id, room_name, teacher_id, chatbot_id),
            country_code="GB",
        )
    """

    def __init__(
        self,
        scanner: KeywordScanner,
        verifier: ConcernVerifier,
        store: ChatStore,
        dispatcher: AlertDispatcher,
        escalation_threshold: int = 3,
        context_fetch_limit: int = 4,
        app_url: str = "http://localhost:3000",
        excerpt_max_chars: int = 1000,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            scanner: Lexical pre-filter
            verifier: Concern verifier (enforces the advice threshold)
            store: Chat/flag persistence
            dispatcher: Teacher alert transport
            escalation_threshold: Minimum verified level that creates a Flag
            context_fetch_limit: Prior messages fetched for verification
            app_url: Base URL for teacher review links
            excerpt_max_chars: Maximum message excerpt in alerts
        """
        self._scanner = scanner
        self._verifier = verifier
        self._store = store
        self._dispatcher = dispatcher
        self._escalation_threshold = escalation_threshold
        self._context_fetch_limit = context_fetch_limit
        self._app_url = app_url.rstrip("/")
        self._excerpt_max_chars = excerpt_max_chars

    @property
    def scanner(self) -> KeywordScanner:
        return self._scanner

    async def check_message_safety(
        self,
        message_content: str,
        message_id: str,
        student_id: str,
        room: RoomRef,
        country_code: Optional[str] = None,
    ) -> SafetyCheckOutcome:
        """
        Run the safety pipeline for one stored student message.

        Args:
            message_content: Message text (already trimmed)
            message_id: ID of the stored message
            student_id: Author of the message
            room: Room the message was sent in
            country_code: Student's country code for helpline localization

        Returns:
            SafetyCheckOutcome; unexpected errors are captured in .error
        """
        trail: list[PipelineStage] = []

        with message_log_context(message_id, room.room_id):
            try:
                return await self._run(
                    message_content, message_id, student_id, room, country_code, trail,
                )
            except Exception as e:
                logger.error(
                    "Safety pipeline failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    stages=[s.stage for s in trail],
                )
                capture_exception_with_context(
                    e,
                    message_id=message_id,
                    extra={"room_id": room.room_id, "stages": [s.stage for s in trail]},
                )
                track_safety_check("error")

                final_stage = next(
                    (s for s in reversed(trail) if isinstance(s, (NoConcern, Scanned, Verified))),
                    NoConcern(message_id=message_id),
                )
                return SafetyCheckOutcome(
                    message_id=message_id,
                    final_stage=final_stage,
                    error=str(e),
                    stages=tuple(s.stage for s in trail),
                )

    async def _run(
        self,
        message_content: str,
        message_id: str,
        student_id: str,
        room: RoomRef,
        country_code: Optional[str],
        trail: list[PipelineStage],
    ) -> SafetyCheckOutcome:
        # Step 1: Scan
        scan = self._scanner.scan(message_content)
        if not scan.has_concern or scan.concern_type is None:
            trail.append(NoConcern(message_id=message_id))
            track_safety_check("no_concern")
            return SafetyCheckOutcome(
                message_id=message_id,
                final_stage=trail[-1],
                stages=tuple(s.stage for s in trail),
            )

        scanned = Scanned(
            message_id=message_id,
            concern_type=scan.concern_type,
            matched_phrase=scan.matched_phrase,
        )
        trail.append(scanned)
        track_keyword_hit(scanned.concern_type.value)

        # Step 2: Context fetch
        anchor_time, chatbot_id = await self._resolve_anchor(message_id, room)
        context = await self._fetch_context(room, student_id, chatbot_id, anchor_time)

        # Step 3: Verify (always yields a verdict)
        verdict = await self._verifier.verify(
            message_content,
            scanned.concern_type,
            context,
            country_code,
        )
        verified = Verified(scanned=scanned, verdict=verdict, context=tuple(context))
        trail.append(verified)

        # Step 4: Escalate (independent)
        if verdict.meets(self._escalation_threshold):
            escalation = await self._escalate(verified, message_content, student_id, room)
            trail.append(escalation)
        else:
            escalation = Escalated(status=BranchStatus.SKIPPED)

        # Step 5: Advise (independent)
        if verdict.student_advice:
            advice = await self._advise(verified, student_id, room, chatbot_id)
            trail.append(advice)
        else:
            advice = Advised(status=BranchStatus.SKIPPED)

        track_safety_check("verified")

        outcome = SafetyCheckOutcome(
            message_id=message_id,
            final_stage=verified,
            escalation=escalation,
            advice=advice,
            stages=tuple(s.stage for s in trail),
        )
        logger.info(
            "Safety check complete",
            concern_type=verified.concern_type.value,
            escalation=escalation.status.value,
            advice_status=advice.status.value,
            outcome=outcome.to_dict(),
        )
        return outcome

    async def _resolve_anchor(self, message_id: str, room: RoomRef) -> tuple[datetime, Optional[str]]:
        """Timestamp and chatbot of the stored message; "now" and the room's chatbot if unavailable."""
        try:
            anchor = await self._store.get_message_anchor(message_id)
        except Exception as e:
            logger.warning("Message anchor lookup failed", error=str(e))
            track_persistence_failure("get_message_anchor")
            anchor = None

        if anchor is None:
            return datetime.utcnow(), room.chatbot_id

        created_at, chatbot_id = anchor
        return created_at, chatbot_id or room.chatbot_id

    async def _fetch_context(
        self,
        room: RoomRef,
        student_id: str,
        chatbot_id: Optional[str],
        before: datetime,
    ) -> list[ChatTurn]:
        if self._context_fetch_limit <= 0:
            return []
        try:
            return await self._store.fetch_prior_messages(
                room.room_id,
                student_id,
                chatbot_id,
                before,
                self._context_fetch_limit,
            )
        except Exception as e:
            logger.warning("Context fetch failed, verifying without context", error=str(e))
            track_persistence_failure("fetch_prior_messages")
            return []

    async def _lookup_profile(self, user_id: str, role: str) -> Optional[Profile]:
        try:
            profile = await self._store.get_profile(user_id)
        except Exception as e:
            logger.warning("Profile lookup failed", role=role, error=str(e))
            track_persistence_failure("get_profile")
            return None
        if profile is None:
            logger.warning("Profile not found", role=role)
        return profile

    async def _escalate(
        self,
        verified: Verified,
        message_content: str,
        student_id: str,
        room: RoomRef,
    ) -> Escalated:
        """Insert a pending Flag, then alert the teacher."""
        verdict = verified.verdict

        teacher = await self._lookup_profile(room.teacher_id, "teacher")
        student = await self._lookup_profile(student_id, "student")

        flag = Flag(
            message_id=verified.scanned.message_id,
            student_id=student_id,
            teacher_id=room.teacher_id,
            room_id=room.room_id,
            concern_type=verified.concern_type,
            concern_level=verdict.concern_level,
            explanation=verdict.explanation,
        )

        try:
            flag_id = await self._store.insert_flag(flag)
        except Exception as e:
            logger.error("Flag insert failed", error=str(e))
            track_persistence_failure("insert_flag")
            capture_safety_event(
                "Flag insert failed for verified concern",
                level="error",
                extra={
                    "message_id": flag.message_id,
                    "concern_type": flag.concern_type.value,
                    "concern_level": int(flag.concern_level),
                    "error": str(e),
                },
            )
            return Escalated(status=BranchStatus.FAILED, error=str(e))

        track_flag_created(flag.concern_type.value)
        logger.info(
            "Flag created",
            flag_id=flag_id,
            concern_type=flag.concern_type.value,
            concern_level=int(flag.concern_level),
        )

        alert_sent = await self._send_alert(
            teacher=teacher,
            student_name=student.full_name if student and student.full_name else fallback_student_name(student_id),
            room=room,
            verified=verified,
            excerpt=message_content[:self._excerpt_max_chars],
            review_url=f"{self._app_url}{REVIEW_PATH}/{flag_id}",
        )

        return Escalated(status=BranchStatus.COMPLETED, flag_id=flag_id, alert_sent=alert_sent)

    async def _send_alert(
        self,
        teacher: Optional[Profile],
        student_name: str,
        room: RoomRef,
        verified: Verified,
        excerpt: str,
        review_url: str,
    ) -> bool:
        if teacher is None or not teacher.email:
            logger.warning("No teacher email, alert not sent", teacher_id=room.teacher_id)
            track_teacher_alert("no_recipient")
            return False

        try:
            sent = await self._dispatcher.send_teacher_alert(
                teacher_email=teacher.email,
                student_name=student_name,
                room_name=room.room_name,
                concern_type=verified.concern_type,
                concern_level=verified.verdict.concern_level,
                excerpt=excerpt,
                review_url=review_url,
            )
        except Exception as e:
            logger.error("Teacher alert dispatch failed", error=str(e))
            sent = False

        track_teacher_alert("sent" if sent else "failed")
        return sent

    async def _advise(
        self,
        verified: Verified,
        student_id: str,
        room: RoomRef,
        chatbot_id: Optional[str],
    ) -> Advised:
        """Persist the verdict's advice as a system chat message."""
        verdict = verified.verdict
        advice = SafetyAdviceMessage(
            room_id=room.room_id,
            student_id=student_id,
            content=verdict.student_advice or "",
            concern_type=verified.concern_type,
            concern_level=verdict.concern_level,
            effective_country_code=verdict.effective_country_code,
            helpline_names=verdict.helpline_names,
            chatbot_id=chatbot_id,
        )

        try:
            advice_message_id = await self._store.insert_system_message(
                room_id=advice.room_id,
                student_id=advice.student_id,
                content=advice.content,
                metadata=advice.metadata,
                chatbot_id=advice.chatbot_id,
            )
        except Exception as e:
            logger.error("Safety advice insert failed", error=str(e))
            track_persistence_failure("insert_system_message")
            track_advice_message("failed")
            return Advised(status=BranchStatus.FAILED, error=str(e))

        track_advice_message("created")
        logger.info("Safety advice message created", advice_message_id=advice_message_id)
        return Advised(status=BranchStatus.COMPLETED, advice_message_id=advice_message_id)


def build_escalation_orchestrator(
    settings: Settings,
    store: ChatStore,
    dispatcher: AlertDispatcher,
    provider: Optional[LLMProvider] = None,
    registry: Optional[HelplineRegistry] = None,
) -> EscalationOrchestrator:
    """
    Wire an orchestrator from settings.

    Args:
        settings: Application settings
        store: Chat/flag persistence
        dispatcher: Teacher alert transport
        provider: Classification provider (defaults to the configured one)
        registry: Helpline registry (defaults to built-ins plus the configured JSON file)
    """
    if provider is None:
        from safechat.infrastructure.llm.provider_factory import get_llm_provider
        provider = get_llm_provider()

    safety = settings.safety
    if registry is None:
        registry = HelplineRegistry(config_path=safety.helplines_config_path)
    advice_builder = SafetyAdviceBuilder(registry, max_helplines=safety.max_helplines)

    verifier = ConcernVerifier(
        provider=provider,
        advice_builder=advice_builder,
        prompt_builder=VerificationPromptBuilder(
            max_context_turns=safety.context_prompt_turns,
            max_tokens=settings.verifier.max_tokens,
            temperature=settings.verifier.temperature,
        ),
        timeout_seconds=settings.verifier.timeout_seconds,
        advice_threshold=safety.advice_threshold,
    )

    return EscalationOrchestrator(
        scanner=KeywordScanner(),
        verifier=verifier,
        store=store,
        dispatcher=dispatcher,
        escalation_threshold=safety.escalation_threshold,
        context_fetch_limit=safety.context_fetch_limit,
        app_url=safety.app_url,
        excerpt_max_chars=safety.excerpt_max_chars,
    )
