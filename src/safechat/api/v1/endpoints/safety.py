"""
Safety Endpoints

Entry point called by the chat backend after a student message has
been stored, plus read-only helpers used by the student chat UI.

The full pipeline (verification, Flag, teacher alert, advice message)
runs as a background task so the chat-send request is never blocked
by the external classification call.
"""

from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, Field

from safechat.config.logging_config import get_logger
from safechat.domain.models.concern_models import RoomRef
from safechat.infrastructure.database.chat_store import SqlAlchemyChatStore
from safechat.services.safety.escalation_orchestrator import EscalationOrchestrator
from safechat.services.safety.helpline_registry import HelplineRegistry
from safechat.services.safety.interfaces import PersistenceError
from safechat.api.dependencies import (
    get_chat_store,
    get_helpline_registry,
    get_orchestrator,
)

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models

class SafetyCheckRequest(BaseModel):
    """A stored student message to run through the safety pipeline."""

    message_id: str = Field(..., min_length=1, description="ID of the stored message")
    message: str = Field(..., description="Message text")
    student_id: str = Field(..., min_length=1, description="Author of the message")
    room_id: str = Field(..., min_length=1)
    room_name: str = Field(..., description="Room display name used in teacher alerts")
    teacher_id: str = Field(..., min_length=1, description="Room owner")
    chatbot_id: Optional[str] = Field(default=None)
    country_code: Optional[str] = Field(default=None, description="Student's country code")


class SafetyCheckResponse(BaseModel):
    """Scan result returned to the chat backend."""

    type: Literal["safety_intervention_triggered", "no_concern"]
    concern_type: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "type": "safety_intervention_triggered",
                "concern_type": "self_harm",
            }
        }


class ScanRequest(BaseModel):
    """Text to scan."""

    message: str = Field(..., max_length=8000)


class ScanResponse(BaseModel):
    """Keyword scan result (diagnostic)."""

    has_concern: bool
    concern_type: Optional[str] = None
    matched_phrase: Optional[str] = None
    all_categories: list[str] = Field(default_factory=list)


class HelplineItem(BaseModel):
    name: str
    short_description: str = ""
    phone: Optional[str] = None
    website: Optional[str] = None
    text_to: Optional[str] = None
    text_message: Optional[str] = None


class HelplinesResponse(BaseModel):
    """Helplines resolved for a country code."""

    requested_country_code: str
    effective_country_code: str
    helplines: list[HelplineItem]


class SafetyMessageResponse(BaseModel):
    """A persisted safety advice message, if any."""

    found: bool
    message: Optional[dict] = None


@router.post(
    "/check",
    response_model=SafetyCheckResponse,
    summary="Check a stored student message for safety concerns",
)
async def check_message(
    request: SafetyCheckRequest,
    background_tasks: BackgroundTasks,
    orchestrator: EscalationOrchestrator = Depends(get_orchestrator),
) -> SafetyCheckResponse:
    """
    Scan a message and schedule the safety pipeline on a hit.

    The keyword scan is repeated inside the pipeline; it is cheap and
    keeps the background task self-contained.
    """
    message = request.message.strip()
    scan = orchestrator.scanner.scan(message)

    if not scan.has_concern or scan.concern_type is None:
        return SafetyCheckResponse(type="no_concern")

    logger.info(
        "Safety intervention triggered",
        message_id=request.message_id,
        room_id=request.room_id,
        concern_type=scan.concern_type.value,
    )

    background_tasks.add_task(
        orchestrator.check_message_safety,
        message_content=message,
        message_id=request.message_id,
        student_id=request.student_id,
        room=RoomRef(
            room_id=request.room_id,
            room_name=request.room_name,
            teacher_id=request.teacher_id,
            chatbot_id=request.chatbot_id,
        ),
        country_code=request.country_code,
    )

    return SafetyCheckResponse(
        type="safety_intervention_triggered",
        concern_type=scan.concern_type.value,
    )


@router.post(
    "/scan",
    response_model=ScanResponse,
    summary="Keyword scan only (diagnostic)",
)
async def scan_message(
    request: ScanRequest,
    orchestrator: EscalationOrchestrator = Depends(get_orchestrator),
) -> ScanResponse:
    scanner = orchestrator.scanner
    result = scanner.scan(request.message)
    return ScanResponse(
        has_concern=result.has_concern,
        concern_type=result.concern_type.value if result.concern_type else None,
        matched_phrase=result.matched_phrase,
        all_categories=[c.value for c in scanner.scan_all(request.message)],
    )


@router.get(
    "/helplines/{country_code}",
    response_model=HelplinesResponse,
    summary="Helplines for a country (falls back to DEFAULT)",
)
async def get_helplines(
    country_code: str,
    registry: HelplineRegistry = Depends(get_helpline_registry),
) -> HelplinesResponse:
    effective_code, entries = registry.resolve(country_code)
    return HelplinesResponse(
        requested_country_code=country_code,
        effective_country_code=effective_code,
        helplines=[
            HelplineItem(
                name=entry.name,
                short_description=entry.short_description,
                phone=entry.phone,
                website=entry.website,
                text_to=entry.text_to,
                text_message=entry.text_message,
            )
            for entry in entries
        ],
    )


@router.get(
    "/message",
    response_model=SafetyMessageResponse,
    summary="Latest (or a specific) safety advice message for a student",
)
async def get_safety_message(
    user_id: Optional[str] = None,
    room_id: Optional[str] = None,
    message_id: Optional[str] = None,
    store: SqlAlchemyChatStore = Depends(get_chat_store),
) -> SafetyMessageResponse:
    """
    Two lookup modes:
    - message_id + user_id: a specific message (404 if not found)
    - user_id + room_id: the latest one in the room
    """
    if not user_id or not (message_id or room_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_id and either message_id or room_id are required",
        )

    try:
        if message_id:
            message = await store.get_safety_message(message_id, user_id)
            if message is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Safety message not found",
                )
        else:
            message = await store.latest_safety_message(user_id, room_id)
    except PersistenceError as e:
        logger.error("Safety message lookup failed", operation=e.operation, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Safety message lookup failed",
        ) from e

    if message is None:
        return SafetyMessageResponse(found=False)
    return SafetyMessageResponse(found=True, message=message)
