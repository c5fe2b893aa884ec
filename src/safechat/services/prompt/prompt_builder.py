"""
Prompt Builder

Constructs the concern-verification prompt sent to the
classification model.

ARCHITECTURE: The prompt is bounded. The student message and each
context turn are truncated so a long conversation cannot push the
response contract out of the model's attention.

CLINICAL_REVIEW_REQUIRED: The severity scale and advice guidance
should be validated by safeguarding staff.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Sequence

from safechat.domain.enums.concern import ConcernCategory
from safechat.domain.models.concern_models import ChatTurn
from safechat.config.logging_config import get_logger

logger = get_logger(__name__)

HELPLINE_BLOCK_START = "=== HELPLINES START ==="
HELPLINE_BLOCK_END = "=== HELPLINES END ==="


@dataclass
class BuiltPrompt:
    """
    Complete prompt ready for the model.

    Attributes:
        system_prompt: Instruction prompt with the response contract
        user_message: Category, context, message and helpline block
        context_turns: Number of prior turns embedded
        max_tokens: Suggested max tokens for response
        temperature: Suggested temperature setting
    """

    system_prompt: str
    user_message: str = ""
    context_turns: int = 0
    max_tokens: int = 500
    temperature: float = 0.2

    def to_messages(self) -> list[dict]:
        """
        Convert to OpenAI-style message format.

        Returns:
            List of message dictionaries
        """
        messages = [{"role": "system", "content": self.system_prompt}]
        if self.user_message:
            messages.append({"role": "user", "content": self.user_message})
        return messages


def _truncate(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


@dataclass
class VerificationPromptBuilder:
    """
    Builds verification prompts.

    Usage:
        builder = VerificationPromptBuilder()
        prompt = builder.build(message, ConcernCategory.SELF_HARM, context, helpline_block)
        messages = prompt.to_messages()
    """

    max_message_chars: int = 2000
    max_turn_chars: int = 500
    max_context_turns: int = 3
    max_tokens: int = 500
    temperature: float = 0.2

    # CLINICAL_REVIEW_REQUIRED
    SYSTEM_PROMPT: ClassVar[str] = """You are an AI safety analyst reviewing a student's chat message on a school learning platform. Students are minors.

Task: Evaluate the student message ONLY for the concern category given. Decide whether it is a genuine concern and rate its severity:
0=None, 1=Minor, 2=Moderate, 3=Significant, 4=High, 5=Critical.
Distinguish real issues from fiction, song lyrics, homework topics and hypotheticals.

If the concern is genuine and the level is 2 or higher, write a short, warm reply to the student ("aiGeneratedAdvice"):
- Acknowledge their feelings without judgement
- Include this sentence exactly as written: "Remember, your teacher can see this conversation and is here to support you. Please feel comfortable reaching out to them or another trusted adult if you need help."
- List the helplines provided between the HELPLINES markers exactly as given; do not invent others
- Never diagnose and never promise confidentiality

Respond ONLY with a valid JSON object containing these exact keys:
"isRealConcern": boolean
"concernLevel": number (0-5)
"analysisExplanation": string (1-2 sentence explanation for the teacher)
"aiGeneratedAdvice": string or null (required when isRealConcern is true and concernLevel >= 2)"""

    def build(
        self,
        message: str,
        concern_type: ConcernCategory,
        context: Sequence[ChatTurn] = (),
        helpline_block: str = "",
        country_code: Optional[str] = None,
    ) -> BuiltPrompt:
        """
        Build the verification prompt.

        Args:
            message: Student message under review
            concern_type: Category reported by the keyword scanner
            context: Prior turns in chronological order
            helpline_block: Pre-formatted helpline bullets, embedded verbatim
            country_code: Effective helpline table code, for the model's reference

        Returns:
            BuiltPrompt ready for the provider
        """
        turns = list(context)[-self.max_context_turns:] if self.max_context_turns else []

        sections = [f"Concern Category Identified: {concern_type.prompt_label}"]

        if turns:
            history = "\n".join(
                f"{turn.speaker}: {_truncate(turn.content, self.max_turn_chars)}"
                for turn in turns
            )
            sections.append(f"Recent Conversation History (most recent last):\n{history}")

        sections.append(f'Student Message: "{_truncate(message, self.max_message_chars)}"')

        if helpline_block:
            label = f"Helplines for the student ({country_code})" if country_code else "Helplines for the student"
            sections.append(
                f"{label}:\n{HELPLINE_BLOCK_START}\n{helpline_block}\n{HELPLINE_BLOCK_END}"
            )

        sections.append("JSON Output:")

        logger.debug(
            "Verification prompt built",
            concern_type=concern_type.value,
            context_turns=len(turns),
        )

        return BuiltPrompt(
            system_prompt=self.SYSTEM_PROMPT,
            user_message="\n\n".join(sections),
            context_turns=len(turns),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
