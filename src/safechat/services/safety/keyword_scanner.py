"""
Keyword Scanner

Cheap lexical pre-filter for crisis-indicator phrases in student
chat messages. Only messages that match here are sent to the
concern verifier.

SAFETY-CRITICAL: Anything this scanner misses is never verified.
Phrase lists favour recall; the verifier removes false positives.

CLINICAL_REVIEW_REQUIRED: Phrase lists should be reviewed by
pastoral and safeguarding staff.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from safechat.domain.enums.concern import ConcernCategory
from safechat.domain.models.concern_models import KeywordScanResult
from safechat.config.logging_config import get_logger

logger = get_logger(__name__)

KeywordSet = Mapping[ConcernCategory, tuple[str, ...]]


# Category order is the tie-break for text matching several categories.
# Phrases are matched lower-case on word boundaries.
DEFAULT_KEYWORDS: KeywordSet = MappingProxyType({
    ConcernCategory.SELF_HARM: (
        "hate myself",
        "don't want to live",
        "don't want to be alive",
        "don't want to be here",
        "don't want to exist",
        "not worth going on",
        "no point in living",
        "no point going on",
        "rather be dead",
        "should end it",
        "should end it all",
        "end it all",
        "give up",
        "giving up",
        "kill myself",
        "want to die",
        "suicidal",
        "suicide",
        "take my own life",
        "take my life",
        "harming myself",
        "harm myself",
        "hurting myself",
        "cut myself",
        "cutting myself",
        "disappear forever",
        "everyone better off without me",
        "they'd be better off without me",
        "they would be better off without me",
        "leave this world",
        "escape this world",
        "stop existing",
        "tired of being alive",
        "tired of existing",
        "too much pain",
        "can't take it anymore",
        "life is too hard",
        "life isn't worth it",
        "never wake up",
        "wish i wouldn't wake up",
        "make the pain stop",
        "no hope left",
        "nowhere to turn",
        "plan to kill",
        "how to end",
        "easier if i wasn't here",
        "easier if i was gone",
    ),
    ConcernCategory.BULLYING: (
        "bullied",
        "bully",
        "bullying",
        "they hate me",
        "everyone hates me",
        "laughed at me",
        "laugh at me",
        "excluded",
        "leave me out",
        "leaving me out",
        "no friends",
        "don't have friends",
        "nobody likes me",
        "no one likes me",
        "call me names",
        "called me names",
        "push me around",
        "pushed me",
        "shove me",
        "shoved me",
        "making threats",
        "threatened me",
        "online bullying",
        "cyberbullying",
        "posting about me",
        "spreading rumors",
        "spreading rumours",
        "spreading lies",
        "everyone talks about me",
        "made fun of",
        "mock me",
        "mocking me",
        "rejected by everyone",
        "being isolated",
        "no one talks to me",
        "nobody talks to me",
        "they ignore me",
        "everyone ignores me",
        "being targeted",
        "pick on me",
        "won't leave me alone",
        "always after me",
        "ganging up on me",
        "scared to go to school",
        "don't want to go to school",
        "afraid at school",
        "scared at school",
    ),
    ConcernCategory.ABUSE: (
        "hurt me",
        "hurting me",
        "hitting me",
        "hit by",
        "kicks me",
        "kicking me",
        "pushes me",
        "throws things at me",
        "threw things at me",
        "threw something at me",
        "yells at me",
        "yelling at me",
        "screams at me",
        "screaming at me",
        "threatens me",
        "threatening me",
        "controls me",
        "controlling me",
        "not allowed to",
        "won't let me",
        "keeps me from",
        "locked me in",
        "locks me in",
        "touches me",
        "touched me",
        "uncomfortable touching",
        "hurt by someone",
        "afraid of them",
        "afraid to go home",
        "scared to go home",
        "not safe at home",
        "don't feel safe around",
        "being punished",
        "punishes me unfairly",
        "treated badly",
        "treats me badly",
        "calls me stupid",
        "calls me worthless",
        "makes me feel worthless",
        "makes me feel bad",
        "punched me",
        "punches me",
        "slapped me",
        "slaps me",
        "bruises from",
        "left bruises",
        "threatened to hurt me if i told",
        "can't tell anyone",
    ),
    ConcernCategory.DEPRESSION: (
        "hate my life",
        "no one cares",
        "nobody cares",
        "nobody loves me",
        "no one loves me",
        "feel empty",
        "feeling empty",
        "feel nothing",
        "feels like nothing matters",
        "nothing matters",
        "what's the point",
        "feel worthless",
        "feeling worthless",
        "don't feel anything",
        "don't know what to do",
        "can't see a future",
        "lost all hope",
        "lost hope",
        "given up",
        "feel like a failure",
        "am a failure",
        "everything is dark",
        "darkness closing in",
        "can't get out of bed",
        "can't face the day",
        "crying all the time",
        "crying myself to sleep",
        "never happy",
        "always feeling down",
        "feel so alone",
        "completely alone",
        "no one understands",
        "nobody understands",
        "don't enjoy anything",
        "nothing makes me happy",
        "too sad to function",
        "too sad to do anything",
        "life is meaningless",
        "unable to feel joy",
        "can't sleep",
        "can't eat",
        "can't concentrate",
        "mind feels foggy",
        "exhausted all the time",
        "overwhelmed by sadness",
        "drowning in sadness",
    ),
    ConcernCategory.FAMILY_ISSUES: (
        "parents always fighting",
        "parents always argue",
        "parents hate each other",
        "home is not safe",
        "scared at home",
        "afraid at home",
        "can't stand being home",
        "hate being home",
        "nowhere to go",
        "might get kicked out",
        "might be kicked out",
        "threatened to kick me out",
        "parent drinking",
        "parent drunk",
        "parents drunk",
        "drinking problem",
        "drug problem",
        "parents using drugs",
        "parent using drugs",
        "not enough food",
        "going hungry",
        "no food at home",
        "can't sleep at home",
        "parents separated",
        "parents separating",
        "parents broke up",
        "parents splitting up",
        "losing our house",
        "lost our house",
        "might be homeless",
        "could be homeless",
        "moving in with relatives",
        "have to move",
        "parent lost job",
        "no money for",
        "can't afford",
        "parent in jail",
        "parent arrested",
        "no one takes care of me",
        "have to take care of myself",
        "have to take care of my siblings",
        "parent is sick",
        "parent is ill",
        "parent in hospital",
        "no electricity",
        "utilities shut off",
        "water shut off",
    ),
})


@dataclass(frozen=True)
class CompositeHeuristic:
    """
    Phrase-combination rule evaluated after the phrase loop.

    Matches when any phrase of `first` and any phrase of `second`
    both occur as substrings of the lower-cased text.
    """

    name: str
    first: tuple[str, ...]
    second: tuple[str, ...]

    def matches(self, lowered: str) -> bool:
        return (
            any(p in lowered for p in self.first)
            and any(p in lowered for p in self.second)
        )


DEFAULT_HEURISTICS: tuple[CompositeHeuristic, ...] = (
    CompositeHeuristic(
        name="self_loathing_with_despair",
        first=("hate myself",),
        second=("not worth", "don't know what to do"),
    ),
    CompositeHeuristic(
        name="worthlessness_of_living",
        first=("not worth", "no point"),
        second=("going on", "living", "anymore"),
    ),
    CompositeHeuristic(
        name="general_despair",
        first=("don't know what to do",),
        second=("anymore", "sad", "feel"),
    ),
)

# Typographic apostrophes typed on phones
_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


def _normalize(text: str) -> str:
    return text.lower().translate(_APOSTROPHES)


class KeywordScanner:
    """
    Per-category phrase matcher.

    Behaviour:
    1. Empty or blank text never matches
    2. Categories are tried in table order, phrases in list order
    3. First word-boundary match wins (no severity ranking)
    4. Composite heuristics run afterwards, always tagged SELF_HARM

    Pure and deterministic: identical text gives an identical result.

    Usage:
        scanner = KeywordScanner()
        result = scanner.scan("I want to kill myself")
        result.concern_type  # ConcernCategory.SELF_HARM
    """

    HEURISTIC_CATEGORY: ConcernCategory = ConcernCategory.SELF_HARM

    def __init__(
        self,
        keywords: Optional[KeywordSet] = None,
        heuristics: Optional[tuple[CompositeHeuristic, ...]] = None,
    ) -> None:
        """
        Initialize scanner.

        Args:
            keywords: Category -> phrases table (defaults to DEFAULT_KEYWORDS)
            heuristics: Composite rules (defaults to DEFAULT_HEURISTICS)
        """
        self._keywords = keywords if keywords is not None else DEFAULT_KEYWORDS
        self._heuristics = heuristics if heuristics is not None else DEFAULT_HEURISTICS
        self._compiled: list[tuple[ConcernCategory, str, re.Pattern]] = [
            (category, phrase, self._compile(phrase))
            for category, phrases in self._keywords.items()
            for phrase in phrases
        ]

    @staticmethod
    def _compile(phrase: str) -> re.Pattern:
        return re.compile(rf"\b{re.escape(_normalize(phrase))}\b")

    def scan(self, text: Optional[str]) -> KeywordScanResult:
        """
        Scan message text for concern phrases.

        Args:
            text: Raw message text

        Returns:
            KeywordScanResult with the first matching category
        """
        if not text or not text.strip():
            return KeywordScanResult.clear()

        lowered = _normalize(text)

        for category, phrase, pattern in self._compiled:
            if pattern.search(lowered):
                return self._hit(category, phrase)

        for heuristic in self._heuristics:
            if heuristic.matches(lowered):
                return self._hit(self.HEURISTIC_CATEGORY, heuristic.name)

        return KeywordScanResult.clear()

    def _hit(self, category: ConcernCategory, phrase: str) -> KeywordScanResult:
        logger.info(
            "Keyword concern detected",
            concern_type=category.value,
            matched=phrase,
        )
        return KeywordScanResult(
            has_concern=True,
            concern_type=category,
            matched_phrase=phrase,
        )

    def scan_all(self, text: Optional[str]) -> list[ConcernCategory]:
        """
        List every category with at least one phrase match.

        Diagnostic only; the pipeline uses scan(). Useful for
        evaluating a severity-ranked tie-break against the
        first-match order.
        """
        if not text or not text.strip():
            return []
        lowered = _normalize(text)
        found: list[ConcernCategory] = []
        for category, _phrase, pattern in self._compiled:
            if category not in found and pattern.search(lowered):
                found.append(category)
        return found

