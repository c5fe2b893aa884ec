"""
Best-effort structured decoding of model output.

Models asked for a JSON object still wrap it in code fences or
surround it with prose. decode_json_object tries, in order:

1. Fenced block (```json ... ``` or ``` ... ```)
2. Brace span (first "{" to last "}")
3. Raw parse of the whole text

The first strategy yielding a JSON object wins. It never raises;
callers branch on DecodeResult.ok.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of a decode attempt.

    Attributes:
        ok: Whether a JSON object was decoded
        value: Decoded object (empty when not ok)
        strategy: "fenced", "brace_span" or "raw" on success
        error: Reason for failure when not ok
    """

    ok: bool
    value: dict[str, Any] = field(default_factory=dict)
    strategy: Optional[str] = None
    error: Optional[str] = None


def _fenced(text: str) -> Optional[str]:
    match = _FENCED_BLOCK.search(text)
    return match.group(1).strip() if match else None


def _brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return None


def _raw(text: str) -> Optional[str]:
    return text


_STRATEGIES = (
    ("fenced", _fenced),
    ("brace_span", _brace_span),
    ("raw", _raw),
)


def decode_json_object(text: Optional[str]) -> DecodeResult:
    """
    Decode a JSON object from free-form model output.

    Args:
        text: Raw model output (may be None or empty)

    Returns:
        DecodeResult; ok is False if no strategy produced a JSON object
    """
    text = (text or "").strip()
    if not text:
        return DecodeResult(ok=False, error="empty response")

    last_error = "no JSON object found"
    for name, extract in _STRATEGIES:
        candidate = extract(text)
        if not candidate:
            continue
        try:
            value = json.loads(candidate)
        except ValueError as e:
            last_error = f"{name}: {e}"
            continue
        if isinstance(value, dict):
            return DecodeResult(ok=True, value=value, strategy=name)
        last_error = f"{name}: expected object, got {type(value).__name__}"

    return DecodeResult(ok=False, error=last_error)
