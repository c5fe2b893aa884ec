"""
Unit Tests for Settings

Nested settings read their own prefixed environment variables.
"""

from safechat.config.settings import SafetySettings, Settings, VerifierSettings


def test_verifier_timeout_from_env(monkeypatch):
    monkeypatch.setenv("SAFECHAT_VERIFIER_TIMEOUT_SECONDS", "12.5")

    assert VerifierSettings().timeout_seconds == 12.5
    assert Settings().verifier.timeout_seconds == 12.5


def test_thresholds_from_env(monkeypatch):
    monkeypatch.setenv("SAFECHAT_SAFETY_ESCALATION_THRESHOLD", "4")

    safety = SafetySettings()

    assert safety.escalation_threshold == 4
    assert safety.advice_threshold == 2


def test_defaults():
    verifier = VerifierSettings()

    assert verifier.timeout_seconds == 8.0
    assert verifier.temperature == 0.2
