"""
SafeChat - Student Safety Monitoring

This package provides the safety-concern detection and escalation
pipeline for a classroom chat platform used by minors.

IMPORTANT: This is a safety-critical system.
Automated analysis is best-effort triage; humans make the final call.
"""

__version__ = "0.1.0"
__author__ = "SafeChat Engineering Team"
