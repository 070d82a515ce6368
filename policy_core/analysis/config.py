"""
Configuration constants for the policy analysis pipeline.

Caps and risk tiers shared by the rule-based analyzer and the orchestrator.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunable limits for rule-based analysis and result merging."""

    # Output caps
    MAX_TAGS: int = 5
    MAX_KEY_POINTS: int = 3
    MIN_SENTENCE_LENGTH: int = 10

    # Risk tiers (number of distinct risk keywords present)
    HIGH_RISK_THRESHOLD: int = 3
    MEDIUM_RISK_THRESHOLD: int = 1

    # Quick mode only sends the head of the document
    QUICK_CONTENT_CHARS: int = 500


# Default configuration instance
DEFAULT_CONFIG = AnalysisConfig()
