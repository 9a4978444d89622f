"""Validation package."""

from permission_journal.validation.validator import (
    MAX_EMOTIONAL_IMPACT,
    MIN_EMOTIONAL_IMPACT,
    JournalValidator,
    clamp_emotional_impact,
    is_blank,
)

__all__ = [
    "MAX_EMOTIONAL_IMPACT",
    "MIN_EMOTIONAL_IMPACT",
    "JournalValidator",
    "clamp_emotional_impact",
    "is_blank",
]
