"""
Journal Input Validation

DESIGN DECISION: Validation happens at the access-layer boundary, before
anything is inserted into the session. A rejected input creates no state
at all.

ERRORS block the operation:
- Blank permission statement
- Emotional impact that does not fit the 16-bit stored column
- Blank category / tag name

WARNINGS are logged and the input is stored as given:
- Emotional impact outside 0-10 (the input surface clamps; storage does not)
- Colour hex that is not 6 or 8 hex digits
- Blank tag names inside a permission's tag list

IMPORTANT: Validation NEVER silently fixes issues. Clamping is a separate
helper the input surface calls on purpose.
"""

import re
from typing import Iterable, Optional

from permission_journal.models.schema import STORED_IMPACT_MAX, STORED_IMPACT_MIN
from permission_journal.models.validation import ValidationIssue, ValidationResult


MIN_EMOTIONAL_IMPACT = 0
MAX_EMOTIONAL_IMPACT = 10

_HEX_COLOR = re.compile(r"^#?(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def clamp_emotional_impact(value: int) -> int:
    """Clamp a rating to the slider range 0-10."""
    return max(MIN_EMOTIONAL_IMPACT, min(MAX_EMOTIONAL_IMPACT, int(value)))


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class JournalValidator:
    """Validates journal inputs before they reach the store."""

    def validate_permission(
        self,
        statement: Optional[str],
        emotional_impact: int = 0,
        emotional_tags: Iterable[str] = (),
        operation: str = "create_permission",
    ) -> ValidationResult:
        issues = []

        if is_blank(statement):
            issues.append(ValidationIssue(
                field="statement",
                issue_type="missing",
                message="Permission statement cannot be empty",
                severity="error",
                suggested_fix="Write the permission you are giving yourself",
            ))

        if not STORED_IMPACT_MIN <= emotional_impact <= STORED_IMPACT_MAX:
            issues.append(ValidationIssue(
                field="emotional_impact",
                issue_type="out_of_storage_range",
                message=f"Emotional impact {emotional_impact} cannot be stored",
                severity="error",
                suggested_fix=f"Use {clamp_emotional_impact(emotional_impact)}",
            ))
        elif not MIN_EMOTIONAL_IMPACT <= emotional_impact <= MAX_EMOTIONAL_IMPACT:
            issues.append(ValidationIssue(
                field="emotional_impact",
                issue_type="out_of_range",
                message=f"Emotional impact {emotional_impact} is outside 0-10",
                severity="warning",
                suggested_fix=f"Use {clamp_emotional_impact(emotional_impact)}",
            ))

        if any(is_blank(tag) for tag in emotional_tags):
            issues.append(ValidationIssue(
                field="emotional_tags",
                issue_type="blank_entry",
                message="Tag list contains a blank tag",
                severity="warning",
            ))

        return ValidationResult(operation=operation, issues=issues)

    def validate_named(
        self,
        operation: str,
        name: Optional[str],
        color_hex: Optional[str] = None,
    ) -> ValidationResult:
        """Validate a category or tag."""
        issues = []

        if is_blank(name):
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name cannot be empty",
                severity="error",
            ))

        if color_hex and not _HEX_COLOR.match(color_hex):
            issues.append(ValidationIssue(
                field="color_hex",
                issue_type="invalid_format",
                message=f"Colour {color_hex!r} is not a 6 or 8 digit hex value",
                severity="warning",
                suggested_fix="Use a value like #FFD700",
            ))

        return ValidationResult(operation=operation, issues=issues)
