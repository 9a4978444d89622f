"""
Journal Insights

Derived, read-only statistics over a sequence of permissions. Every
function here is pure: the view model fetches the sorted permission list
once and passes it in.

Day arithmetic uses the calendar day of the stored (UTC) timestamp.
"""

from collections import Counter
from datetime import date
from typing import Iterable, Optional, Sequence

from permission_journal.models.schema import MoneyPermission


DEFAULT_HIGH_IMPACT_THRESHOLD = 8
DEFAULT_UNCATEGORIZED_LABEL = "Uncategorized"


def sort_permissions(permissions: Iterable[MoneyPermission]) -> list[MoneyPermission]:
    """Newest first: date desc, then created_at desc, then id."""
    ordered = sorted(permissions, key=lambda p: str(p.id))
    ordered.sort(key=lambda p: p.created_at, reverse=True)
    ordered.sort(key=lambda p: p.date, reverse=True)
    return ordered


def permissions_for_category(
    permissions: Sequence[MoneyPermission],
    category: Optional[str],
) -> list[MoneyPermission]:
    """All permissions if category is None, otherwise an exact name match."""
    if category is None:
        return list(permissions)
    return [p for p in permissions if p.category == category]


def permissions_with_outcome(permissions: Sequence[MoneyPermission]) -> list[MoneyPermission]:
    return [p for p in permissions if p.has_outcome]


def high_impact_permissions(
    permissions: Sequence[MoneyPermission],
    threshold: int = DEFAULT_HIGH_IMPACT_THRESHOLD,
) -> list[MoneyPermission]:
    return [p for p in permissions if p.emotional_impact >= threshold]


def longest_streak(permissions: Sequence[MoneyPermission]) -> int:
    """
    Consecutive calendar days ending at the most recent permission.

    Walks newest to oldest. A gap of exactly one day extends the streak,
    the first gap larger than one day ends it. Same-day entries (gap 0)
    neither extend nor end it.
    """
    ordered = sorted(permissions, key=lambda p: p.date, reverse=True)
    if not ordered:
        return 0

    streak = 1
    current_day = ordered[0].date.date()

    for permission in ordered[1:]:
        day = permission.date.date()
        gap = (current_day - day).days
        if gap == 1:
            streak += 1
            current_day = day
        elif gap > 1:
            break

    return streak


def most_common_tag(permissions: Sequence[MoneyPermission]) -> Optional[str]:
    """Most frequent tag across all permissions; ties go to the first seen."""
    counts = Counter(tag for p in permissions for tag in (p.emotional_tags or []))
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def category_impact_averages(
    permissions: Sequence[MoneyPermission],
    uncategorized_label: str = DEFAULT_UNCATEGORIZED_LABEL,
) -> dict[str, float]:
    """
    Average emotional impact per category.

    Only rated permissions (impact > 0) count toward an average. A
    category with no rated permissions averages 0.0.
    """
    groups: dict[str, list[int]] = {}
    for permission in permissions:
        key = permission.category or uncategorized_label
        impacts = groups.setdefault(key, [])
        if permission.is_rated:
            impacts.append(permission.emotional_impact)

    return {
        key: (sum(impacts) / len(impacts) if impacts else 0.0)
        for key, impacts in groups.items()
    }


def most_liberating_category(
    permissions: Sequence[MoneyPermission],
    uncategorized_label: str = DEFAULT_UNCATEGORIZED_LABEL,
) -> Optional[str]:
    """Category with the highest average emotional impact."""
    averages = category_impact_averages(permissions, uncategorized_label)
    if not averages:
        return None
    return max(averages, key=averages.get)


def biggest_boundary(
    permissions: Sequence[MoneyPermission],
    year: Optional[int] = None,
    uncategorized_label: str = DEFAULT_UNCATEGORIZED_LABEL,
) -> Optional[str]:
    """Category with the most permissions dated in `year` (default: this year)."""
    year = year or date.today().year
    counts = Counter(
        p.category or uncategorized_label
        for p in permissions
        if p.date.year == year
    )
    if not counts:
        return None
    return counts.most_common(1)[0][0]
