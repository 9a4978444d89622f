"""Tests for the pure insight functions."""

from datetime import date, datetime
from uuid import UUID

from permission_journal.journal import insights
from permission_journal.models.schema import MoneyPermission


def make_permission(
    day: date,
    category=None,
    tags=(),
    impact: int = 0,
    created_at: datetime = datetime(2024, 1, 1),
    outcome=None,
    permission_id: UUID = None,
) -> MoneyPermission:
    return MoneyPermission(
        id=permission_id,
        statement="I can",
        date=datetime.combine(day, datetime.min.time()),
        category=category,
        emotional_tags=list(tags),
        emotional_impact=impact,
        actual_outcome=outcome,
        created_at=created_at,
        updated_at=created_at,
    )


class TestLongestStreak:
    """Tests for longest_streak()."""

    def test_empty(self):
        """Test no permissions means no streak."""
        assert insights.longest_streak([]) == 0

    def test_single_entry(self):
        """Test one permission is a streak of one."""
        assert insights.longest_streak([make_permission(date(2024, 1, 1))]) == 1

    def test_gap_ends_streak(self):
        """Test a gap of two days ends the streak."""
        permissions = [
            make_permission(date(2024, 1, 5)),
            make_permission(date(2024, 1, 4)),
            make_permission(date(2024, 1, 3)),
            make_permission(date(2024, 1, 1)),
        ]
        assert insights.longest_streak(permissions) == 3

    def test_input_order_does_not_matter(self):
        """Test permissions are sorted before counting."""
        permissions = [
            make_permission(date(2024, 1, 3)),
            make_permission(date(2024, 1, 5)),
            make_permission(date(2024, 1, 4)),
        ]
        assert insights.longest_streak(permissions) == 3

    def test_only_streak_ending_at_latest_entry_counts(self):
        """Test an older, longer run is not counted."""
        # Older run of four days is ignored
        permissions = [make_permission(date(2024, 1, 20))] + [
            make_permission(date(2024, 1, d)) for d in (1, 2, 3, 4)
        ]
        assert insights.longest_streak(permissions) == 1

    def test_same_day_entries_neither_count_nor_break(self):
        """Test repeated days are skipped."""
        permissions = [
            make_permission(date(2024, 1, 5)),
            make_permission(date(2024, 1, 5)),
            make_permission(date(2024, 1, 4)),
            make_permission(date(2024, 1, 4)),
            make_permission(date(2024, 1, 3)),
        ]
        assert insights.longest_streak(permissions) == 3


class TestTagsAndFilters:
    """Tests for tag frequency and the list filters."""

    def test_most_common_tag(self):
        """Test tags are counted across permissions."""
        permissions = [
            make_permission(date(2024, 1, 1), tags=["A", "B"]),
            make_permission(date(2024, 1, 2), tags=["A"]),
            make_permission(date(2024, 1, 3), tags=["B", "B"]),
        ]
        assert insights.most_common_tag(permissions) == "B"

    def test_most_common_tag_none_without_tags(self):
        """Test None when no permission has tags."""
        assert insights.most_common_tag([make_permission(date(2024, 1, 1))]) is None

    def test_tie_goes_to_first_seen(self):
        """Test ties resolve to the tag seen first."""
        permissions = [
            make_permission(date(2024, 1, 1), tags=["calm"]),
            make_permission(date(2024, 1, 2), tags=["brave"]),
        ]
        assert insights.most_common_tag(permissions) == "calm"

    def test_filters(self):
        """Test the category, outcome and high impact filters."""
        low = make_permission(date(2024, 1, 1), category="Food", impact=3)
        high = make_permission(date(2024, 1, 2), category="Fun", impact=8, outcome="Loved it")
        blank_outcome = make_permission(date(2024, 1, 3), outcome="   ")
        permissions = [low, high, blank_outcome]

        assert insights.permissions_for_category(permissions, None) == permissions
        assert insights.permissions_for_category(permissions, "Food") == [low]
        assert insights.permissions_with_outcome(permissions) == [high]
        assert insights.high_impact_permissions(permissions) == [high]
        assert insights.high_impact_permissions(permissions, threshold=3) == [low, high]

    def test_sort_permissions(self):
        """Test sort by date, then created_at, then id."""
        a = make_permission(date(2024, 1, 1), created_at=datetime(2024, 1, 1, 9),
                            permission_id=UUID(int=2))
        b = make_permission(date(2024, 1, 1), created_at=datetime(2024, 1, 1, 9),
                            permission_id=UUID(int=1))
        c = make_permission(date(2024, 1, 1), created_at=datetime(2024, 1, 1, 10))
        d = make_permission(date(2024, 1, 2))
        c.id = UUID(int=3)
        d.id = UUID(int=4)

        assert insights.sort_permissions([a, b, c, d]) == [d, c, b, a]


class TestCategoryInsights:
    """Tests for per-category averages and counts."""

    def test_averages_ignore_unrated(self):
        """Test unrated permissions do not pull averages down."""
        permissions = [
            make_permission(date(2024, 1, 1), category="Travel", impact=10),
            make_permission(date(2024, 1, 2), category="Travel", impact=0),
            make_permission(date(2024, 1, 3), category="Travel", impact=6),
            make_permission(date(2024, 1, 4), category="Home", impact=0),
            make_permission(date(2024, 1, 5), impact=4),
        ]
        assert insights.category_impact_averages(permissions) == {
            "Travel": 8.0,
            "Home": 0.0,
            "Uncategorized": 4.0,
        }
        assert insights.most_liberating_category(permissions) == "Travel"

    def test_custom_uncategorized_label(self):
        """Test the uncategorized label is configurable."""
        permissions = [make_permission(date(2024, 1, 1), impact=5)]
        assert insights.category_impact_averages(permissions, "None yet") == {"None yet": 5.0}

    def test_most_liberating_category_empty(self):
        """Test None for an empty journal."""
        assert insights.most_liberating_category([]) is None

    def test_biggest_boundary_by_year(self):
        """Test the most used category within one year."""
        permissions = [
            make_permission(date(2023, 12, 31), category="Gifts"),
            make_permission(date(2023, 12, 30), category="Gifts"),
            make_permission(date(2024, 1, 1), category="Food"),
            make_permission(date(2024, 1, 2)),
            make_permission(date(2024, 1, 3)),
        ]
        assert insights.biggest_boundary(permissions, 2023) == "Gifts"
        assert insights.biggest_boundary(permissions, 2024) == "Uncategorized"
        assert insights.biggest_boundary(permissions, 2022) is None

    def test_biggest_boundary_defaults_to_current_year(self):
        """Test the year defaults to today."""
        this_year = date.today().year
        permissions = [make_permission(date(this_year, 1, 1), category="Now")]
        assert insights.biggest_boundary(permissions) == "Now"
