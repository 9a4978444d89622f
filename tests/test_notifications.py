"""Tests for ChangeNotifier."""

from permission_journal.services.notifications import (
    PERMISSION_DATA_CHANGED,
    ChangeNotifier,
)


class TestChangeNotifier:
    """Tests for subscribe and post."""

    def test_post_reaches_every_observer(self, notifier):
        """Test post calls every observer in order."""
        calls = []
        notifier.subscribe(PERMISSION_DATA_CHANGED, lambda: calls.append("a"))
        notifier.subscribe(PERMISSION_DATA_CHANGED, lambda: calls.append("b"))

        assert notifier.post(PERMISSION_DATA_CHANGED) == 2
        assert calls == ["a", "b"]

    def test_other_names_are_not_notified(self, notifier):
        """Test observers only hear their own name."""
        calls = []
        notifier.subscribe("SomethingElse", lambda: calls.append(1))
        assert notifier.post(PERMISSION_DATA_CHANGED) == 0
        assert calls == []

    def test_unsubscribe(self, notifier):
        """Test unsubscribing twice is harmless."""
        calls = []
        unsubscribe = notifier.subscribe(PERMISSION_DATA_CHANGED, lambda: calls.append(1))
        unsubscribe()
        unsubscribe()

        assert notifier.observer_count(PERMISSION_DATA_CHANGED) == 0
        notifier.post(PERMISSION_DATA_CHANGED)
        assert calls == []

    def test_failing_observer_does_not_block_others(self):
        """Test a raising observer is skipped."""
        notifier = ChangeNotifier()
        calls = []

        def broken():
            raise RuntimeError("observer failed")

        notifier.subscribe(PERMISSION_DATA_CHANGED, broken)
        notifier.subscribe(PERMISSION_DATA_CHANGED, lambda: calls.append(1))

        assert notifier.post(PERMISSION_DATA_CHANGED) == 1
        assert calls == [1]
