"""
Tests for the notification store.

These tests verify the retained window, in-place updates and the
subscriber fan-out that every presenter relies on.
"""

import pytest

from notifications.store import DEFAULT_CAPACITY, NotificationStore


class TestCapacity:
    """Tests for the bounded, newest-first window."""

    def test_default_capacity_is_ten(self):
        assert NotificationStore().capacity == DEFAULT_CAPACITY == 10

    def test_never_holds_more_than_capacity(self, store, make_notification):
        """Test that adding 25 notifications keeps only the newest 10."""
        for i in range(25):
            store.add_notification(make_notification(f"ord-{i:03d}"))
            assert len(store.get_notifications()) <= 10

        ids = [n.id for n in store.get_notifications()]
        assert ids == [f"ord-{i:03d}" for i in range(24, 14, -1)]

    def test_newest_first(self, store, make_notification):
        store.add_notification(make_notification("A"))
        store.add_notification(make_notification("B"))
        store.add_notification(make_notification("C"))

        assert [n.id for n in store.get_notifications()] == ["C", "B", "A"]

    def test_add_does_not_deduplicate(self, store, make_notification):
        """Test that adding the same id twice keeps two entries."""
        store.add_notification(make_notification("A"))
        store.add_notification(make_notification("A", status="preparing"))

        assert [n.id for n in store.get_notifications()] == ["A", "A"]

    def test_custom_capacity(self, make_notification):
        store = NotificationStore(capacity=2)
        for order_id in ("A", "B", "C"):
            store.add_notification(make_notification(order_id))

        assert [n.id for n in store.get_notifications()] == ["C", "B"]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            NotificationStore(capacity=0)


class TestUpdate:
    """Tests for update_notification."""

    def test_update_is_in_place(self, store, make_notification):
        """Test that updating keeps length and position and replaces the entry."""
        store.add_notification(make_notification("A", status="pending"))
        store.add_notification(make_notification("B"))

        store.update_notification(make_notification("A", status="preparing"))

        notifications = store.get_notifications()
        assert len(notifications) == 2
        assert notifications[1].id == "A"
        assert notifications[1].status == "preparing"
        assert notifications[0].id == "B"

    def test_unknown_update_changes_nothing_but_notifies(self, store, make_notification):
        store.add_notification(make_notification("A"))
        before = store.get_notifications()
        calls = []
        store.subscribe(lambda: calls.append("called"))

        store.update_notification(make_notification("Z", status="ready"))

        assert store.get_notifications() == before
        assert calls == ["called"]


class TestRemoveAndClear:
    """Tests for remove_notification, clear_all and has_unread."""

    def test_remove_notification(self, store, make_notification):
        store.add_notification(make_notification("A"))
        store.add_notification(make_notification("B"))

        store.remove_notification("A")

        assert [n.id for n in store.get_notifications()] == ["B"]

    def test_remove_unknown_still_notifies(self, store):
        calls = []
        store.subscribe(lambda: calls.append(1))

        store.remove_notification("missing")

        assert calls == [1]

    def test_has_unread_reflects_emptiness(self, store, make_notification):
        assert store.has_unread() is False

        store.add_notification(make_notification("A"))
        assert store.has_unread() is True
        assert store.has_unread() == (len(store.get_notifications()) > 0)

        store.clear_all()
        assert store.has_unread() is False

    def test_clear_all_keeps_subscribers(self, store, make_notification):
        calls = []
        store.subscribe(lambda: calls.append(1))

        store.clear_all()
        store.add_notification(make_notification("A"))

        assert store.subscriber_count == 1
        assert calls == [1, 1]


class TestSnapshot:
    """Tests that readers get a copy, not the live list."""

    def test_snapshot_is_immutable_copy(self, store, make_notification):
        store.add_notification(make_notification("A"))
        snapshot = store.get_notifications()

        store.clear_all()

        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)


class TestSubscribers:
    """Tests for subscriber fan-out."""

    def test_fan_out_in_registration_order(self, store, make_notification):
        """Test that 3 subscribers are each called once, in order."""
        calls = []
        store.subscribe(lambda: calls.append("first"))
        unsubscribe_second = store.subscribe(lambda: calls.append("second"))
        store.subscribe(lambda: calls.append("third"))

        store.add_notification(make_notification("A"))
        assert calls == ["first", "second", "third"]

        unsubscribe_second()
        calls.clear()
        store.remove_notification("A")
        assert calls == ["first", "third"]

    def test_same_callback_subscriptions_are_independent(self, store, make_notification):
        calls = []

        def callback():
            calls.append(1)

        unsubscribe_a = store.subscribe(callback)
        store.subscribe(callback)

        store.clear_all()
        assert len(calls) == 2

        assert unsubscribe_a() is True
        assert unsubscribe_a() is False
        calls.clear()
        store.clear_all()
        assert len(calls) == 1

    def test_failing_subscriber_does_not_block_others(self, store, make_notification):
        """Test that a raising subscriber is isolated."""
        calls = []

        def broken():
            raise RuntimeError("presenter crashed")

        store.subscribe(broken)
        store.subscribe(lambda: calls.append("after"))

        store.add_notification(make_notification("A"))

        assert calls == ["after"]
        assert len(store.get_notifications()) == 1

    def test_subscriber_sees_state_after_mutation(self, store, make_notification):
        seen = []
        store.subscribe(lambda: seen.append([n.id for n in store.get_notifications()]))

        store.add_notification(make_notification("A"))
        store.add_notification(make_notification("B"))

        assert seen == [["A"], ["B", "A"]]
