"""
Tests for the in-process log feed.
"""
import threading
from datetime import date

import pytest

from habit_tracker.services.log_feed import LogFeed, LogRecord

DAY = date(2024, 5, 1)


def _rec(hid, status="completed"):
    return LogRecord(habit_id=hid, user_id="u1", date=DAY, status=status)


class TestLogFeed:
    def test_initial_snapshot_delivered(self):
        feed = LogFeed()
        got = []
        feed.subscribe("u1", DAY, got.append, load=lambda: [_rec(1)])
        assert got == [[_rec(1)]]

    def test_publish_reaches_matching_subscribers_only(self):
        feed = LogFeed()
        mine, other_day, other_user = [], [], []
        feed.subscribe("u1", DAY, mine.append)
        feed.subscribe("u1", date(2024, 5, 2), other_day.append)
        feed.subscribe("u2", DAY, other_user.append)

        assert feed.publish("u1", DAY, [_rec(1)]) == 1
        assert mine == [[_rec(1)]]
        assert other_day == []
        assert other_user == []

    def test_unsubscribe_stops_delivery(self):
        feed = LogFeed()
        got = []
        unsubscribe = feed.subscribe("u1", DAY, got.append)
        unsubscribe()
        feed.publish("u1", DAY, [_rec(1)])
        assert got == []
        assert feed.subscriber_count("u1", DAY) == 0

    def test_unsubscribe_is_idempotent(self):
        feed = LogFeed()
        unsubscribe = feed.subscribe("u1", DAY, lambda records: None)
        unsubscribe()
        unsubscribe()
        assert feed.subscriber_count("u1", DAY) == 0

    def test_unsubscribe_inside_callback(self):
        feed = LogFeed()
        got = []
        handle = {}

        def once(records):
            got.append(records)
            handle["unsub"]()

        handle["unsub"] = feed.subscribe("u1", DAY, once)
        feed.publish("u1", DAY, [_rec(1)])
        feed.publish("u1", DAY, [_rec(2)])
        assert got == [[_rec(1)]]

    def test_failing_callback_does_not_block_others(self):
        feed = LogFeed()
        got = []

        def boom(records):
            raise RuntimeError("subscriber crashed")

        feed.subscribe("u1", DAY, boom)
        feed.subscribe("u1", DAY, got.append)
        assert feed.publish("u1", DAY, [_rec(3)]) == 1
        assert got == [[_rec(3)]]

    def test_callbacks_get_their_own_list(self):
        feed = LogFeed()
        first, second = [], []

        def mutating(records):
            records.clear()
            first.append(records)

        feed.subscribe("u1", DAY, mutating)
        feed.subscribe("u1", DAY, second.append)
        feed.publish("u1", DAY, [_rec(1)])
        assert second == [[_rec(1)]]

    def test_publish_during_initial_load_supersedes_it(self):
        feed = LogFeed()
        got = []

        def load():
            # a write lands after this read and is published before it returns
            stale = []
            feed.publish("u1", DAY, [_rec(1)])
            return stale

        feed.subscribe("u1", DAY, got.append, load=load)
        assert got == [[_rec(1)]]

    def test_registered_before_load(self):
        feed = LogFeed()
        counts = []
        feed.subscribe("u1", DAY, lambda records: None,
                       load=lambda: counts.append(feed.subscriber_count("u1", DAY)) or [])
        assert counts == [1]

    def test_failing_load_undoes_registration(self):
        feed = LogFeed()

        def load():
            raise RuntimeError("store down")

        with pytest.raises(RuntimeError):
            feed.subscribe("u1", DAY, lambda records: None, load=load)
        assert feed.subscriber_count("u1", DAY) == 0

    def test_loader_skipped_without_subscribers(self):
        feed = LogFeed()
        calls = []
        assert feed.publish("u1", DAY, lambda: calls.append(1) or []) == 0
        assert calls == []

    def test_concurrent_publishes_end_on_latest_read(self):
        feed = LogFeed()
        got = []
        feed.subscribe("u1", DAY, got.append)
        state = {"n": 0}

        def load():
            state["n"] += 1
            return [_rec(state["n"])]

        threads = [threading.Thread(target=feed.publish, args=("u1", DAY, load)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert [records[0].habit_id for records in got] == list(range(1, 9))
