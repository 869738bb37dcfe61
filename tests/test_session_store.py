"""
Tests for the in-memory session store.
"""

import threading

from conftest import MONDAY_0800
from models.route_record import RouteRecord, ScheduleRecord


class TestOpenClose:

    def test_open_copies_names_and_fixes_end_time(self, store, open_session, schedule):
        assert open_session.route_name == "Line 42"
        assert open_session.chat_name == "Morning 42"
        assert open_session.started_at == MONDAY_0800
        assert open_session.ends_at == MONDAY_0800.replace(hour=9)

        schedule.chat_name = "Renamed"
        schedule.end_time = "10:00"
        assert store.get("42").chat_name == "Morning 42"
        assert store.get("42").ends_at == MONDAY_0800.replace(hour=9)

    def test_second_open_returns_live_session(self, store, route, schedule, open_session):
        again = store.open(route, schedule)
        assert again is open_session
        assert len(store.all()) == 1

    def test_concurrent_opens_yield_one_session(self, store, route, schedule):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(store.open(route, schedule))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(session) for session in results}) == 1
        assert len(store.all()) == 1

    def test_close_wipes_everything(self, store, open_session):
        store.add_participant("42", "c1", "Dana")
        store.add_participant("42", "c2", "Noa")
        message = store.add_message("42", "c1", "hi")
        store.report_message("42", message.id, "c2")
        store.record_violation("42", "c2")
        store.ban_user("42", "c2")

        assert store.close("42") is True

        assert store.get("42") is None
        assert open_session.participants == {}
        assert open_session.messages == []
        assert open_session.banned == set()
        assert open_session.reports == {}
        assert open_session.violations == {}

    def test_close_is_idempotent(self, store, open_session):
        assert store.close("42") is True
        assert store.close("42") is False
        assert store.close("nope") is False

    def test_should_close_at_end_time(self, store, clock, open_session):
        assert store.should_close("42") is False
        clock.advance(minutes=59, seconds=59)
        assert store.should_close("42") is False
        clock.advance(seconds=1)
        assert store.should_close("42") is True
        assert store.should_close("nope") is False


class TestParticipants:

    def test_no_session_means_no_participant(self, store):
        assert store.add_participant("42", "c1", "Dana") is None

    def test_banned_connection_cannot_rejoin_same_session(self, store, route, schedule, open_session):
        store.add_participant("42", "c1", "Dana")
        assert store.ban_user("42", "c1") is True
        assert "c1" not in open_session.participants
        assert store.add_participant("42", "c1", "Dana") is None

        store.close("42")
        store.open(route, schedule)
        assert store.add_participant("42", "c1", "Dana") is not None

    def test_connection_joins_one_session_at_a_time(self, store, open_session, schedule):
        other = RouteRecord(id="7", name="Line 7")
        store.open(other, ScheduleRecord(id="s7", route_id="7", end_time="09:00", chat_name="Seven"))
        assert store.add_participant("42", "c1", "Dana") is not None
        assert store.add_participant("7", "c1", "Dana") is None

        store.remove_participant("42", "c1")
        assert store.add_participant("7", "c1", "Dana") is not None

    def test_leaving_keeps_message_history(self, store, open_session):
        store.add_participant("42", "c1", "Dana")
        store.add_message("42", "c1", "bye all")
        removed = store.remove_participant("42", "c1")
        assert removed.username == "Dana"
        assert [m.text for m in open_session.messages] == ["bye all"]
        assert store.remove_participant("42", "c1") is None


class TestMessages:

    def test_only_participants_may_post(self, store, open_session):
        assert store.add_message("42", "ghost", "boo") is None
        store.add_participant("42", "c1", "Dana")
        message = store.add_message("42", "c1", "  spaced  ")
        assert message.username == "Dana"
        assert message.text == "  spaced  "
        assert message.reported is False

    def test_messages_keep_submission_order(self, store, open_session):
        store.add_participant("42", "c1", "Dana")
        store.add_participant("42", "c2", "Noa")
        for sender, text in [("c1", "one"), ("c2", "two"), ("c1", "three")]:
            store.add_message("42", sender, text)
        assert [m.text for m in open_session.messages] == ["one", "two", "three"]

    def test_reports_are_idempotent_per_reporter(self, store, open_session):
        store.add_participant("42", "c1", "Dana")
        message = store.add_message("42", "c1", "hi")

        store.report_message("42", message.id, "c2")
        store.report_message("42", message.id, "c2")
        assert message.report_count == 1
        assert message.reported is True

        store.report_message("42", message.id, "c3")
        assert message.report_count == 2
        assert open_session.reports[message.id] == {"c2", "c3"}

    def test_report_unknown_message(self, store, open_session):
        assert store.report_message("42", "missing", "c2") is None
        assert store.report_message("nope", "missing", "c2") is None

    def test_delete_message_drops_its_reports(self, store, open_session):
        store.add_participant("42", "c1", "Dana")
        message = store.add_message("42", "c1", "hi")
        store.report_message("42", message.id, "c2")

        assert store.delete_message("42", message.id) is True
        assert open_session.messages == []
        assert message.id not in open_session.reports
        assert store.delete_message("42", message.id) is False


def test_violations_only_grow(store, open_session):
    assert store.violations("42", "c1") == 0
    assert store.record_violation("42", "c1") == 1
    assert store.record_violation("42", "c1") == 2
    assert store.violations("42", "c1") == 2
    assert store.record_violation("nope", "c1") == 0
