import logging
import re

from ofeed_connector.diagnostics import StatusTracker


class RecordingListener:
    def __init__(self):
        self.events = []

    def on_success(self, status):
        self.events.append(("success", status))

    def on_failure(self, status):
        self.events.append(("failure", status))


def test_latest_is_empty_before_any_record():
    tracker = StatusTracker()
    assert tracker.latest() == ""
    assert tracker.snapshot() is None


def test_success_and_failure_prefixes():
    tracker = StatusTracker()

    tracker.record_success("No results yet.")
    assert re.fullmatch(r"S\d{2}:\d{2}:\d{2} No results yet\.", tracker.latest())
    assert tracker.snapshot().succeeded is True

    tracker.record_failure("500 (Internal Server Error).")
    assert re.fullmatch(r"F\d{2}:\d{2}:\d{2} 500 \(Internal Server Error\)\.", tracker.latest())
    assert tracker.snapshot().succeeded is False


def test_listener_receives_timestamped_message():
    listener = RecordingListener()
    tracker = StatusTracker(listener)

    text = tracker.record_success("ok")
    tracker.record_failure("bad")

    assert listener.events[0] == ("success", text)
    assert listener.events[1][0] == "failure"
    assert listener.events[1][1].endswith(" bad")


def test_no_listener_is_a_no_op():
    tracker = StatusTracker(None)
    tracker.record_failure("bad")
    assert tracker.latest().startswith("F")


def test_detached_listener_is_not_called():
    listener = RecordingListener()
    tracker = StatusTracker(listener)
    tracker.set_listener(None)
    tracker.record_success("ok")
    assert listener.events == []


def test_listener_errors_do_not_escape(caplog):
    class Broken:
        def on_success(self, status):
            raise RuntimeError("ui gone")

        def on_failure(self, status):
            raise RuntimeError("ui gone")

    tracker = StatusTracker(Broken())
    with caplog.at_level(logging.ERROR, logger="ofeed_connector.diagnostics.status"):
        tracker.record_success("ok")

    assert tracker.latest().startswith("S")
    assert "ui gone" in caplog.text
