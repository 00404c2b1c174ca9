"""
Unit tests for ActivityMonitor and SlidingWindow.

A fake clock drives the windows; a MagicMock stands in for LoggingService
so tests can assert which monitoring events fired.
"""

from unittest.mock import MagicMock

import pytest

from shortener_platform.monitoring.activity import ActivityMonitor, SlidingWindow


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return MagicMock()


@pytest.fixture
def monitor(events, clock):
    return ActivityMonitor(logging_service=events, clock=clock)


# -------------------------
# SlidingWindow
# -------------------------

def test_window_counts_and_expires(clock):
    window = SlidingWindow(60, clock=clock)
    assert window.hit("a") == 0
    assert window.hit("a") == 1
    assert window.count("a") == 2
    clock.now += 60
    assert window.count("a") == 0


def test_window_key_set_is_bounded(clock):
    window = SlidingWindow(60, max_keys=2, clock=clock)
    window.hit("a")
    window.hit("b")
    window.hit("c")
    assert window.count("a") == 0
    assert window.count("b") == 1
    assert window.count("c") == 1


def test_window_slides_per_event(clock):
    window = SlidingWindow(60, clock=clock)
    window.hit("a")
    clock.now += 30
    window.hit("a")
    clock.now += 30
    assert window.count("a") == 1


# -------------------------
# ActivityMonitor
# -------------------------

def test_high_frequency_logged_above_twenty_per_minute(monitor, events):
    for _ in range(21):
        monitor.track_request("10.0.0.1", "dev-1")
    events.high_frequency_activity.assert_not_called()

    monitor.track_request("10.0.0.1", "dev-1")
    events.high_frequency_activity.assert_called_once_with("dev-1", 21, 60, ip="10.0.0.1")


def test_high_frequency_window_slides(monitor, events, clock):
    for _ in range(21):
        monitor.track_request("10.0.0.1", "dev-1")
    clock.now += 61
    monitor.track_request("10.0.0.1", "dev-1")
    events.high_frequency_activity.assert_not_called()


def test_request_rate_logged_above_fifty_per_five_minutes(monitor, events, clock):
    for _ in range(51):
        monitor.track_request("10.0.0.1", "dev-1")
        clock.now += 5
    events.device_id_issue.assert_not_called()

    monitor.track_request("10.0.0.1", "dev-1")
    events.device_id_issue.assert_called_once()
    args, kwargs = events.device_id_issue.call_args
    assert args[0] == "dev-1"
    assert args[1] == "High request rate detected"
    assert args[2] == {"request_count": 51, "time_window": 300}


def test_requests_without_device_are_not_tracked_per_device(monitor, events):
    for _ in range(100):
        monitor.track_request("10.0.0.1", None)
    events.high_frequency_activity.assert_not_called()
    events.device_id_issue.assert_not_called()


@pytest.mark.parametrize(
    "url,reason",
    [
        ("javascript:alert(1)", "JavaScript scheme detected"),
        ("https://example.com/?q=<script>x", "Script tag in URL"),
        ("https://example.com/?c=Document.Cookie", "Cookie access attempt"),
        ("https://example.com/?s=localStorage", "LocalStorage access attempt"),
        ("data:text/html;base64,xyz", "Data URI detected"),
        ("https://example.com/" + "a" * 4000, "Extremely long URL detected"),
        ("!@#$%^&*()_+{}|:<>?", "High special character ratio"),
    ],
)
def test_inspect_url_flags(monitor, events, url, reason):
    reasons = monitor.inspect_url(url, "dev-1", ip="10.0.0.1")
    assert reason in reasons
    events.suspicious_activity.assert_any_call(url, "dev-1", reason, ip="10.0.0.1", user_agent=None)


def test_inspect_clean_url(monitor, events):
    assert monitor.inspect_url("https://example.com/docs", "dev-1") == []
    events.suspicious_activity.assert_not_called()
