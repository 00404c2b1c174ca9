"""
Activity monitoring for the Shortener Platform.

ActivityMonitor watches request rates and submitted URLs and *logs* anything
suspicious. It never blocks a request; blocking is the job of the slowapi
limiter in `throttle.py`.

Rates are kept in bounded windows: each key holds at most the events of its
own window, and the key set itself is LRU-capped so a flood of distinct
devices cannot grow memory without limit.
"""

import re
import threading
import time
from collections import OrderedDict, deque
from typing import Callable, Deque, Optional

from ..logging_service import LoggingService

Clock = Callable[[], float]

SUSPICIOUS_PATTERNS = {
    "javascript:": "JavaScript scheme detected",
    "data:": "Data URI detected",
    "file:": "File scheme detected",
    "vbscript:": "VBScript scheme detected",
    "<script": "Script tag in URL",
    "eval(": "JavaScript eval detected",
    "document.cookie": "Cookie access attempt",
    "localstorage": "LocalStorage access attempt",
}
EXTREME_URL_LENGTH = 4000
SPECIAL_CHAR_RATIO = 0.7
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


class SlidingWindow:
    """Per-key event timestamps inside a fixed-length trailing window."""

    def __init__(self, window: float, max_keys: int = 10_000, clock: Clock = time.time):
        self.window = window
        self.max_keys = max_keys
        self._clock = clock
        self._events: "OrderedDict[str, Deque[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def _prune(self, events: Deque[float], now: float) -> None:
        cutoff = now - self.window
        while events and events[0] <= cutoff:
            events.popleft()

    def count(self, key: str) -> int:
        """Events for `key` still inside the window."""
        with self._lock:
            events = self._events.get(key)
            if not events:
                return 0
            self._prune(events, self._clock())
            return len(events)

    def hit(self, key: str) -> int:
        """Record one event and return the count *before* it was added."""
        with self._lock:
            now = self._clock()
            events = self._events.pop(key, None)
            if events is None:
                events = deque()
            self._prune(events, now)
            previous = len(events)
            events.append(now)
            self._events[key] = events
            while len(self._events) > self.max_keys:
                self._events.popitem(last=False)
            return previous


class ActivityMonitor:
    """
    Logs suspicious behaviour; never rejects a request.

    Thresholds:
        - high frequency: more than 20 requests per device in 60 s
        - request rate:   more than 50 requests per device in 300 s
        - submitted URLs: suspicious substrings, > 4000 characters, or more
          than 70 % non-alphanumeric characters
    """

    HIGH_FREQUENCY_WINDOW = 60
    HIGH_FREQUENCY_THRESHOLD = 20
    RATE_LIMIT_WINDOW = 300
    SUSPICIOUS_REQUEST_THRESHOLD = 50

    def __init__(self, logging_service: Optional[LoggingService] = None, clock: Clock = time.time):
        self.logging = logging_service or LoggingService()
        self.device_minute = SlidingWindow(self.HIGH_FREQUENCY_WINDOW, clock=clock)
        self.device_rate = SlidingWindow(self.RATE_LIMIT_WINDOW, clock=clock)
        self.ip_rate = SlidingWindow(self.RATE_LIMIT_WINDOW, clock=clock)

    def track_request(self, ip: Optional[str], device_id: Optional[str]) -> None:
        self.ip_rate.hit(ip or "unknown")
        if not device_id:
            return

        recent = self.device_minute.hit(device_id)
        if recent > self.HIGH_FREQUENCY_THRESHOLD:
            self.logging.high_frequency_activity(device_id, recent, self.HIGH_FREQUENCY_WINDOW, ip=ip)

        windowed = self.device_rate.hit(device_id)
        if windowed > self.SUSPICIOUS_REQUEST_THRESHOLD:
            self.logging.device_id_issue(
                device_id,
                "High request rate detected",
                {"request_count": windowed, "time_window": self.RATE_LIMIT_WINDOW},
                ip=ip,
            )

    def inspect_url(
        self, url: str, device_id: str, ip: Optional[str] = None, user_agent: Optional[str] = None
    ) -> list:
        """Log every suspicious trait of a submitted URL; returns the reasons found."""
        reasons = []
        lowered = url.lower()
        for pattern, reason in SUSPICIOUS_PATTERNS.items():
            if pattern in lowered:
                reasons.append(reason)

        if len(url) > EXTREME_URL_LENGTH:
            reasons.append("Extremely long URL detected")

        special = len(_NON_ALNUM.findall(url))
        if url and special > len(url) * SPECIAL_CHAR_RATIO:
            reasons.append("High special character ratio")

        for reason in reasons:
            self.logging.suspicious_activity(url, device_id, reason, ip=ip, user_agent=user_agent)
        return reasons
