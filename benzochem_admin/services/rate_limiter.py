"""
Fixed Window Rate Limiting for API Keys

Each key carries four thresholds: per day, per hour, per minute and a short
burst window. Windows are aligned to the epoch (a minute window starts on the
minute), and the counters live on the API key record so that the check and
the increment happen inside the same row-locked transaction.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

DEFAULT_RATE_LIMIT = {
    "requests_per_minute": 100,
    "requests_per_hour": 5000,
    "requests_per_day": 50000,
    "burst_limit": 150,
}

BURST_WINDOW_SECONDS = 10


@dataclass(frozen=True)
class Window:
    name: str
    seconds: int
    limit_field: str
    label: str


# Evaluation order: the longest window that is exhausted is reported first
WINDOWS = (
    Window("day", 86400, "requests_per_day", "Daily"),
    Window("hour", 3600, "requests_per_hour", "Hourly"),
    Window("burst", BURST_WINDOW_SECONDS, "burst_limit", "Burst"),
    Window("minute", 60, "requests_per_minute", "Per-minute"),
)


@dataclass
class RateLimitDecision:
    """Outcome of a rate limit check"""

    allowed: bool
    window: Optional[str] = None
    limit: Optional[int] = None
    retry_after: Optional[int] = None
    message: Optional[str] = None


class FixedWindowRateLimiter:
    """Evaluates and advances per-key fixed window counters"""

    def __init__(self, burst_window_seconds: int = BURST_WINDOW_SECONDS):
        self.windows = tuple(
            Window(w.name, burst_window_seconds, w.limit_field, w.label)
            if w.name == "burst"
            else w
            for w in WINDOWS
        )

    def window_starts(self, now: datetime) -> Dict[str, int]:
        """Start of the current window for each threshold, in epoch seconds"""
        timestamp = int(now.timestamp())
        return {w.name: timestamp - timestamp % w.seconds for w in self.windows}

    def current_counts(
        self,
        counts: Optional[Dict[str, int]],
        resets: Optional[Dict[str, int]],
        now: datetime,
    ) -> Tuple[Dict[str, int], Dict[str, int]]:
        """Zero every counter whose window has rolled over"""
        starts = self.window_starts(now)
        counts = dict(counts or {})
        resets = dict(resets or {})

        for window in self.windows:
            if resets.get(window.name, -1) < starts[window.name]:
                counts[window.name] = 0
                resets[window.name] = starts[window.name]
            counts.setdefault(window.name, 0)

        return counts, resets

    def check(
        self,
        rate_limit: Dict[str, int],
        counts: Optional[Dict[str, int]],
        resets: Optional[Dict[str, int]],
        now: datetime,
    ) -> RateLimitDecision:
        """Decide whether one more request fits in every window"""
        counts, resets = self.current_counts(counts, resets, now)
        timestamp = now.timestamp()

        for window in self.windows:
            limit = rate_limit[window.limit_field]
            if counts[window.name] >= limit:
                window_end = resets[window.name] + window.seconds
                return RateLimitDecision(
                    allowed=False,
                    window=window.name,
                    limit=limit,
                    retry_after=max(1, math.ceil(window_end - timestamp)),
                    message=f"{window.label} rate limit exceeded",
                )

        return RateLimitDecision(allowed=True)

    def record(
        self,
        counts: Optional[Dict[str, int]],
        resets: Optional[Dict[str, int]],
        now: datetime,
    ) -> Tuple[Dict[str, int], Dict[str, int]]:
        """Count one request in every window; returns fresh dicts"""
        counts, resets = self.current_counts(counts, resets, now)
        return {name: value + 1 for name, value in counts.items()}, resets

    def reset(self, now: datetime) -> Tuple[Dict[str, int], Dict[str, int]]:
        """Empty counters starting at the current windows"""
        starts = self.window_starts(now)
        return {name: 0 for name in starts}, starts


def resolve_rate_limit(rate_limit: Optional[Dict[str, int]]) -> Dict:
    """
    Merge a caller supplied rate limit over the defaults

    Raises:
        ValueError: If a threshold is not a positive integer
    """
    if rate_limit is None:
        return dict(DEFAULT_RATE_LIMIT)

    resolved = {}
    for field_name, default in DEFAULT_RATE_LIMIT.items():
        value = rate_limit.get(field_name, default)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{field_name} must be a positive integer")
        resolved[field_name] = value

    return resolved
