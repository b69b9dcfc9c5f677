"""
Metric Scaler - Query time window.

Turns an optional ``H:M:S`` aggregation interval into the
``<start>/<end>`` timespan understood by the metrics API.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from monitor_scaler.clock import ClockProtocol, SystemClock
from monitor_scaler.exceptions import TimespanParseError


DEFAULT_WINDOW = timedelta(minutes=5)
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
INTERVAL_COMPONENTS = ("hours", "minutes", "seconds")

_DIGITS = re.compile(r"[0-9]+")


def _parse_components(interval: str) -> dict[str, int]:
    parts = interval.split(":", len(INTERVAL_COMPONENTS) - 1)
    values: dict[str, int] = {}
    failed: list[str] = []

    for index, component in enumerate(INTERVAL_COMPONENTS):
        raw = parts[index] if index < len(parts) else None
        if raw is None or not _DIGITS.fullmatch(raw):
            failed.append(component)
            continue
        values[component] = int(raw)

    if failed:
        raise TimespanParseError(
            message=(
                f"Errors parsing metricAggregationInterval '{interval}': "
                f"invalid {', '.join(failed)}"
            ),
            interval=interval,
            failed_components=failed,
        )
    return values


def _window_out_of_range(interval: str, values: dict[str, int]) -> TimespanParseError:
    failed = [component for component in INTERVAL_COMPONENTS if values[component]]
    return TimespanParseError(
        message=(
            f"Errors parsing metricAggregationInterval '{interval}': "
            f"window out of range ({', '.join(failed)})"
        ),
        interval=interval,
        failed_components=failed,
    )


def parse_interval(interval: str) -> timedelta:
    """
    Parse an ``H:M:S`` interval. Hours may exceed 24.

    Components are unsigned decimal digits only; whitespace and signs
    are rejected.

    Raises:
        TimespanParseError: naming every component that is missing or
            not a non-negative integer, or the non-zero components when
            the window does not fit a duration
    """
    values = _parse_components(interval)
    try:
        return timedelta(
            hours=values["hours"],
            minutes=values["minutes"],
            seconds=values["seconds"],
        )
    except OverflowError:
        raise _window_out_of_range(interval, values)


def format_timestamp(moment: datetime) -> str:
    """Format a UTC datetime as RFC 3339 with a ``Z`` designator."""
    return moment.strftime(TIMESTAMP_FORMAT)


def format_timespan(
    interval: Optional[str] = None,
    clock: Optional[ClockProtocol] = None,
) -> str:
    """
    Compute the query window ending now.

    Args:
        interval: ``H:M:S`` window length; empty or None means 5 minutes
        clock: time source (defaults to the system clock)

    Returns:
        ``<start>/<end>`` in UTC

    Raises:
        TimespanParseError: if the interval is malformed or reaches
            before the earliest representable date
    """
    clock = clock or SystemClock()
    window = parse_interval(interval) if interval else DEFAULT_WINDOW

    end = clock.now().astimezone(timezone.utc)
    try:
        start = end - window
    except OverflowError:
        raise _window_out_of_range(interval, _parse_components(interval))
    return f"{format_timestamp(start)}/{format_timestamp(end)}"
