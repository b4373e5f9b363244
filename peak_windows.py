"""
Peak-window matching for "HH:MM-HH:MM" strings.

Windows are inclusive on both ends and compared in minutes since
midnight. A window that wraps past midnight ("22:00-02:00") never
matches; no such data exists today, so the limitation is kept as is.
"""

from typing import Iterable, Optional, Tuple

from temporal import TimeContext


def _parse_clock(value: str) -> int:
    """'07:30' -> 450. A bare hour ('7') counts as '07:00'."""
    parts = value.strip().split(":")
    if len(parts) > 2 or not parts[0]:
        raise ValueError(f"Malformed clock value in peak window: {value!r}")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) == 2 and parts[1] else 0
    except ValueError:
        raise ValueError(f"Malformed clock value in peak window: {value!r}") from None
    if not (0 <= hour <= 24 and 0 <= minute < 60):
        raise ValueError(f"Clock value out of range in peak window: {value!r}")
    return hour * 60 + minute


def parse_window(window: str) -> Optional[Tuple[int, int]]:
    """Return (start_min, end_min), or None when there is no '-' separator.

    Raises ValueError when either side is not a valid HH:MM value.
    """
    if "-" not in window:
        return None
    start, _, end = window.partition("-")
    return _parse_clock(start), _parse_clock(end)


def is_within(hour: int, minute: int, ranges: Optional[Iterable[str]]) -> bool:
    """True if hour:minute falls inside any of the ranges."""
    if not ranges:
        return False
    current = hour * 60 + minute
    for window in ranges:
        bounds = parse_window(window)
        if bounds is None:
            continue
        start, end = bounds
        if start <= current <= end:
            return True
    return False


def is_peak_now(peak_hours: Optional[Iterable[str]], ctx: TimeContext) -> bool:
    return is_within(ctx.hour, ctx.minute, peak_hours)
