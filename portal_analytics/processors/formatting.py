# portal_analytics/processors/formatting.py
"""
Display helpers whose output is part of the report contract.

- format_duration(minutes) -> "—" | "N minute(s)" | "X.X hour(s)" | "X.X day(s)" | "X.X month(s)"
- format_percent(ratio) -> "X.X%"
- round_half_up(x) -> int
"""

import math

PLACEHOLDER = "—"

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * 60
MINUTES_PER_MONTH = 30 * MINUTES_PER_DAY


def round_half_up(x: float) -> int:
    # Python's round() is banker's rounding; the portal always rounds .5 up
    return int(math.floor(x + 0.5))


def format_duration(minutes: float) -> str:
    if minutes is None or not math.isfinite(minutes) or minutes <= 0:
        return PLACEHOLDER
    if minutes < MINUTES_PER_HOUR:
        return f"{round_half_up(minutes)} minute(s)"
    if minutes < MINUTES_PER_DAY:
        return f"{minutes / MINUTES_PER_HOUR:.1f} hour(s)"
    if minutes < MINUTES_PER_MONTH:
        return f"{minutes / MINUTES_PER_DAY:.1f} day(s)"
    return f"{minutes / MINUTES_PER_MONTH:.1f} month(s)"


def format_percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"
