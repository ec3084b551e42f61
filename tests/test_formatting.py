import math

import pytest

from portal_analytics.processors.formatting import format_duration, format_percent, round_half_up, PLACEHOLDER


@pytest.mark.parametrize("minutes", [0, -5, -0.1, math.nan, math.inf])
def test_non_positive_or_non_finite_is_placeholder(minutes):
    assert format_duration(minutes) == PLACEHOLDER == "—"


def test_minutes_round_half_up():
    assert format_duration(30) == "30 minute(s)"
    assert format_duration(0.5) == "1 minute(s)"
    assert format_duration(2.5) == "3 minute(s)"
    assert format_duration(59.4) == "59 minute(s)"
    # still below an hour, so it stays in minutes even though it rounds to 60
    assert format_duration(59.6) == "60 minute(s)"


def test_hours_days_months():
    assert format_duration(60) == "1.0 hour(s)"
    assert format_duration(90) == "1.5 hour(s)"
    assert format_duration(1439) == "24.0 hour(s)"
    assert format_duration(1440) == "1.0 day(s)"
    assert format_duration(2160) == "1.5 day(s)"
    assert format_duration(43200) == "1.0 month(s)"
    assert format_duration(43200 * 2.5) == "2.5 month(s)"


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(0.5) == 1
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84
    assert round(84.5) == 84


def test_format_percent():
    assert format_percent(0.123) == "12.3%"
    assert format_percent(0) == "0.0%"
    assert format_percent(1) == "100.0%"
