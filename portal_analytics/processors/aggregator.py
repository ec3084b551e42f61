# portal_analytics/processors/aggregator.py
"""
Aggregations over ticket frames produced by processors.filtering.

Functions:
- mean_elapsed_minutes(df, target) -> mean minutes from submission to `target`
- duration_stats(df) -> {"avg_start_minutes", "avg_answer_minutes", "avg_close_minutes"}
- distribution_stats(df, now, stale_threshold_minutes) -> counts, ratios, stale and department shares
- message_status_counts(df) -> {status: count} for contact messages
- trailing_daily_counts(df, now) -> 14 x [{"date", "label", "count"}], oldest first

Every ratio is defined as 0 when the frame is empty.
"""

import datetime
from typing import Any, Dict, List

import pandas as pd

from portal_analytics.schemas import ContactMessageStatus, RequestStatus

# length of the daily series; not configurable
TRAILING_WINDOW_DAYS = 14

DURATION_TARGETS = {
    "avg_start_minutes": "started_at",
    "avg_answer_minutes": "answered_at",
    "avg_close_minutes": "closed_at",
}


def elapsed_minutes(df: pd.DataFrame, target: str) -> pd.Series:
    """Minutes from submission to `target`, floored at 0. NaN where `target` is missing."""
    mins = (df[target] - df["submission_date"]).dt.total_seconds() / 60.0
    return mins.clip(lower=0)


def mean_elapsed_minutes(df: pd.DataFrame, target: str) -> float:
    # records without the target are excluded from both sum and count
    mins = elapsed_minutes(df, target).dropna()
    if mins.empty:
        return 0.0
    return float(mins.mean())


def duration_stats(df: pd.DataFrame) -> Dict[str, float]:
    return {key: mean_elapsed_minutes(df, target) for key, target in DURATION_TARGETS.items()}


def _ratio(part: int, total: int) -> float:
    return part / total if total else 0.0


def distribution_stats(df: pd.DataFrame, now: datetime.datetime, stale_threshold_minutes: int) -> Dict[str, Any]:
    total = int(len(df))

    counts = df["status"].value_counts()
    count_by_status = {s.value: int(counts.get(s.value, 0)) for s in RequestStatus}
    closed = count_by_status[RequestStatus.CLOSED.value]
    open_count = total - closed

    age = ((pd.Timestamp(now) - df["submission_date"]).dt.total_seconds() / 60.0).clip(lower=0)
    stale_mask = (df["status"] == RequestStatus.NEW.value) & (age > stale_threshold_minutes)
    stale = int(stale_mask.sum())

    # groupby(sort=False) keeps first-seen order, which sorted() preserves for ties
    dept = df.groupby("department", sort=False).size()
    departments = [
        {"department": str(name), "count": int(n), "percent": _ratio(int(n), total) * 100}
        for name, n in sorted(dept.items(), key=lambda kv: -kv[1])
    ]

    closure_ratio = _ratio(closed, total)
    return {
        "total_count": total,
        "count_by_status": count_by_status,
        "closed_count": closed,
        "open_count": open_count,
        "open_ratio": _ratio(open_count, total),
        "closure_ratio": closure_ratio,
        "completion_rate_percent": closure_ratio * 100,
        "stale_count": stale,
        "stale_ratio": _ratio(stale, total),
        "department_distribution": departments,
    }


def message_status_counts(df: pd.DataFrame) -> Dict[str, int]:
    counts = df["status"].value_counts()
    return {s.value: int(counts.get(s.value, 0)) for s in ContactMessageStatus}


def trailing_daily_counts(df: pd.DataFrame, now: datetime.datetime) -> List[Dict[str, Any]]:
    """
    Daily submission counts for the last TRAILING_WINDOW_DAYS calendar days (today included).
    Reads whatever frame it is given; callers pass the unfiltered ticket set.
    """
    per_day = df["submission_date"].dt.strftime("%Y-%m-%d").value_counts()
    today = now.date()
    out = []
    for i in range(TRAILING_WINDOW_DAYS - 1, -1, -1):
        d = today - datetime.timedelta(days=i)
        iso = d.isoformat()
        out.append({"date": iso, "label": f"{d.month}/{d.day}", "count": int(per_day.get(iso, 0))})
    return out
