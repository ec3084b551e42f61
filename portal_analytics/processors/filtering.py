# portal_analytics/processors/filtering.py
"""
Filter stage for the ticket analytics pipeline.

Functions:
- tickets_to_frame(records) -> DataFrame with one row per ticket
- messages_to_frame(messages) -> DataFrame with one row per contact message
- ticket_mask(df, flt) -> boolean row mask for the filter below
- filter_tickets(df, flt) -> tickets inside [date_from 00:00:00, date_to 23:59:59],
  optionally narrowed by department and status
- filter_messages(df, flt) -> contact messages inside the same date range

Empty inputs produce empty frames with the right dtypes; nothing here raises
on an empty selection.
"""

import datetime
from typing import Any, Dict, Iterable, List, Union

import pandas as pd

from portal_analytics.schemas import AnalyticsFilter, ContactMessage, RequestRecord

TICKET_COLUMNS = ["id", "status", "department", "submission_date", "started_at", "answered_at", "closed_at"]
TICKET_TIME_COLUMNS = ["submission_date", "started_at", "answered_at", "closed_at"]
MESSAGE_COLUMNS = ["id", "status", "submission_date"]

TicketInput = Union[RequestRecord, Dict[str, Any]]
MessageInput = Union[ContactMessage, Dict[str, Any]]


def _as_ticket(r: TicketInput) -> RequestRecord:
    return r if isinstance(r, RequestRecord) else RequestRecord.model_validate(r)


def _as_message(m: MessageInput) -> ContactMessage:
    return m if isinstance(m, ContactMessage) else ContactMessage.model_validate(m)


def tickets_to_frame(records: Iterable[TicketInput]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for rec in records or []:
        t = _as_ticket(rec)
        rows.append({
            "id": t.id,
            "status": t.status.value,
            "department": str(t.department),
            "submission_date": t.submission_date,
            "started_at": t.started_at,
            "answered_at": t.answered_at,
            "closed_at": t.closed_at,
        })
    df = pd.DataFrame(rows, columns=TICKET_COLUMNS)
    for col in TICKET_TIME_COLUMNS:
        df[col] = pd.to_datetime(df[col])
    return df


def messages_to_frame(messages: Iterable[MessageInput]) -> pd.DataFrame:
    rows = []
    for msg in messages or []:
        m = _as_message(msg)
        rows.append({"id": m.id, "status": m.status.value, "submission_date": m.submission_date})
    df = pd.DataFrame(rows, columns=MESSAGE_COLUMNS)
    df["submission_date"] = pd.to_datetime(df["submission_date"])
    return df


def _range_bounds(flt: AnalyticsFilter):
    start = pd.Timestamp(datetime.datetime.combine(flt.date_from, datetime.time(0, 0, 0)))
    end = pd.Timestamp(datetime.datetime.combine(flt.date_to, datetime.time(23, 59, 59)))
    return start, end


def ticket_mask(df: pd.DataFrame, flt: AnalyticsFilter) -> pd.Series:
    """Boolean row mask of `df` for the filter; aligned with the input record order."""
    start, end = _range_bounds(flt)
    mask = (df["submission_date"] >= start) & (df["submission_date"] <= end)
    if flt.department:
        mask &= df["department"] == flt.department
    if flt.status:
        mask &= df["status"] == flt.status.value
    return mask


def filter_tickets(df: pd.DataFrame, flt: AnalyticsFilter) -> pd.DataFrame:
    return df[ticket_mask(df, flt)].reset_index(drop=True)


def filter_messages(df: pd.DataFrame, flt: AnalyticsFilter) -> pd.DataFrame:
    # department/status only describe tickets; messages are narrowed by date alone
    start, end = _range_bounds(flt)
    mask = (df["submission_date"] >= start) & (df["submission_date"] <= end)
    return df[mask].reset_index(drop=True)
