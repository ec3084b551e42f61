# portal_analytics/schemas.py
from enum import Enum
from typing import Any, List, Optional, Dict
from pydantic import BaseModel, Field, field_validator, ConfigDict
from datetime import datetime, date, timedelta


def to_naive(v: Optional[datetime]) -> Optional[datetime]:
    # everything is compared as naive local wall-clock time, the same clock as datetime.now()
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone().replace(tzinfo=None)


class RequestStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "InProgress"
    ANSWERED = "Answered"
    CLOSED = "Closed"


class ContactMessageStatus(str, Enum):
    NEW = "New"
    IN_PROGRESS = "InProgress"
    CLOSED = "Closed"


class RequestRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: RequestStatus
    department: str
    submission_date: datetime
    started_at: Optional[datetime] = None
    answered_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    # descriptive fields the portal carries along; unused by the engine
    request_type: Optional[str] = None
    full_name: Optional[str] = None
    details: Optional[str] = None

    @field_validator("submission_date", "started_at", "answered_at", "closed_at")
    @classmethod
    def strip_timezone(cls, v):
        return to_naive(v)


class ContactMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: ContactMessageStatus
    submission_date: datetime
    subject: str = ""
    message: str = ""

    @field_validator("submission_date")
    @classmethod
    def strip_timezone(cls, v):
        return to_naive(v)


class AnalyticsFilter(BaseModel):
    date_from: date
    date_to: date
    department: Optional[str] = None
    status: Optional[RequestStatus] = None

    @classmethod
    def last_days(cls, now: datetime, days: int = 30, department: Optional[str] = None,
                  status: Optional[RequestStatus] = None) -> "AnalyticsFilter":
        today = now.date()
        return cls(date_from=today - timedelta(days=days), date_to=today,
                   department=department, status=status)


# ---------------------------------------------------------------------------
# Report (output contract)
# ---------------------------------------------------------------------------
class DurationStat(BaseModel):
    minutes: float
    formatted: str


class DepartmentShare(BaseModel):
    department: str
    count: int
    percent: float


class DailyCount(BaseModel):
    date: str  # YYYY-MM-DD
    label: str  # M/D
    count: int


class ScoreFactor(BaseModel):
    key: str
    label: str
    value: float
    score: float
    weight: float
    partial: float
    explain: str


class AnalyticsReport(BaseModel):
    generated_at: datetime
    filter: AnalyticsFilter
    total_count: int
    count_by_status: Dict[str, int]
    closed_count: int
    open_count: int
    open_ratio: float
    closure_ratio: float
    completion_rate_percent: float
    stale_count: int
    stale_ratio: float
    department_distribution: List[DepartmentShare]
    message_count_by_status: Dict[str, int]
    avg_start: DurationStat
    avg_answer: DurationStat
    avg_close: DurationStat
    trailing_daily: List[DailyCount]
    score: int
    grade: str
    summary: str
    factors: List[ScoreFactor]
    recommendations: List[str]
    data_quality: Dict[str, Any] = Field(default_factory=dict)
