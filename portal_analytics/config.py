# portal_analytics/config.py
import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class AnalyticsConfig:
    stale_threshold_days: int = _int_env("STALE_THRESHOLD_DAYS", 3)
    # range used when a caller does not pass date_from/date_to
    default_range_days: int = _int_env("DEFAULT_RANGE_DAYS", 30)

    @property
    def stale_threshold_minutes(self) -> int:
        return self.stale_threshold_days * 24 * 60


settings = AnalyticsConfig()
