# portal_analytics/quality.py
"""
Data quality checks for ticket records.

Provides:
- QualityConfig: settings
- run_quality_checks(records, config) -> dict with ok/errors/warnings/metrics

The engine computes through inconsistent records as-is; this module only
reports them so the dashboard can flag a data-quality risk. Findings never
feed into the score.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass

import pandas as pd
from pydantic import ValidationError

from portal_analytics.processors.filtering import tickets_to_frame
from portal_analytics.schemas import RequestStatus

# Error / warning codes
E_BAD_DATA = "E_BAD_DATA"
W_NEGATIVE_DURATION = "W_NEGATIVE_DURATION"
W_STATUS_TIMESTAMP_MISMATCH = "W_STATUS_TIMESTAMP_MISMATCH"
W_DUPLICATE_ID = "W_DUPLICATE_ID"

LIFECYCLE_COLUMNS = ["started_at", "answered_at", "closed_at"]


@dataclass
class QualityConfig:
    # how many offending ids to quote in a message
    max_ids_in_message: int = 5


def _ids_preview(ids: List[str], config: QualityConfig) -> str:
    shown = ", ".join(ids[:config.max_ids_in_message])
    if len(ids) > config.max_ids_in_message:
        shown += f" (+{len(ids) - config.max_ids_in_message} more)"
    return shown


def _warn(report: Dict[str, Any], code: str, ids: List[str], message: str, config: QualityConfig) -> None:
    report["warnings"].append({
        "code": code,
        "count": len(ids),
        "message": f"{message}: {_ids_preview(ids, config)}",
    })
    report["metrics"]["counts"][code] = report["metrics"]["counts"].get(code, 0) + len(ids)


def run_quality_checks(records: Any, config: Optional[QualityConfig] = None) -> Dict[str, Any]:
    """
    Run quality checks and return a report dictionary with:
    {
      "ok": bool,
      "errors": [ { "code": str, "message": str } ],
      "warnings": [ { "code": str, "count": int, "message": str } ],
      "metrics": { "n_records": int, "counts": {code: n} }
    }
    """
    if config is None:
        config = QualityConfig()

    report: Dict[str, Any] = {"ok": True, "errors": [], "warnings": [], "metrics": {"counts": {}}}

    if not isinstance(records, list):
        report["ok"] = False
        report["errors"].append({"code": E_BAD_DATA, "message": "Records must be a list."})
        return report

    report["metrics"]["n_records"] = len(records)
    if not records:
        return report

    try:
        df = tickets_to_frame(records)
    except ValidationError as e:
        report["ok"] = False
        report["errors"].append({"code": E_BAD_DATA, "message": f"Invalid ticket record: {e.error_count()} error(s)."})
        return report

    # 1) Lifecycle timestamps before submission (clock skew or bad edits)
    negative = pd.Series(False, index=df.index)
    for col in LIFECYCLE_COLUMNS:
        negative |= df[col].notna() & (df[col] < df["submission_date"])
    if negative.any():
        _warn(report, W_NEGATIVE_DURATION, df.loc[negative, "id"].tolist(),
              "Lifecycle timestamp earlier than submission date", config)

    # 2) Status and timestamps disagree
    has_any = df[LIFECYCLE_COLUMNS].notna().any(axis=1)
    mismatch = (
        ((df["status"] == RequestStatus.CLOSED.value) & df["closed_at"].isna())
        | ((df["status"] == RequestStatus.ANSWERED.value) & df["answered_at"].isna())
        | ((df["status"] == RequestStatus.NEW.value) & has_any)
    )
    if mismatch.any():
        _warn(report, W_STATUS_TIMESTAMP_MISMATCH, df.loc[mismatch, "id"].tolist(),
              "Status does not match lifecycle timestamps", config)

    # 3) Duplicate ids
    dup_ids = df.loc[df["id"].duplicated(), "id"].unique().tolist()
    if dup_ids:
        _warn(report, W_DUPLICATE_ID, dup_ids, "Duplicate ticket ids", config)

    return report
