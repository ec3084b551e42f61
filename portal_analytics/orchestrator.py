# portal_analytics/orchestrator.py
import uuid
import time
import datetime
from typing import Dict, Any, Optional, Iterable

# Import modules (not bare functions) so monkeypatching in tests works correctly
import portal_analytics.processors.filtering as _filtering
import portal_analytics.processors.aggregator as _aggregator
import portal_analytics.processors.scorer as _scorer
import portal_analytics.quality as _quality
from portal_analytics.config import AnalyticsConfig, settings
from portal_analytics.processors.formatting import format_duration
from portal_analytics.schemas import AnalyticsFilter, AnalyticsReport, to_naive
from portal_analytics import monitoring

E_INTERNAL = "E_INTERNAL"


class AnalyticsOrchestrator:
    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or settings

    def _make_request_id(self) -> str:
        return str(uuid.uuid4())

    def default_filter(self, now: datetime.datetime, department: Optional[str] = None,
                       status=None) -> AnalyticsFilter:
        return AnalyticsFilter.last_days(now, self.config.default_range_days, department, status)

    def build_report(
        self,
        tickets: Iterable[Any],
        messages: Iterable[Any],
        flt: AnalyticsFilter,
        seed: int = 0,
        now: Optional[datetime.datetime] = None,
    ) -> AnalyticsReport:
        """
        Pure pipeline over in-memory records:
        1. Filter tickets (date range, department, status) and messages (date range)
        2. Duration and distribution aggregates over the filtered tickets
        3. Trailing daily counts over the unfiltered tickets
        4. Sub-scores, composite score, grade
        5. Recommendations (the seed only rotates the closing sentence)
        6. Data quality findings over the filtered tickets (informational)

        `now` defaults to the wall clock; pass it explicitly for reproducible output.
        """
        now = to_naive(now) if now is not None else datetime.datetime.now()
        tickets = list(tickets or [])

        all_df = _filtering.tickets_to_frame(tickets)
        in_filter = _filtering.ticket_mask(all_df, flt)
        ranged = all_df[in_filter].reset_index(drop=True)
        msg_df = _filtering.filter_messages(_filtering.messages_to_frame(messages), flt)

        metrics: Dict[str, Any] = {}
        metrics.update(_aggregator.duration_stats(ranged))
        metrics.update(_aggregator.distribution_stats(ranged, now, self.config.stale_threshold_minutes))

        factors = _scorer.score_factors(metrics)
        score = _scorer.composite_score(factors)
        grade, summary = _scorer.classify(score)
        scores = {f["key"]: f["score"] for f in factors}
        recs = _scorer.generate_recommendations(scores, score, metrics["total_count"], seed)

        # audit the rows that passed the filter, not every record sharing their ids
        quality = _quality.run_quality_checks([t for t, keep in zip(tickets, in_filter) if keep])

        return AnalyticsReport(
            generated_at=now,
            filter=flt,
            total_count=metrics["total_count"],
            count_by_status=metrics["count_by_status"],
            closed_count=metrics["closed_count"],
            open_count=metrics["open_count"],
            open_ratio=metrics["open_ratio"],
            closure_ratio=metrics["closure_ratio"],
            completion_rate_percent=metrics["completion_rate_percent"],
            stale_count=metrics["stale_count"],
            stale_ratio=metrics["stale_ratio"],
            department_distribution=metrics["department_distribution"],
            message_count_by_status=_aggregator.message_status_counts(msg_df),
            avg_start=_duration(metrics["avg_start_minutes"]),
            avg_answer=_duration(metrics["avg_answer_minutes"]),
            avg_close=_duration(metrics["avg_close_minutes"]),
            trailing_daily=_aggregator.trailing_daily_counts(all_df, now),
            score=score,
            grade=grade,
            summary=summary,
            factors=factors,
            recommendations=recs,
            data_quality=quality,
        )

    def handle_report(
        self,
        tickets: Iterable[Any],
        messages: Iterable[Any],
        flt: AnalyticsFilter,
        seed: int = 0,
        now: Optional[datetime.datetime] = None,
        source: str = "inline",
    ) -> Dict[str, Any]:
        """Build a report and wrap it in the service response envelope."""
        request_id = self._make_request_id()
        start = time.time()
        try:
            report = self.build_report(tickets, messages, flt, seed=seed, now=now)
        except Exception as e:
            monitoring.logger.exception("Report build failed", extra={"request_id": request_id})
            return {
                "request_id": request_id, "status": "error",
                "error_code": E_INTERNAL,
                "message": f"Report build failed: {e}",
                "details": {},
            }

        monitoring.observe_report(start, source, report.grade, report.score, report.total_count)
        for code, n in report.data_quality.get("metrics", {}).get("counts", {}).items():
            monitoring.inc_data_quality_warning(code, n)
        monitoring.logger.info(
            "Report built",
            extra={
                "request_id": request_id,
                "source": source,
                "total_count": report.total_count,
                "score": report.score,
                "grade": report.grade,
            },
        )
        return {
            "request_id": request_id,
            "status": "success",
            "report": report.model_dump(mode="json"),
        }


def _duration(minutes: float) -> Dict[str, Any]:
    return {"minutes": minutes, "formatted": format_duration(minutes)}
