# portal_analytics/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger import jsonlogger

# Sentry is an optional extra
try:
    import sentry_sdk
    _HAS_SENTRY = True
except ImportError:
    _HAS_SENTRY = False

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "portal-analytics", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN and _HAS_SENTRY:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "portal_analytics_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "portal_analytics_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

REPORTS_COUNTER = Counter(
    "portal_analytics_reports_total",
    "Analytics reports built",
    ["source", "grade"],
)

REPORT_LATENCY = Histogram(
    "portal_analytics_report_latency_seconds",
    "Time spent building one analytics report",
)

DATA_QUALITY_WARNINGS = Counter(
    "portal_analytics_data_quality_warnings_total",
    "Data quality findings on ticket records",
    ["code"],
)

RECORDS_INGESTED = Counter(
    "portal_analytics_records_ingested_total",
    "Records written through the ingestion endpoints",
    ["kind"],
)

LAST_SCORE = Gauge(
    "portal_analytics_last_score",
    "Composite score of the last report",
)

LAST_FILTERED_RECORDS = Gauge(
    "portal_analytics_last_filtered_records",
    "Tickets left after filtering in the last report",
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def observe_report(start_ts: float, source: str, grade: str, score: int, filtered: int):
    try:
        REPORT_LATENCY.observe(time.time() - start_ts)
        REPORTS_COUNTER.labels(source=source, grade=grade).inc()
        LAST_SCORE.set(score)
        LAST_FILTERED_RECORDS.set(filtered)
    except Exception:
        pass


def inc_data_quality_warning(code: str, n: int = 1):
    try:
        DATA_QUALITY_WARNINGS.labels(code=code).inc(n)
    except Exception:
        pass


def inc_records_ingested(kind: str):
    try:
        RECORDS_INGESTED.labels(kind=kind).inc()
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
