# portal_analytics/processors/scorer.py
"""
Composite health score and rule-based recommendations.

Functions:
- sub_scores(metrics) -> {"speed", "start", "closure", "backlog", "stale", "duration"} each in [0, 100]
- score_factors(metrics) -> per-factor breakdown (score, weight, partial, explanation)
- composite_score(factors) -> int in [0, 100]
- classify(score) -> (grade, summary)
- generate_recommendations(scores, score, total_count, seed) -> list[str]

`metrics` is the merged output of aggregator.duration_stats and
aggregator.distribution_stats. Nothing in this module reads the clock or
keeps state between calls.
"""

from typing import Any, Callable, Dict, List, Tuple

from portal_analytics.processors.formatting import format_duration, format_percent, round_half_up

WEIGHTS = {
    "speed": 0.18,
    "start": 0.12,
    "closure": 0.25,
    "backlog": 0.20,
    "stale": 0.15,
    "duration": 0.10,
}

LABELS = {
    "speed": "First reply speed",
    "start": "Processing start time",
    "closure": "Closure rate",
    "backlog": "Open backlog",
    "stale": "Stale tickets",
    "duration": "Closure duration",
}

GRADE_EXCELLENT = "Excellent"
GRADE_GOOD = "Good"
GRADE_ACCEPTABLE = "Acceptable"
GRADE_CRITICAL = "Critical"

# (minimum score, grade, summary), evaluated top-down
GRADES = [
    (85, GRADE_EXCELLENT, "Overall performance is high with effective response and good closure."),
    (70, GRADE_GOOD, "Performance is stable; there is room to improve speed and reduce backlog."),
    (55, GRADE_ACCEPTABLE, "Average level; intervention is needed to improve reply times and raise closure."),
]
CRITICAL_SUMMARY = "Indicators point to slowness and backlog; an urgent plan is required."

REC_SPEED = "Assign an on-call team to speed up the first reply and cut initial waiting time."
REC_BACKLOG = "Clear the current backlog with a focused processing drive (quick triage, then routing)."
REC_STALE = "Review stale tickets daily and give them immediate priority."
REC_CLOSURE = "Set a clear weekly closure target and tie it to follow-up reports."
REC_DURATION = "Analyse why tickets run long (waiting stages, missing information)."
REC_MAINTAIN = "Keep the current approach and add proactive monitoring to prevent regression."
REC_MORE_DATA = "Gather more data to improve the accuracy of the recommendations."

# ordered (predicate over sub-scores, message); each appends at most one line
RULES: List[Tuple[Callable[[Dict[str, float]], bool], str]] = [
    (lambda s: s["speed"] < 60, REC_SPEED),
    (lambda s: s["backlog"] < 65, REC_BACKLOG),
    (lambda s: s["stale"] < 70, REC_STALE),
    (lambda s: s["closure"] < 70, REC_CLOSURE),
    (lambda s: s["duration"] < 65, REC_DURATION),
]

# cosmetic closing sentence, rotated by the caller's refresh counter
VARIANTS = [
    "The assessment is based on local time indicators and operational ratios (no external calls).",
    "The summary comes from an internal weighting model that mimics a smart analysis.",
    "All calculations run locally and convert the figures into normalized 0-100 scores.",
]


def clamp(v: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, v))


def sub_scores(metrics: Dict[str, Any]) -> Dict[str, float]:
    avg_answer = metrics["avg_answer_minutes"]
    avg_start = metrics["avg_start_minutes"]
    avg_close = metrics["avg_close_minutes"]

    # 0 means "no data", which scores a neutral midpoint rather than a perfect mark
    speed = 50.0 if avg_answer == 0 else clamp(100 - (avg_answer / 60) * 15)
    start = 50.0 if avg_start == 0 else clamp(100 - (avg_start / 60) * 12)
    duration = clamp(100 - (avg_close / 1440) * 8) if avg_close != 0 else 60.0

    return {
        "speed": speed,
        "start": start,
        "closure": clamp(metrics["closure_ratio"] * 110),
        "backlog": clamp(100 - metrics["open_ratio"] * 120),
        "stale": clamp(100 - metrics["stale_ratio"] * 160),
        "duration": duration,
    }


def _explain(key: str, metrics: Dict[str, Any]) -> Tuple[float, str]:
    if key == "speed":
        v = metrics["avg_answer_minutes"]
        return v, f"average first reply: {format_duration(v)}"
    if key == "start":
        v = metrics["avg_start_minutes"]
        return v, f"average start: {format_duration(v)}"
    if key == "closure":
        v = metrics["closure_ratio"]
        return v, f"closure rate: {format_percent(v)}"
    if key == "backlog":
        v = metrics["open_ratio"]
        return v, f"open ratio: {format_percent(v)}"
    if key == "stale":
        v = metrics["stale_ratio"]
        return v, f"stale ratio: {format_percent(v)}"
    v = metrics["avg_close_minutes"]
    return v, f"average closure: {format_duration(v)}"


def score_factors(metrics: Dict[str, Any]) -> List[Dict[str, Any]]:
    scores = sub_scores(metrics)
    factors = []
    for key, weight in WEIGHTS.items():
        value, explain = _explain(key, metrics)
        factors.append({
            "key": key,
            "label": LABELS[key],
            "value": float(value),
            "score": scores[key],
            "weight": weight,
            "partial": scores[key] * weight,
            "explain": explain,
        })
    return factors


def composite_score(factors: List[Dict[str, Any]]) -> int:
    raw = sum(f["partial"] for f in factors)
    return round_half_up(clamp(raw))


def classify(score: int) -> Tuple[str, str]:
    for minimum, grade, summary in GRADES:
        if score >= minimum:
            return grade, summary
    return GRADE_CRITICAL, CRITICAL_SUMMARY


def generate_recommendations(scores: Dict[str, float], score: int, total_count: int, seed: int = 0) -> List[str]:
    recs: List[str] = []
    # empty set: skip the rules, the neutral defaults would fire them on their own
    # (fallback + rotating sentence only; see DESIGN.md decision 4)
    if total_count > 0:
        for predicate, message in RULES:
            if predicate(scores):
                recs.append(message)
        if not recs and score >= 85:
            recs.append(REC_MAINTAIN)
    if not recs:
        recs.append(REC_MORE_DATA)
    recs.append(VARIANTS[int(seed) % len(VARIANTS)])
    return recs
