import datetime

from portal_analytics.quality import (
    run_quality_checks,
    QualityConfig,
    E_BAD_DATA,
    W_NEGATIVE_DURATION,
    W_STATUS_TIMESTAMP_MISMATCH,
    W_DUPLICATE_ID,
)

BASE = datetime.datetime(2025, 3, 1, 9, 0, 0)


def make_ticket(tid, status="Closed", **kw):
    t = {
        "id": tid,
        "status": status,
        "department": "Water",
        "submission_date": BASE,
    }
    if status == "Closed":
        t.update({
            "started_at": BASE + datetime.timedelta(hours=1),
            "answered_at": BASE + datetime.timedelta(hours=2),
            "closed_at": BASE + datetime.timedelta(hours=3),
        })
    t.update(kw)
    return t


def codes(report):
    return [w["code"] for w in report["warnings"]]


def test_clean_records_have_no_findings():
    report = run_quality_checks([make_ticket("a"), make_ticket("b"), make_ticket("c", status="New")])
    assert report["ok"] is True
    assert report["warnings"] == []
    assert report["metrics"]["n_records"] == 3


def test_not_a_list_is_an_error():
    report = run_quality_checks("tickets")
    assert report["ok"] is False
    assert report["errors"][0]["code"] == E_BAD_DATA


def test_invalid_record_is_an_error():
    report = run_quality_checks([{"id": "x", "status": "Lost"}])
    assert report["ok"] is False
    assert report["errors"][0]["code"] == E_BAD_DATA


def test_empty_list_is_ok():
    report = run_quality_checks([])
    assert report["ok"] is True
    assert report["metrics"]["n_records"] == 0


def test_negative_duration_detected():
    report = run_quality_checks([make_ticket("skew", closed_at=BASE - datetime.timedelta(minutes=5))])
    assert W_NEGATIVE_DURATION in codes(report)
    assert report["ok"] is True


def test_status_timestamp_mismatch_detected():
    records = [
        make_ticket("closed-no-ts", closed_at=None),
        make_ticket("answered-no-ts", status="Answered"),
        make_ticket("new-with-ts", status="New", answered_at=BASE + datetime.timedelta(hours=1)),
    ]
    report = run_quality_checks(records)
    mismatch = [w for w in report["warnings"] if w["code"] == W_STATUS_TIMESTAMP_MISMATCH]
    assert len(mismatch) == 1
    assert mismatch[0]["count"] == 3
    assert report["metrics"]["counts"][W_STATUS_TIMESTAMP_MISMATCH] == 3


def test_duplicate_ids_detected():
    report = run_quality_checks([make_ticket("dup"), make_ticket("dup"), make_ticket("ok")])
    dup = [w for w in report["warnings"] if w["code"] == W_DUPLICATE_ID]
    assert dup and dup[0]["count"] == 1
    assert "dup" in dup[0]["message"]


def test_message_truncates_id_list():
    records = [make_ticket(f"t{i}", closed_at=None) for i in range(8)]
    report = run_quality_checks(records, QualityConfig(max_ids_in_message=3))
    msg = report["warnings"][0]["message"]
    assert "t0, t1, t2" in msg
    assert "(+5 more)" in msg
