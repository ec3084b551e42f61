# portal_analytics/app.py
import time
import datetime
from typing import Optional, List

# Load .env BEFORE any package imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request, Path, Query
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from pydantic import BaseModel, Field

from portal_analytics.orchestrator import AnalyticsOrchestrator
from portal_analytics.schemas import (
    AnalyticsFilter, ContactMessage, RequestRecord, RequestStatus, to_naive,
)
from portal_analytics import monitoring
from portal_analytics import db as dbmod

app = FastAPI(title="Citizen Request Analytics API")

# Initialize DB tables on startup
dbmod.init_db()

# instantiate orchestrator once
orchestrator = AnalyticsOrchestrator()


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------
class ReportRequest(BaseModel):
    tickets: List[RequestRecord] = Field(default_factory=list)
    contact_messages: List[ContactMessage] = Field(default_factory=list)
    date_from: Optional[datetime.date] = None
    date_to: Optional[datetime.date] = None
    department: Optional[str] = None
    status: Optional[RequestStatus] = None
    seed: int = 0
    now: Optional[datetime.datetime] = None


class StatusUpdateRequest(BaseModel):
    status: RequestStatus
    at: Optional[datetime.datetime] = None


def _error(status_code: int, error_code: str, message: str, **extra) -> JSONResponse:
    content = {"status": "error", "error_code": error_code, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _internal_error(e: Exception) -> JSONResponse:
    return _error(500, "E_INTERNAL", "Internal server error", request_id=None,
                  details={"exception": str(e)})


def _make_filter(now: datetime.datetime, date_from, date_to, department, status) -> AnalyticsFilter:
    flt = orchestrator.default_filter(now, department or None, status)
    return flt.model_copy(update={
        "date_from": date_from or flt.date_from,
        "date_to": date_to or flt.date_to,
    })


def _report_response(resp) -> JSONResponse:
    code = 200 if resp.get("status") == "success" else 500
    return JSONResponse(status_code=code, content=resp)


# ---------------------------------------------------------------------------
# Analytics endpoints
# ---------------------------------------------------------------------------
@app.post("/api/analytics/report")
async def report_inline(req: ReportRequest):
    """
    POST /api/analytics/report
    Body: { "tickets": [...], "contact_messages": [...], "date_from": "YYYY-MM-DD",
            "date_to": "YYYY-MM-DD", "department": "...", "status": "New", "seed": 0,
            "now": "..." }
    """
    monitoring.logger.info("Received inline report request", extra={"n_tickets": len(req.tickets)})
    now = to_naive(req.now) if req.now else datetime.datetime.now()
    flt = _make_filter(now, req.date_from, req.date_to, req.department, req.status)
    resp = orchestrator.handle_report(req.tickets, req.contact_messages, flt,
                                      seed=req.seed, now=now, source="inline")
    return _report_response(resp)


@app.get("/api/analytics/report")
def report_stored(
    date_from: Optional[datetime.date] = Query(None),
    date_to: Optional[datetime.date] = Query(None),
    department: Optional[str] = Query(None),
    status: Optional[RequestStatus] = Query(None),
    seed: int = Query(0, description="Refresh counter; rotates the closing recommendation"),
):
    """
    GET /api/analytics/report?date_from=...&date_to=...&department=...&status=...&seed=0
    Report over the stored tickets and contact messages.
    """
    now = datetime.datetime.now()
    flt = _make_filter(now, date_from, date_to, department, status)
    try:
        tickets = dbmod.load_tickets()
        messages = dbmod.load_contact_messages()
    except Exception as e:
        monitoring.logger.exception("Unexpected error loading records")
        return _internal_error(e)
    resp = orchestrator.handle_report(tickets, messages, flt, seed=seed, now=now, source="stored")
    return _report_response(resp)


# ---------------------------------------------------------------------------
# Record ingestion
# ---------------------------------------------------------------------------
@app.post("/api/tickets")
def create_ticket(ticket: RequestRecord):
    pk = dbmod.save_ticket(ticket)
    if pk is None:
        return _error(409, "E_SAVE_FAILED", f"Ticket {ticket.id} could not be saved", ticket_id=ticket.id)
    monitoring.inc_records_ingested("ticket")
    return JSONResponse(status_code=201, content={"status": "success", "ticket_id": ticket.id})


@app.get("/api/tickets/{ticket_id}")
def get_ticket(ticket_id: str = Path(..., description="Ticket ID to fetch")):
    ticket = dbmod.get_ticket(ticket_id)
    if not ticket:
        return _error(404, "E_NOT_FOUND", "Ticket not found", ticket_id=ticket_id)
    return {"status": "success", "ticket": ticket.model_dump(mode="json")}


@app.post("/api/tickets/{ticket_id}/status")
def set_ticket_status(req: StatusUpdateRequest, ticket_id: str = Path(...)):
    ticket = dbmod.update_ticket_status(ticket_id, req.status, to_naive(req.at))
    if not ticket:
        return _error(404, "E_NOT_FOUND", "Ticket not found", ticket_id=ticket_id)
    monitoring.logger.info("Ticket status changed", extra={"ticket_id": ticket_id, "new_status": req.status.value})
    return {"status": "success", "ticket": ticket.model_dump(mode="json")}


@app.post("/api/contact-messages")
def create_contact_message(msg: ContactMessage):
    pk = dbmod.save_contact_message(msg)
    if pk is None:
        return _error(409, "E_SAVE_FAILED", f"Message {msg.id} could not be saved", message_id=msg.id)
    monitoring.inc_records_ingested("contact_message")
    return JSONResponse(status_code=201, content={"status": "success", "message_id": msg.id})


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
