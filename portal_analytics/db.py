# portal_analytics/db.py
"""
Record source backed by SQLAlchemy.

Stores tickets and contact messages for the stored-record report endpoint.
The analytics engine itself never writes here; only ingestion does.
"""
import os
import datetime
from typing import Optional, List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.exc import SQLAlchemyError

from portal_analytics import monitoring
from portal_analytics.schemas import RequestRecord, ContactMessage, RequestStatus

# Default dev DB; on serverless hosts api/index.py sets DATABASE_URL to /tmp before import
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./portal_analytics.db")

# status -> lifecycle column stamped when a ticket enters it
STATUS_TIMESTAMP_FIELD = {
    RequestStatus.IN_PROGRESS: "started_at",
    RequestStatus.ANSWERED: "answered_at",
    RequestStatus.CLOSED: "closed_at",
}


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def reconfigure(url: str):
    """Reconfigure the DB engine and session factory at runtime (for tests)."""
    global engine, SessionLocal
    engine = _make_engine(url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    # Create tables if they don't exist
    try:
        import portal_analytics.models as models  # noqa: F401
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        # don't crash the app at import time; the report endpoints will return empty data
        monitoring.logger.exception("DB init failed")


def _ticket_from_row(row) -> RequestRecord:
    return RequestRecord(
        id=row.id,
        status=row.status,
        department=row.department,
        submission_date=row.submission_date,
        started_at=row.started_at,
        answered_at=row.answered_at,
        closed_at=row.closed_at,
        request_type=row.request_type,
        full_name=row.full_name,
        details=row.details,
    )


def _message_from_row(row) -> ContactMessage:
    return ContactMessage(
        id=row.id,
        status=row.status,
        submission_date=row.submission_date,
        subject=row.subject or "",
        message=row.message or "",
    )


def save_ticket(ticket: RequestRecord) -> Optional[int]:
    """
    Insert a ticket. Returns the DB primary key, or None on error
    (including a duplicate id).
    """
    from portal_analytics.models import TicketRow
    db: Session = SessionLocal()
    try:
        row = TicketRow(
            id=ticket.id,
            status=ticket.status.value,
            department=ticket.department,
            submission_date=ticket.submission_date,
            started_at=ticket.started_at,
            answered_at=ticket.answered_at,
            closed_at=ticket.closed_at,
            request_type=ticket.request_type,
            full_name=ticket.full_name,
            details=ticket.details,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row.pk
    except SQLAlchemyError:
        db.rollback()
        monitoring.logger.exception("DB save error", extra={"ticket_id": ticket.id})
        return None
    finally:
        db.close()


def save_contact_message(msg: ContactMessage) -> Optional[int]:
    from portal_analytics.models import ContactMessageRow
    db: Session = SessionLocal()
    try:
        row = ContactMessageRow(
            id=msg.id,
            status=msg.status.value,
            submission_date=msg.submission_date,
            subject=msg.subject,
            message=msg.message,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row.pk
    except SQLAlchemyError:
        db.rollback()
        monitoring.logger.exception("DB save error", extra={"message_id": msg.id})
        return None
    finally:
        db.close()


def get_ticket(ticket_id: str) -> Optional[RequestRecord]:
    from portal_analytics.models import TicketRow
    db: Session = SessionLocal()
    try:
        row = db.query(TicketRow).filter(TicketRow.id == ticket_id).first()
        return _ticket_from_row(row) if row else None
    except SQLAlchemyError:
        monitoring.logger.exception("DB read error", extra={"ticket_id": ticket_id})
        return None
    finally:
        db.close()


def update_ticket_status(ticket_id: str, status: RequestStatus,
                         at: Optional[datetime.datetime] = None) -> Optional[RequestRecord]:
    """
    Move a ticket to `status` and stamp the matching lifecycle timestamp
    (InProgress -> started_at, Answered -> answered_at, Closed -> closed_at).
    An already-set timestamp is kept. Returns the updated ticket, or None if
    it does not exist or the write failed.
    """
    from portal_analytics.models import TicketRow
    at = at or datetime.datetime.now()
    db: Session = SessionLocal()
    try:
        row = db.query(TicketRow).filter(TicketRow.id == ticket_id).first()
        if not row:
            return None
        row.status = status.value
        field = STATUS_TIMESTAMP_FIELD.get(status)
        if field and getattr(row, field) is None:
            setattr(row, field, at)
        db.commit()
        db.refresh(row)
        return _ticket_from_row(row)
    except SQLAlchemyError:
        db.rollback()
        monitoring.logger.exception("DB update error", extra={"ticket_id": ticket_id})
        return None
    finally:
        db.close()


def load_tickets() -> List[RequestRecord]:
    from portal_analytics.models import TicketRow
    db: Session = SessionLocal()
    try:
        return [_ticket_from_row(r) for r in db.query(TicketRow).all()]
    except SQLAlchemyError:
        monitoring.logger.exception("DB read error")
        return []
    finally:
        db.close()


def load_contact_messages() -> List[ContactMessage]:
    from portal_analytics.models import ContactMessageRow
    db: Session = SessionLocal()
    try:
        return [_message_from_row(r) for r in db.query(ContactMessageRow).all()]
    except SQLAlchemyError:
        monitoring.logger.exception("DB read error")
        return []
    finally:
        db.close()
