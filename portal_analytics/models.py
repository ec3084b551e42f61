# portal_analytics/models.py
from sqlalchemy import Column, Integer, String, DateTime, Text

from portal_analytics.db import Base


class TicketRow(Base):
    __tablename__ = "tickets"

    pk = Column(Integer, primary_key=True, index=True)
    id = Column(String(64), unique=True, index=True, nullable=False)
    status = Column(String(32), nullable=False)
    department = Column(String(255), nullable=False, index=True)
    submission_date = Column(DateTime, nullable=False, index=True)
    started_at = Column(DateTime, nullable=True)
    answered_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    request_type = Column(String(64), nullable=True)
    full_name = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)


class ContactMessageRow(Base):
    __tablename__ = "contact_messages"

    pk = Column(Integer, primary_key=True, index=True)
    id = Column(String(64), unique=True, index=True, nullable=False)
    status = Column(String(32), nullable=False)
    submission_date = Column(DateTime, nullable=False, index=True)
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
