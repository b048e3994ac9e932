import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, JSON, Numeric, String, Text
from .db import Base
from .status import BookingStatus, PaymentStatus


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    job_id = Column(String, nullable=False, index=True)
    worker_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=False, index=True)

    application_message = Column(Text, nullable=True)
    proposed_rate = Column(Numeric(10, 2), nullable=False)
    estimated_hours = Column(Integer, nullable=False)
    questions_responses = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, index=True, default=BookingStatus.PENDING)
    applied_at = Column(DateTime(timezone=True), nullable=False, index=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    scheduled_start = Column(DateTime(timezone=True), nullable=True, index=True)
    scheduled_end = Column(DateTime(timezone=True), nullable=True)
    actual_start = Column(DateTime(timezone=True), nullable=True)
    actual_end = Column(DateTime(timezone=True), nullable=True)

    final_amount = Column(Numeric(12, 2), nullable=True)
    payment_status = Column(String(20), nullable=False, index=True, default=PaymentStatus.PENDING)
    commission_rate = Column(Numeric(5, 4), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=True)
    worker_payout = Column(Numeric(12, 2), nullable=True)

    client_notes = Column(Text, nullable=True)
    worker_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)  # append-only status log

    client_satisfaction = Column(Integer, nullable=True)
    worker_satisfaction = Column(Integer, nullable=True)
    issues_reported = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("client_satisfaction BETWEEN 1 AND 5", name="ck_bookings_client_satisfaction"),
        CheckConstraint("worker_satisfaction BETWEEN 1 AND 5", name="ck_bookings_worker_satisfaction"),
    )

    # every UPDATE is guarded by "WHERE version = <version read>"
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status={self.status}, payment_status={self.payment_status})>"
