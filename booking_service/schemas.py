from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateBookingRequest(BaseModel):
    job_id: str
    worker_id: str
    client_id: str
    proposed_rate: Decimal
    estimated_hours: int
    application_message: Optional[str] = None
    questions_responses: Optional[Dict[str, str]] = None
    final_amount: Optional[Decimal] = None


class UpdateStatusRequest(BaseModel):
    status: str
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str
    expected_version: Optional[int] = None


class FinalAmountRequest(BaseModel):
    final_amount: Decimal
    expected_version: Optional[int] = None


class ScheduleRequest(BaseModel):
    scheduled_start: datetime
    scheduled_end: datetime
    expected_version: Optional[int] = None


class SatisfactionRequest(BaseModel):
    client_satisfaction: Optional[int] = None
    worker_satisfaction: Optional[int] = None
    expected_version: Optional[int] = None


class NotesRequest(BaseModel):
    client_notes: Optional[str] = None
    worker_notes: Optional[str] = None
    expected_version: Optional[int] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    worker_id: str
    client_id: str
    status: str
    payment_status: str
    proposed_rate: Decimal
    estimated_hours: int
    final_amount: Optional[Decimal] = None
    commission_rate: Decimal
    commission_amount: Optional[Decimal] = None
    worker_payout: Optional[Decimal] = None
    applied_at: datetime
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    client_satisfaction: Optional[int] = None
    worker_satisfaction: Optional[int] = None
    issues_reported: bool = False
    client_notes: Optional[str] = None
    worker_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    version: int


class TimelineEntry(BaseModel):
    stage: str
    timestamp: datetime
    description: str


class CancellationResponse(BaseModel):
    can_cancel: bool
    reason: Optional[str] = None


class WorkDurationResponse(BaseModel):
    estimated: int
    actual: Optional[float] = None
    variance: Optional[float] = None
    efficiency: Optional[str] = None


class StatusInfoResponse(BaseModel):
    status: str
    description: str
    next_actions: List[str]
    can_edit: bool
    color: str


class BookingStatsResponse(BaseModel):
    total_bookings: int
    active_bookings: int
    completed_bookings: int
    average_rating: float
    total_revenue: Decimal
    average_job_value: Decimal
    status_breakdown: Dict[str, int] = Field(default_factory=dict)


class WorkerEarnings(BaseModel):
    worker_id: str
    total_earnings: Decimal
    job_count: int


class RevenueSummaryResponse(BaseModel):
    total_revenue: Decimal
    total_commission: Decimal
    total_worker_payouts: Decimal
    effective_commission_rate: Optional[Decimal] = None
    pending_payments_value: Decimal
    top_earning_workers: List[WorkerEarnings]
