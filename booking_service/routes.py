from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from . import engine, stats
from .schemas import (
    BookingResponse,
    BookingStatsResponse,
    CancellationResponse,
    CreateBookingRequest,
    FinalAmountRequest,
    NotesRequest,
    RevenueSummaryResponse,
    SatisfactionRequest,
    ScheduleRequest,
    StatusInfoResponse,
    TimelineEntry,
    UpdatePaymentStatusRequest,
    UpdateStatusRequest,
    WorkDurationResponse,
)
from .service import BookingService

router = APIRouter()


def get_service(request: Request) -> BookingService:
    return request.app.state.bookings


async def get_db(request: Request):
    async with request.app.state.session_factory() as session:
        yield session


@router.get("/bookings/stats", response_model=BookingStatsResponse)
async def booking_stats(db: AsyncSession = Depends(get_db)):
    return await stats.booking_stats(db)


@router.get("/bookings/stats/revenue", response_model=RevenueSummaryResponse)
async def revenue_summary(db: AsyncSession = Depends(get_db)):
    return await stats.revenue_summary(db)


@router.post("/bookings", response_model=BookingResponse, status_code=201)
async def create_booking(data: CreateBookingRequest, svc: BookingService = Depends(get_service)):
    return await svc.create(**data.model_dump())


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: str, svc: BookingService = Depends(get_service)):
    return await svc.get(booking_id)


@router.post("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_status(booking_id: str, data: UpdateStatusRequest, svc: BookingService = Depends(get_service)):
    return await svc.update_status(
        booking_id, data.status, notes=data.notes, expected_version=data.expected_version
    )


@router.post("/bookings/{booking_id}/payment-status", response_model=BookingResponse)
async def update_payment_status(
    booking_id: str, data: UpdatePaymentStatusRequest, svc: BookingService = Depends(get_service)
):
    return await svc.update_payment_status(
        booking_id, data.payment_status, expected_version=data.expected_version
    )


@router.put("/bookings/{booking_id}/final-amount", response_model=BookingResponse)
async def set_final_amount(booking_id: str, data: FinalAmountRequest, svc: BookingService = Depends(get_service)):
    return await svc.set_final_amount(booking_id, data.final_amount, expected_version=data.expected_version)


@router.put("/bookings/{booking_id}/schedule", response_model=BookingResponse)
async def schedule(booking_id: str, data: ScheduleRequest, svc: BookingService = Depends(get_service)):
    return await svc.schedule(
        booking_id, data.scheduled_start, data.scheduled_end, expected_version=data.expected_version
    )


@router.put("/bookings/{booking_id}/satisfaction", response_model=BookingResponse)
async def record_satisfaction(booking_id: str, data: SatisfactionRequest, svc: BookingService = Depends(get_service)):
    return await svc.record_satisfaction(
        booking_id,
        client=data.client_satisfaction,
        worker=data.worker_satisfaction,
        expected_version=data.expected_version,
    )


@router.put("/bookings/{booking_id}/notes", response_model=BookingResponse)
async def set_notes(booking_id: str, data: NotesRequest, svc: BookingService = Depends(get_service)):
    return await svc.set_notes(
        booking_id,
        client_notes=data.client_notes,
        worker_notes=data.worker_notes,
        expected_version=data.expected_version,
    )


@router.get("/bookings/{booking_id}/timeline", response_model=List[TimelineEntry])
async def timeline(booking_id: str, svc: BookingService = Depends(get_service)):
    return engine.get_timeline(await svc.get(booking_id))


@router.get("/bookings/{booking_id}/cancellation", response_model=CancellationResponse)
async def cancellation(booking_id: str, svc: BookingService = Depends(get_service)):
    check = engine.can_cancel(await svc.get(booking_id), datetime.now(timezone.utc))
    return CancellationResponse(can_cancel=check.can_cancel, reason=check.reason)


@router.get("/bookings/{booking_id}/duration", response_model=WorkDurationResponse)
async def duration(booking_id: str, svc: BookingService = Depends(get_service)):
    return engine.get_work_duration(await svc.get(booking_id))


@router.get("/bookings/{booking_id}/status-info", response_model=StatusInfoResponse)
async def status_info(booking_id: str, svc: BookingService = Depends(get_service)):
    return engine.get_status_info(await svc.get(booking_id))
