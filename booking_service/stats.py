"""
Read-only aggregations across bookings for the admin dashboard.
No locking; safe to run concurrently with lifecycle writes.
"""
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Booking
from .status import BookingStatus, PaymentStatus

TWO_PLACES = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


async def _count(session: AsyncSession, *criteria) -> int:
    res = await session.execute(select(func.count(Booking.id)).where(*criteria))
    return res.scalar_one()


async def booking_stats(session: AsyncSession) -> dict:
    total = await _count(session)
    active = await _count(session, Booking.status.in_(BookingStatus.ACTIVE))
    completed = await _count(session, Booking.status == BookingStatus.PAID)

    res = await session.execute(
        select(func.avg(Booking.client_satisfaction)).where(Booking.client_satisfaction.is_not(None))
    )
    avg_rating = res.scalar_one()

    res = await session.execute(
        select(func.sum(Booking.final_amount), func.avg(Booking.final_amount)).where(
            Booking.status == BookingStatus.PAID,
            Booking.final_amount.is_not(None),
        )
    )
    total_revenue, avg_job_value = res.one()

    res = await session.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status))
    breakdown = {status: 0 for status in BookingStatus.ALL}
    for status, count in res.all():
        breakdown[status] = count

    return {
        "total_bookings": total,
        "active_bookings": active,
        "completed_bookings": completed,
        "average_rating": round(float(avg_rating), 2) if avg_rating is not None else 0,
        "total_revenue": _money(total_revenue),
        "average_job_value": _money(avg_job_value),
        "status_breakdown": breakdown,
    }


async def revenue_summary(session: AsyncSession, limit: int = 10) -> dict:
    res = await session.execute(
        select(
            func.sum(Booking.final_amount),
            func.sum(Booking.commission_amount),
            func.sum(Booking.worker_payout),
        ).where(Booking.status == BookingStatus.PAID, Booking.final_amount.is_not(None))
    )
    revenue, commission, payouts = (_money(v) for v in res.one())

    res = await session.execute(
        select(func.sum(Booking.final_amount)).where(
            Booking.status.in_([BookingStatus.APPROVED, BookingStatus.COMPLETED]),
            Booking.payment_status.in_([PaymentStatus.PENDING, PaymentStatus.HELD]),
        )
    )
    pending_value = _money(res.scalar_one())

    earnings = func.sum(Booking.worker_payout)
    res = await session.execute(
        select(Booking.worker_id, earnings, func.count(Booking.id))
        .where(Booking.status == BookingStatus.PAID, Booking.worker_payout.is_not(None))
        .group_by(Booking.worker_id)
        .order_by(earnings.desc())
        .limit(limit)
    )
    top_workers = [
        {"worker_id": worker_id, "total_earnings": _money(total), "job_count": count}
        for worker_id, total, count in res.all()
    ]

    effective_rate = (commission / revenue).quantize(Decimal("0.0001")) if revenue > 0 else None

    return {
        "total_revenue": revenue,
        "total_commission": commission,
        "total_worker_payouts": payouts,
        "effective_commission_rate": effective_rate,
        "pending_payments_value": pending_value,
        "top_earning_workers": top_workers,
    }
