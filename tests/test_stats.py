from decimal import Decimal

import pytest
import pytest_asyncio

from booking_service import engine
from booking_service.stats import booking_stats, revenue_summary
from booking_service.status import BookingStatus as S

PAID_PATH = (S.ACCEPTED, S.IN_PROGRESS, S.COMPLETED, S.APPROVED, S.PAID)


@pytest.fixture
def marketplace(make_booking, advance):
    first = make_booking(worker_id="w1", proposed_rate=250, estimated_hours=4)
    advance(first, *PAID_PATH)
    engine.record_satisfaction(first, client=5)

    second = make_booking(worker_id="w2", proposed_rate=500, estimated_hours=4)
    advance(second, *PAID_PATH)
    engine.record_satisfaction(second, client=4, worker=5)

    third = make_booking(worker_id="w1", proposed_rate=100, estimated_hours=3)
    advance(third, *PAID_PATH)

    awaiting_payment = make_booking(worker_id="w3", proposed_rate=100, estimated_hours=4)
    advance(awaiting_payment, S.ACCEPTED, S.IN_PROGRESS, S.COMPLETED, S.APPROVED)

    accepted = make_booking(worker_id="w3")
    advance(accepted, S.ACCEPTED)

    cancelled = make_booking(worker_id="w4")
    advance(cancelled, S.CANCELLED)

    return [first, second, third, awaiting_payment, accepted, cancelled, make_booking()]


@pytest_asyncio.fixture
async def seeded(session_factory, marketplace):
    async with session_factory() as session:
        session.add_all(marketplace)
        await session.commit()
    return marketplace


@pytest.mark.asyncio
async def test_booking_stats(session_factory, seeded):
    async with session_factory() as session:
        stats = await booking_stats(session)

    assert stats["total_bookings"] == 7
    assert stats["active_bookings"] == 1
    assert stats["completed_bookings"] == 3
    assert stats["average_rating"] == 4.5
    assert stats["total_revenue"] == Decimal("3300.00")
    assert stats["average_job_value"] == Decimal("1100.00")
    assert stats["status_breakdown"][S.PAID] == 3
    assert stats["status_breakdown"][S.PENDING] == 1
    assert stats["status_breakdown"][S.REJECTED] == 0
    assert set(stats["status_breakdown"]) == set(S.ALL)


@pytest.mark.asyncio
async def test_revenue_summary(session_factory, seeded):
    async with session_factory() as session:
        summary = await revenue_summary(session)

    assert summary["total_revenue"] == Decimal("3300.00")
    assert summary["total_commission"] == Decimal("495.00")
    assert summary["total_worker_payouts"] == Decimal("2805.00")
    assert summary["effective_commission_rate"] == Decimal("0.15")
    assert summary["pending_payments_value"] == Decimal("400.00")
    assert summary["top_earning_workers"] == [
        {"worker_id": "w2", "total_earnings": Decimal("1700.00"), "job_count": 1},
        {"worker_id": "w1", "total_earnings": Decimal("1105.00"), "job_count": 2},
    ]


@pytest.mark.asyncio
async def test_empty_store(session_factory):
    async with session_factory() as session:
        stats = await booking_stats(session)
        summary = await revenue_summary(session)

    assert stats["total_bookings"] == 0
    assert stats["average_rating"] == 0
    assert stats["total_revenue"] == Decimal("0.00")
    assert summary["effective_commission_rate"] is None
    assert summary["top_earning_workers"] == []
