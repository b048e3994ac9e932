"""
Persistence tests: optimistic locking, lookups and the serialization round trip.
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from booking_service import engine
from booking_service.engine import as_utc
from booking_service.errors import ConflictError, NotFoundError
from booking_service.payments import calculate_payments
from booking_service.repository import BookingRepository
from booking_service.schemas import BookingResponse
from booking_service.status import BookingStatus as S, PaymentStatus as P


async def persist(session_factory, booking):
    async with session_factory() as session:
        repo = BookingRepository(session)
        repo.add(booking)
        await repo.save(booking)
    return booking


@pytest.mark.asyncio
async def test_saved_booking_starts_at_version_one(session_factory, make_booking):
    booking = await persist(session_factory, make_booking())

    async with session_factory() as session:
        loaded = await BookingRepository(session).get(booking.id)

    assert loaded.version == 1
    assert loaded.status == S.PENDING
    assert loaded.final_amount == Decimal("1000.00")


@pytest.mark.asyncio
async def test_get_missing_booking(session_factory):
    async with session_factory() as session:
        with pytest.raises(NotFoundError) as exc:
            await BookingRepository(session).get("does-not-exist")

    assert exc.value.booking_id == "does-not-exist"
    assert exc.value.retryable is False


@pytest.mark.asyncio
async def test_each_write_bumps_version(session_factory, make_booking, now):
    booking = await persist(session_factory, make_booking())

    async with session_factory() as session:
        repo = BookingRepository(session)
        loaded = await repo.get(booking.id)
        engine.update_status(loaded, S.ACCEPTED, now=now)
        await repo.save(loaded)

    assert loaded.version == 2


@pytest.mark.asyncio
async def test_concurrent_cancellations_only_one_wins(session_factory, make_booking, now):
    booking = await persist(session_factory, make_booking())

    first_session = session_factory()
    second_session = session_factory()
    try:
        first = BookingRepository(first_session)
        second = BookingRepository(second_session)
        a = await first.get(booking.id)
        b = await second.get(booking.id)

        engine.update_status(a, S.CANCELLED, notes="client cancelled", now=now)
        engine.update_status(b, S.CANCELLED, notes="worker cancelled", now=now)

        await first.save(a)
        with pytest.raises(ConflictError) as exc:
            await second.save(b)
        assert exc.value.retryable is True
    finally:
        await first_session.close()
        await second_session.close()

    async with session_factory() as session:
        stored = await BookingRepository(session).get(booking.id)

    assert stored.status == S.CANCELLED
    assert stored.version == 2
    assert stored.admin_notes.count("\n") == 0
    assert "client cancelled" in stored.admin_notes


@pytest.mark.asyncio
async def test_cancel_racing_accept(session_factory, make_booking, now):
    booking = await persist(session_factory, make_booking())

    async with session_factory() as s1, session_factory() as s2:
        r1, r2 = BookingRepository(s1), BookingRepository(s2)
        a = await r1.get(booking.id)
        b = await r2.get(booking.id)

        engine.update_status(a, S.ACCEPTED, now=now)
        engine.update_status(b, S.CANCELLED, now=now)

        await r1.save(a)
        with pytest.raises(ConflictError):
            await r2.save(b)

    async with session_factory() as session:
        stored = await BookingRepository(session).get(booking.id)
    assert stored.status == S.ACCEPTED


@pytest.mark.asyncio
async def test_expected_version_mismatch(session_factory, make_booking, now):
    booking = await persist(session_factory, make_booking())

    async with session_factory() as session:
        repo = BookingRepository(session)
        loaded = await repo.get(booking.id)
        engine.update_status(loaded, S.ACCEPTED, now=now)
        with pytest.raises(ConflictError) as exc:
            await repo.save(loaded, expected_version=7)

    assert exc.value.message == f"Booking {booking.id} is at version 1, expected 7"
    assert exc.value.retryable is True

    async with session_factory() as session:
        stored = await BookingRepository(session).get(booking.id)
    assert stored.status == S.PENDING
    assert stored.accepted_at is None


@pytest.mark.asyncio
async def test_timestamps_survive_reload(session_factory, make_booking, advance, now):
    booking = make_booking()
    advance(booking, S.ACCEPTED, S.CONFIRMED, S.IN_PROGRESS)
    await persist(session_factory, booking)

    async with session_factory() as session:
        loaded = await BookingRepository(session).get(booking.id)

    assert as_utc(loaded.applied_at) == now
    assert as_utc(loaded.accepted_at) == now + timedelta(hours=1)
    assert as_utc(loaded.started_at) == now + timedelta(hours=3)
    assert len(engine.get_timeline(loaded)) == 3


@pytest.mark.asyncio
async def test_serialization_round_trip_keeps_payments(session_factory, make_booking):
    booking = await persist(session_factory, make_booking(proposed_rate="333.33", estimated_hours=7))

    async with session_factory() as session:
        loaded = await BookingRepository(session).get(booking.id)

    payload = BookingResponse.model_validate(loaded).model_dump_json()
    restored = BookingResponse.model_validate_json(payload)
    payments = calculate_payments(restored.final_amount, restored.commission_rate)

    assert restored.commission_amount == payments.commission == booking.commission_amount
    assert restored.worker_payout == payments.worker_payout == booking.worker_payout
    assert restored.commission_amount + restored.worker_payout == restored.final_amount


@pytest.mark.asyncio
async def test_find_queries(session_factory, make_booking, advance, now):
    stale = make_booking(worker_id="w1", client_id="c1", now=now - timedelta(days=3))
    fresh = make_booking(worker_id="w1", client_id="c2")
    waiting = make_booking(worker_id="w2", client_id="c1", now=now - timedelta(days=5))
    advance(waiting, S.ACCEPTED, S.IN_PROGRESS, S.COMPLETED, start=now - timedelta(days=5))
    disputed = make_booking(worker_id="w2", client_id="c2")
    engine.update_status(disputed, S.DISPUTED, now=now)
    approved = make_booking(worker_id="w3", client_id="c3")
    advance(approved, S.ACCEPTED, S.IN_PROGRESS, S.COMPLETED, S.APPROVED)

    for b in (stale, fresh, waiting, disputed, approved):
        await persist(session_factory, b)

    async with session_factory() as session:
        repo = BookingRepository(session)

        pending = await repo.find_by_status(S.PENDING)
        assert {b.id for b in pending} == {stale.id, fresh.id}

        assert {b.id for b in await repo.find_worker_bookings("w1")} == {stale.id, fresh.id}
        assert [b.id for b in await repo.find_worker_bookings("w2", S.DISPUTED)] == [disputed.id]
        assert {b.id for b in await repo.find_client_bookings("c1")} == {stale.id, waiting.id}

        urgent = await repo.find_urgent(now)
        assert {b.id for b in urgent} == {stale.id, waiting.id, disputed.id}

        due = await repo.find_payments_pending()
        assert [b.id for b in due] == [approved.id]
        assert due[0].payment_status == P.PENDING


@pytest.mark.asyncio
async def test_locking_read(session_factory, make_booking, now):
    booking = await persist(session_factory, make_booking())

    async with session_factory() as session:
        repo = BookingRepository(session)
        locked = await repo.get(booking.id, for_update=True)
        engine.update_status(locked, S.REJECTED, now=now)
        await repo.save(locked, expected_version=1)

    assert locked.status == S.REJECTED
    assert locked.version == 2


@pytest.mark.asyncio
async def test_fine_grained_rate_survives_reload(session_factory, make_booking):
    booking = await persist(
        session_factory, make_booking(proposed_rate=50000, estimated_hours=2, commission_rate="0.12345")
    )

    async with session_factory() as session:
        repo = BookingRepository(session)
        loaded = await repo.get(booking.id)
        recomputed = calculate_payments(loaded.final_amount, loaded.commission_rate)

        assert loaded.commission_rate == Decimal("0.1235")
        assert recomputed.commission == loaded.commission_amount == Decimal("12350.00")

        engine.set_final_amount(loaded, loaded.final_amount)
        assert loaded.commission_amount == Decimal("12350.00")
        await repo.save(loaded)
