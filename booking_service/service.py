from datetime import datetime

from . import engine
from .events import booking_created_event, status_changed_event, to_json
from .models import Booking
from .publisher import Publisher
from .repository import BookingRepository


class BookingService:
    """
    Runs one lifecycle operation per booking: load, apply the engine call,
    commit under the version guard, then notify.

    Nothing is published unless the commit succeeded.
    """

    def __init__(self, session_factory, publisher: Publisher):
        self.session_factory = session_factory
        self.publisher = publisher

    async def create(self, **fields) -> Booking:
        booking = engine.create_booking(**fields)
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            repo.add(booking)
            await repo.save(booking)

        event = booking_created_event(booking)
        await self.publisher.publish(event["event_type"], to_json(event))
        return booking

    async def get(self, booking_id: str) -> Booking:
        async with self.session_factory() as session:
            return await BookingRepository(session).get(booking_id)

    async def update_status(
        self,
        booking_id: str,
        new_status: str,
        notes: str | None = None,
        expected_version: int | None = None,
        now: datetime | None = None,
    ) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            change = engine.update_status(booking, new_status, notes=notes, now=now)
            await repo.save(booking, expected_version=expected_version)

        event = status_changed_event(booking, change)
        await self.publisher.publish(event["event_type"], to_json(event))
        return booking

    async def update_payment_status(
        self,
        booking_id: str,
        new_payment_status: str,
        expected_version: int | None = None,
    ) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            change = engine.update_payment_status(booking, new_payment_status)
            await repo.save(booking, expected_version=expected_version)

        event = status_changed_event(booking, change)
        await self.publisher.publish(event["event_type"], to_json(event))
        return booking

    async def set_final_amount(self, booking_id: str, amount, expected_version: int | None = None) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            engine.set_final_amount(booking, amount)
            return await repo.save(booking, expected_version=expected_version)

    async def schedule(
        self,
        booking_id: str,
        start: datetime,
        end: datetime,
        expected_version: int | None = None,
    ) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            engine.schedule(booking, start, end)
            return await repo.save(booking, expected_version=expected_version)

    async def record_satisfaction(
        self,
        booking_id: str,
        client: int | None = None,
        worker: int | None = None,
        expected_version: int | None = None,
    ) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            engine.record_satisfaction(booking, client=client, worker=worker)
            return await repo.save(booking, expected_version=expected_version)

    async def set_notes(
        self,
        booking_id: str,
        client_notes: str | None = None,
        worker_notes: str | None = None,
        expected_version: int | None = None,
    ) -> Booking:
        async with self.session_factory() as session:
            repo = BookingRepository(session)
            booking = await repo.get(booking_id)
            engine.set_notes(booking, client_notes=client_notes, worker_notes=worker_notes)
            return await repo.save(booking, expected_version=expected_version)
