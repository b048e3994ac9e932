from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from .config import URGENT_AFTER_HOURS
from .errors import ConflictError, NotFoundError
from .log import logger
from .models import Booking
from .status import BookingStatus, PaymentStatus


class BookingRepository:
    """Loads and persists bookings inside one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, booking_id: str, for_update: bool = False) -> Booking:
        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        res = await self.session.execute(stmt)
        booking = res.scalar_one_or_none()
        if not booking:
            raise NotFoundError(booking_id)
        return booking

    def add(self, booking: Booking) -> None:
        self.session.add(booking)

    async def save(self, booking: Booking, expected_version: int | None = None) -> Booking:
        """
        Commit pending changes. A write that matches no row at the version we
        read means someone else got there first: ConflictError.
        """
        # rollback expires the instance; read what the errors need beforehand
        booking_id, current = booking.id, booking.version
        if expected_version is not None and current != expected_version:
            await self.session.rollback()
            raise ConflictError(f"Booking {booking_id} is at version {current}, expected {expected_version}")
        try:
            await self.session.commit()
        except StaleDataError:
            await self.session.rollback()
            logger.warning(f"Concurrent modification of booking {booking_id}")
            raise ConflictError(f"Booking {booking_id} was modified concurrently; reload and retry")
        return booking

    async def find_by_status(self, status: str, limit: int = 20) -> list[Booking]:
        res = await self.session.execute(
            select(Booking)
            .where(Booking.status == status)
            .order_by(Booking.created_at.desc())
            .limit(limit)
        )
        return list(res.scalars().all())

    async def find_worker_bookings(self, worker_id: str, status: str | None = None) -> list[Booking]:
        stmt = select(Booking).where(Booking.worker_id == worker_id)
        if status:
            stmt = stmt.where(Booking.status == status)
        res = await self.session.execute(stmt.order_by(Booking.created_at.desc()))
        return list(res.scalars().all())

    async def find_client_bookings(self, client_id: str, status: str | None = None) -> list[Booking]:
        stmt = select(Booking).where(Booking.client_id == client_id)
        if status:
            stmt = stmt.where(Booking.status == status)
        res = await self.session.execute(stmt.order_by(Booking.created_at.desc()))
        return list(res.scalars().all())

    async def find_urgent(self, now: datetime) -> list[Booking]:
        """Stale applications, work waiting too long for approval, and disputes."""
        cutoff = now - timedelta(hours=URGENT_AFTER_HOURS)
        res = await self.session.execute(
            select(Booking)
            .where(
                or_(
                    and_(Booking.status == BookingStatus.PENDING, Booking.applied_at < cutoff),
                    and_(Booking.status == BookingStatus.COMPLETED, Booking.completed_at < cutoff),
                    Booking.status == BookingStatus.DISPUTED,
                )
            )
            .order_by(Booking.created_at.asc())
        )
        return list(res.scalars().all())

    async def find_payments_pending(self) -> list[Booking]:
        res = await self.session.execute(
            select(Booking)
            .where(
                Booking.status == BookingStatus.APPROVED,
                Booking.payment_status.in_([PaymentStatus.PENDING, PaymentStatus.HELD]),
            )
            .order_by(Booking.reviewed_at.asc())
        )
        return list(res.scalars().all())
