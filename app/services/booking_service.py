import math
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from app.core.exceptions import BookingNotFound, IdentityMismatch, InvalidStatusTransition, ValidationError
from app.core.logger import logger
from app.db.models import Booking, BookingStatus
from app.schemas.identity import Principal

# Nothing leads back into "confirmed": only admission creates confirmed bookings
VALID_NEXT = {
    BookingStatus.CONFIRMED.value: {BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value},
    BookingStatus.CANCELLED.value: set(),
    BookingStatus.COMPLETED.value: set(),
}

class BookingService:
    def __init__(self, store):
        self.store = store

    async def list_user_bookings(self, principal: Principal, user_id: UUID) -> List[Booking]:
        if not principal.is_elevated and principal.user_id != user_id:
            raise IdentityMismatch("You cannot view another user's bookings")
        return await self.store.list_bookings_for_user(user_id)

    async def cancel_booking(self, principal: Principal, booking_id: UUID) -> Booking:
        booking = await self.store.get_booking(booking_id)
        if not booking or booking.status != BookingStatus.CONFIRMED.value:
            raise BookingNotFound("Booking not found or already cancelled")
        if not principal.is_elevated and booking.patient_user_id != principal.user_id:
            raise IdentityMismatch("You cannot cancel another user's booking")

        booking.status = BookingStatus.CANCELLED.value
        booking.updated_at = datetime.utcnow()
        await self.store.save_booking(booking)
        await self.store.commit()
        logger.info(f"Booking {booking.reference} cancelled by {principal.user_id}")
        return booking

    async def update_booking_status(self, booking_id: UUID, status: str, admin_comment: Optional[str] = None) -> Booking:
        if status not in VALID_NEXT:
            raise ValidationError(f"Unknown booking status: {status}")

        booking = await self.store.get_booking(booking_id)
        if not booking:
            raise BookingNotFound("Booking not found")
        if status not in VALID_NEXT.get(booking.status, set()):
            raise InvalidStatusTransition(f"Cannot change booking from {booking.status} to {status}")

        booking.status = status
        if admin_comment is not None:
            booking.admin_comment = admin_comment
        booking.updated_at = datetime.utcnow()
        await self.store.save_booking(booking)
        await self.store.commit()
        logger.info(f"Booking {booking.reference} moved to {status}")
        return booking

    async def update_booking_comment(self, booking_id: UUID, comment: str) -> Booking:
        booking = await self.store.get_booking(booking_id)
        if not booking:
            raise BookingNotFound("Booking not found")

        booking.admin_comment = comment
        booking.updated_at = datetime.utcnow()
        await self.store.save_booking(booking)
        await self.store.commit()
        return booking

    async def list_city_bookings(self, city_id: UUID, page: int = 1, page_size: int = 10) -> Tuple[List[Booking], int, int]:
        page = max(page, 1)
        page_size = max(page_size, 1)
        bookings, total = await self.store.list_bookings_for_city(city_id, (page - 1) * page_size, page_size)
        total_pages = math.ceil(total / page_size)
        return bookings, total, total_pages
