"""
Booking admission.

A request moves through Received -> Validated -> CapacityChecked and ends
Admitted or Rejected. Validation that needs no data (time format, patient
count, caller identity, horizon) runs before any datastore access. Everything
after that runs inside one admission unit, so the capacity read and the
booking insert commit together or not at all.
"""
from datetime import date, datetime
from typing import Callable, Optional, Union
from uuid import UUID, uuid4

from app.core.config import settings
from app.core.exceptions import (
    AdmissionError,
    ConcurrencyConflict,
    HealthPostNotFound,
    IdentityMismatch,
    InsufficientCapacity,
    NoSuchSlot,
    ValidationError,
)
from app.core.logger import logger
from app.core.timeutils import format_time, parse_time_of_day, seconds_to_time
from app.core.utils import generate_booking_reference, generate_confirmation_code
from app.db.models import Booking, BookingStatus
from app.schemas.identity import Principal
from app.schemas.slot import SlotKey
from app.services.capacity import CapacityAggregator
from app.services.recurrence import RecurrenceResolver, check_horizon
from app.services.slot_store import admission_unit

class AdmissionController:
    def __init__(
        self,
        unit_factory=admission_unit,
        horizon_days: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
        max_retries: Optional[int] = None,
    ):
        self.unit_factory = unit_factory
        self.horizon_days = settings.AVAILABILITY_HORIZON_DAYS if horizon_days is None else horizon_days
        self.today = today or date.today
        self.max_retries = settings.ADMISSION_CONFLICT_RETRIES if max_retries is None else max_retries

    def validate(
        self,
        principal: Principal,
        patient_user_id: UUID,
        on_date: date,
        time_value: Union[str, object],
        patient_count: int,
    ) -> int:
        """Checks that need no datastore access. Returns the canonical time."""
        try:
            time_seconds = parse_time_of_day(time_value)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if isinstance(patient_count, bool) or not isinstance(patient_count, int) or patient_count < 1:
            raise ValidationError("patientCount must be an integer greater than or equal to 1")

        if not principal.is_elevated and principal.user_id != patient_user_id:
            raise IdentityMismatch("You cannot book on behalf of another user")

        check_horizon(on_date, self.horizon_days, self.today())
        return time_seconds

    async def submit_booking(
        self,
        principal: Principal,
        patient_user_id: UUID,
        city_id: UUID,
        health_post_id: UUID,
        service_id: UUID,
        on_date: date,
        time_value: Union[str, object],
        patient_count: int,
    ) -> Booking:
        try:
            time_seconds = self.validate(principal, patient_user_id, on_date, time_value, patient_count)
            key = SlotKey(health_post_id=health_post_id, service_id=service_id, date=on_date, time_seconds=time_seconds)

            attempt = 0
            while True:
                try:
                    booking = await self._admit(key, patient_user_id, city_id, patient_count)
                    break
                except ConcurrencyConflict:
                    if attempt >= self.max_retries:
                        logger.error(f"Admission for {self._describe(key)} still conflicting after {attempt + 1} attempts")
                        raise
                    attempt += 1
                    logger.warning(f"Admission for {self._describe(key)} conflicted, retrying ({attempt}/{self.max_retries})")
        except AdmissionError as e:
            logger.info(f"Booking rejected: {e.code} - {e.detail}")
            raise

        logger.info(
            f"Booking {booking.reference} admitted for {self._describe(key)} "
            f"patients={patient_count} user={patient_user_id}"
        )
        return booking

    async def _admit(self, key: SlotKey, patient_user_id: UUID, city_id: UUID, patient_count: int) -> Booking:
        async with self.unit_factory() as store:
            # The slot lock comes first so every read below sees the
            # bookings committed by earlier holders
            lock = await store.lock_slot(key)

            health_post = await store.get_health_post(key.health_post_id)
            if health_post is None:
                raise HealthPostNotFound("Health post not found")
            if health_post.city_id != city_id:
                raise ValidationError("Health post does not belong to the given city")

            resolver = RecurrenceResolver(store, horizon_days=self.horizon_days, today=self.today)
            slot = await CapacityAggregator(store, resolver).compute_slot(
                key.health_post_id, key.service_id, key.date, key.time_seconds
            )
            if slot is None:
                raise NoSuchSlot(f"No slot is offered at {format_time(key.time_seconds)} on {key.date.isoformat()}")

            if patient_count > slot.remaining:
                raise InsufficientCapacity(
                    f"Requested {patient_count} place(s) but only {slot.remaining} remain at "
                    f"{format_time(key.time_seconds)} on {key.date.isoformat()}",
                    requested=patient_count,
                    remaining=slot.remaining,
                )

            booking = Booking(
                id=uuid4(),
                reference=generate_booking_reference(),
                patient_user_id=patient_user_id,
                health_post_id=key.health_post_id,
                service_id=key.service_id,
                city_id=city_id,
                date=key.date,
                time=seconds_to_time(key.time_seconds),
                patient_count=patient_count,
                status=BookingStatus.CONFIRMED.value,
                qr_code=generate_confirmation_code(),
                created_at=datetime.utcnow(),
            )
            booking = await store.insert_booking(booking)
            await store.mark_admitted(lock)
        return booking

    @staticmethod
    def _describe(key: SlotKey) -> str:
        return f"{key.health_post_id}/{key.service_id} {key.date.isoformat()} {format_time(key.time_seconds)}"
