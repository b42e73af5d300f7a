"""
Datastore access for the slot engine.

``SlotStore`` wraps one ``AsyncSession`` and exposes the queries the
resolver, aggregator and admission controller consume. Times read from the
database are normalised to canonical seconds here so nothing above this
module ever compares raw ``time`` values or strings.

``admission_unit`` opens the atomic unit an admission runs in: a single
transaction at ``ADMISSION_ISOLATION_LEVEL`` that commits on success, rolls
back on any error and translates datastore failures into
``ConcurrencyConflict`` / ``DatastoreUnavailable``.
"""
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, or_, select

from app.core.config import settings
from app.core.exceptions import ConcurrencyConflict, DatastoreUnavailable, ValidationError
from app.core.logger import logger
from app.core.timeutils import seconds_to_time, time_to_seconds
from app.db.models import Booking, BookingStatus, HealthPost, ScheduleTemplate, Service, SlotLock, User
from app.db.session import SessionLocal
from app.schemas.slot import SlotKey

# Postgres SQLSTATEs that mean "another transaction got there first"
CONFLICT_SQLSTATES = {"40001", "40P01"}
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def translate_db_error(exc: DBAPIError) -> Optional[Exception]:
    sqlstate = _sqlstate(exc)
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return ValidationError("Booking refers to a patient, health post or service that does not exist")
    if sqlstate in CONFLICT_SQLSTATES:
        return ConcurrencyConflict("Concurrent admission for the same slot, please retry")
    if isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated:
        return DatastoreUnavailable("Datastore is unavailable, try again later")
    return None


class SlotStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    # Catalog (read only)

    async def get_health_post(self, health_post_id: UUID) -> HealthPost | None:
        return await self.session.get(HealthPost, health_post_id)

    async def get_service(self, service_id: UUID) -> Service | None:
        return await self.session.get(Service, service_id)

    # Template store

    async def fetch_active_templates(self, health_post_id: UUID, service_id: UUID, on_date: date) -> List[ScheduleTemplate]:
        # Date range and activity only; weekday membership is checked by the resolver
        stmt = select(ScheduleTemplate).where(
            ScheduleTemplate.health_post_id == health_post_id,
            ScheduleTemplate.service_id == service_id,
            ScheduleTemplate.is_active == True,
            ScheduleTemplate.start_date <= on_date,
            or_(ScheduleTemplate.end_date.is_(None), ScheduleTemplate.end_date >= on_date),
        ).order_by(ScheduleTemplate.time_slot)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_template(self, template_id: UUID) -> ScheduleTemplate | None:
        return await self.session.get(ScheduleTemplate, template_id)

    async def list_templates_for_city(self, city_id: UUID) -> List[ScheduleTemplate]:
        stmt = select(ScheduleTemplate).where(
            ScheduleTemplate.city_id == city_id
        ).order_by(ScheduleTemplate.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def save_template(self, template: ScheduleTemplate) -> ScheduleTemplate:
        self.session.add(template)
        await self.session.flush()
        return template

    # Booking ledger

    async def confirmed_counts_by_time(self, health_post_id: UUID, service_id: UUID, on_date: date) -> Dict[int, int]:
        stmt = select(Booking.time, Booking.patient_count).where(
            Booking.health_post_id == health_post_id,
            Booking.service_id == service_id,
            Booking.date == on_date,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        result = await self.session.execute(stmt)
        counts: Dict[int, int] = defaultdict(int)
        for booked_time, patient_count in result.all():
            counts[time_to_seconds(booked_time)] += patient_count
        return dict(counts)

    async def sum_confirmed_patient_count(self, health_post_id: UUID, service_id: UUID, on_date: date, time_seconds: int) -> int:
        counts = await self.confirmed_counts_by_time(health_post_id, service_id, on_date)
        return counts.get(time_seconds, 0)

    async def lock_slot(self, key: SlotKey) -> SlotLock:
        """
        Take the row lock that serialises admissions for ``key``.

        Must be the first statement of the unit. The lock row is upserted
        (a concurrent creator makes us wait for its commit instead of
        failing) and then locked with ``SELECT ... FOR UPDATE``. At READ
        COMMITTED every later statement sees what earlier holders committed,
        so waiters are queued rather than aborted.
        """
        slot_time = seconds_to_time(key.time_seconds)
        upsert = pg_insert(SlotLock).values(
            id=uuid4(),
            health_post_id=key.health_post_id,
            service_id=key.service_id,
            slot_date=key.date,
            slot_time=slot_time,
            admissions=0,
        ).on_conflict_do_nothing(constraint="uq_slot_locks_key")
        await self.session.execute(upsert)

        stmt = select(SlotLock).where(
            SlotLock.health_post_id == key.health_post_id,
            SlotLock.service_id == key.service_id,
            SlotLock.slot_date == key.date,
            SlotLock.slot_time == slot_time,
        ).with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalars().one()

    async def get_user(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def mark_admitted(self, lock: SlotLock) -> None:
        lock.admissions += 1
        lock.last_admitted_at = datetime.utcnow()
        self.session.add(lock)
        await self.session.flush()

    async def insert_booking(self, booking: Booking) -> Booking:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking(self, booking_id: UUID) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def save_booking(self, booking: Booking) -> Booking:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def list_bookings_for_user(self, user_id: UUID) -> List[Booking]:
        stmt = select(Booking).where(
            Booking.patient_user_id == user_id
        ).order_by(Booking.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_bookings_for_city(self, city_id: UUID, offset: int, limit: int) -> Tuple[List[Booking], int]:
        count_stmt = select(func.count(Booking.id)).where(Booking.city_id == city_id)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = select(Booking).where(
            Booking.city_id == city_id
        ).order_by(Booking.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def commit(self):
        await self.session.commit()


@asynccontextmanager
async def admission_unit(session_factory=SessionLocal) -> AsyncIterator[SlotStore]:
    async with session_factory() as session:
        try:
            await session.connection(
                execution_options={"isolation_level": settings.ADMISSION_ISOLATION_LEVEL}
            )
            yield SlotStore(session)
            await session.commit()
        except DBAPIError as exc:
            translated = translate_db_error(exc)
            if translated is None:
                raise
            logger.warning(f"Admission unit aborted: {translated.code} ({exc.__class__.__name__})")
            raise translated from exc
        except (OSError, asyncio.TimeoutError) as exc:
            logger.error(f"Admission unit could not reach the datastore: {exc}")
            raise DatastoreUnavailable("Datastore is unavailable, try again later") from exc
