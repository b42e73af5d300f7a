"""
In-memory stand-in for ``SlotStore`` and ``admission_unit``.

It keeps the transactional contract the admission controller relies on:
the per-slot lock taken by ``lock_slot`` is held until the unit ends,
bookings inserted inside a unit are only visible to other units after it
commits, and a unit that raises leaves the ledger untouched.
"""
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime, time
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from app.core.exceptions import ConcurrencyConflict
from app.core.timeutils import seconds_to_time, time_to_seconds
from app.db.models import Booking, BookingStatus, City, HealthPost, ScheduleTemplate, Service, User
from app.schemas.slot import SlotKey


class FakeSlotLock:
    def __init__(self, key: SlotKey):
        self.key = key
        self.admissions = 0
        self.last_admitted_at: Optional[datetime] = None


class InMemoryDatastore:
    def __init__(self):
        self.cities: Dict[UUID, City] = {}
        self.health_posts: Dict[UUID, HealthPost] = {}
        self.services: Dict[UUID, Service] = {}
        self.templates: Dict[UUID, ScheduleTemplate] = {}
        self.bookings: Dict[UUID, Booking] = {}
        self.users: Dict[UUID, User] = {}
        self.slot_locks: Dict[SlotKey, FakeSlotLock] = {}
        self._mutexes: Dict[SlotKey, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.units_opened = 0
        self.stores: List["FakeSlotStore"] = []
        self.commits = 0
        # Number of upcoming units that fail as if the datastore aborted them
        self.pending_conflicts = 0

    # Fixtures

    def add_city(self, name: str = "Campinas") -> City:
        city = City(id=uuid4(), name=name)
        self.cities[city.id] = city
        return city

    def add_health_post(self, city_id: UUID, name: str = "UBS Centro") -> HealthPost:
        post = HealthPost(id=uuid4(), city_id=city_id, name=name, address="Rua 1")
        self.health_posts[post.id] = post
        return post

    def add_user(self, user_id: Optional[UUID] = None, name: str = "Maria Souza", city_id: Optional[UUID] = None) -> User:
        user = User(id=user_id or uuid4(), name=name, email=f"{name.split()[0].lower()}@example.com", phone="19999990000", city_id=city_id)
        self.users[user.id] = user
        return user

    def add_service(self, city_id: UUID, name: str = "Vacinação", requirements: Optional[str] = None) -> Service:
        service = Service(id=uuid4(), city_id=city_id, name=name, requirements=requirements)
        self.services[service.id] = service
        return service

    def add_template(
        self,
        post: HealthPost,
        service: Service,
        days_of_week: List[int],
        time_slot: time,
        slots_per_time: int,
        start_date: date,
        end_date: Optional[date] = None,
        is_active: bool = True,
        name: str = "Template",
    ) -> ScheduleTemplate:
        template = ScheduleTemplate(
            id=uuid4(),
            name=name,
            health_post_id=post.id,
            service_id=service.id,
            city_id=post.city_id,
            days_of_week=list(days_of_week),
            time_slot=time_slot,
            slots_per_time=slots_per_time,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        )
        self.templates[template.id] = template
        return template

    def add_booking(
        self,
        post: HealthPost,
        service: Service,
        on_date: date,
        at: time,
        patient_count: int = 1,
        status: str = BookingStatus.CONFIRMED.value,
        patient_user_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> Booking:
        booking = Booking(
            id=uuid4(),
            reference=f"BK-{len(self.bookings):08d}",
            patient_user_id=patient_user_id or uuid4(),
            health_post_id=post.id,
            service_id=service.id,
            city_id=post.city_id,
            date=on_date,
            time=at,
            patient_count=patient_count,
            status=status,
            qr_code="QR-test",
            created_at=created_at or datetime.utcnow(),
        )
        self.bookings[booking.id] = booking
        return booking

    def confirmed_total(self, key: SlotKey) -> int:
        return sum(
            b.patient_count
            for b in self.bookings.values()
            if b.health_post_id == key.health_post_id
            and b.service_id == key.service_id
            and b.date == key.date
            and time_to_seconds(b.time) == key.time_seconds
            and b.status == BookingStatus.CONFIRMED.value
        )

    # Units

    def store(self) -> "FakeSlotStore":
        return FakeSlotStore(self)

    @asynccontextmanager
    async def unit(self):
        self.units_opened += 1
        store = FakeSlotStore(self)
        try:
            if self.pending_conflicts > 0:
                self.pending_conflicts -= 1
                raise ConcurrencyConflict("Concurrent admission for the same slot, please retry")
            yield store
            store.apply()
        finally:
            store.release()


class FakeSlotStore:
    def __init__(self, datastore: InMemoryDatastore):
        self.db = datastore
        self._staged: List[Booking] = []
        self._held: List[asyncio.Lock] = []
        # Order of datastore calls made through this store
        self.calls: List[str] = []
        datastore.stores.append(self)

    async def get_health_post(self, health_post_id: UUID) -> Optional[HealthPost]:
        self.calls.append("get_health_post")
        return self.db.health_posts.get(health_post_id)

    async def get_service(self, service_id: UUID) -> Optional[Service]:
        return self.db.services.get(service_id)

    async def fetch_active_templates(self, health_post_id: UUID, service_id: UUID, on_date: date) -> List[ScheduleTemplate]:
        await asyncio.sleep(0)
        return [
            t for t in self.db.templates.values()
            if t.health_post_id == health_post_id
            and t.service_id == service_id
            and t.is_active
            and t.start_date <= on_date
            and (t.end_date is None or t.end_date >= on_date)
        ]

    async def get_template(self, template_id: UUID) -> Optional[ScheduleTemplate]:
        return self.db.templates.get(template_id)

    async def list_templates_for_city(self, city_id: UUID) -> List[ScheduleTemplate]:
        return sorted(
            (t for t in self.db.templates.values() if t.city_id == city_id),
            key=lambda t: t.name,
        )

    async def save_template(self, template: ScheduleTemplate) -> ScheduleTemplate:
        self.db.templates[template.id] = template
        return template

    def _visible_bookings(self) -> List[Booking]:
        return list(self.db.bookings.values()) + self._staged

    async def confirmed_counts_by_time(self, health_post_id: UUID, service_id: UUID, on_date: date) -> Dict[int, int]:
        # Yield so concurrent units interleave between read and write
        await asyncio.sleep(0)
        counts: Dict[int, int] = defaultdict(int)
        for b in self._visible_bookings():
            if (
                b.health_post_id == health_post_id
                and b.service_id == service_id
                and b.date == on_date
                and b.status == BookingStatus.CONFIRMED.value
            ):
                counts[time_to_seconds(b.time)] += b.patient_count
        return dict(counts)

    async def sum_confirmed_patient_count(self, health_post_id: UUID, service_id: UUID, on_date: date, time_seconds: int) -> int:
        counts = await self.confirmed_counts_by_time(health_post_id, service_id, on_date)
        return counts.get(time_seconds, 0)

    async def lock_slot(self, key: SlotKey) -> FakeSlotLock:
        self.calls.append("lock_slot")
        mutex = self.db._mutexes[key]
        await mutex.acquire()
        self._held.append(mutex)
        if key not in self.db.slot_locks:
            self.db.slot_locks[key] = FakeSlotLock(key)
        return self.db.slot_locks[key]

    async def mark_admitted(self, lock: FakeSlotLock) -> None:
        lock.admissions += 1
        lock.last_admitted_at = datetime.utcnow()

    async def insert_booking(self, booking: Booking) -> Booking:
        await asyncio.sleep(0)
        self._staged.append(booking)
        return booking

    async def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.users.get(user_id)

    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        return self.db.bookings.get(booking_id)

    async def save_booking(self, booking: Booking) -> Booking:
        self.db.bookings[booking.id] = booking
        return booking

    async def list_bookings_for_user(self, user_id: UUID) -> List[Booking]:
        return sorted(
            (b for b in self.db.bookings.values() if b.patient_user_id == user_id),
            key=lambda b: b.created_at,
            reverse=True,
        )

    async def list_bookings_for_city(self, city_id: UUID, offset: int, limit: int):
        bookings = sorted(
            (b for b in self.db.bookings.values() if b.city_id == city_id),
            key=lambda b: b.created_at,
            reverse=True,
        )
        return bookings[offset:offset + limit], len(bookings)

    async def commit(self):
        self.apply()

    def apply(self):
        for booking in self._staged:
            self.db.bookings[booking.id] = booking
        self._staged = []
        self.db.commits += 1

    def release(self):
        while self._held:
            self._held.pop().release()


def slot_key(post: HealthPost, service: Service, on_date: date, at: time) -> SlotKey:
    return SlotKey(health_post_id=post.id, service_id=service.id, date=on_date, time_seconds=time_to_seconds(at))


def at(hours: int, minutes: int = 0) -> time:
    return seconds_to_time(hours * 3600 + minutes * 60)
