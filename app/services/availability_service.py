from datetime import date, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from app.core.config import settings
from app.core.timeutils import format_time
from app.schemas.slot import (
    AvailableSlotOut,
    AvailableSlotsResponse,
    DailyAvailability,
    ResolvedSlot,
    WeeklyAvailabilityResponse,
)
from app.services.capacity import CapacityAggregator
from app.services.recurrence import RecurrenceResolver, check_horizon

class AvailabilityService:
    """Read path: resolved slots rendered for patients. Never cached."""

    def __init__(self, store, horizon_days: Optional[int] = None, today: Optional[Callable[[], date]] = None):
        self.store = store
        self.resolver = RecurrenceResolver(store, horizon_days=horizon_days, today=today)
        self.aggregator = CapacityAggregator(store, self.resolver)

    async def _service_description(self, service_id: UUID) -> str:
        service = await self.store.get_service(service_id)
        if service is None:
            return ""
        return service.requirements or ""

    @staticmethod
    def _render(slots: List[ResolvedSlot], description: str) -> List[AvailableSlotOut]:
        return [
            AvailableSlotOut(
                time=format_time(slot.time_seconds),
                available=slot.available,
                total_slots=slot.capacity,
                available_slots=slot.remaining,
                service_description=description,
            )
            for slot in slots
        ]

    async def get_available_slots(self, health_post_id: UUID, service_id: UUID, on_date: date) -> AvailableSlotsResponse:
        slots = await self.aggregator.compute_availability(health_post_id, service_id, on_date)
        description = await self._service_description(service_id) if slots else ""
        return AvailableSlotsResponse(available_slots=self._render(slots, description))

    async def get_week_availability(self, health_post_id: UUID, service_id: UUID, start_date: date, days: Optional[int] = None) -> WeeklyAvailabilityResponse:
        days = days or settings.AVAILABILITY_WEEK_DAYS
        check_horizon(start_date, self.resolver.horizon_days, self.resolver.today())
        last_bookable = self.resolver.today() + timedelta(days=self.resolver.horizon_days)
        end_date = min(start_date + timedelta(days=days - 1), last_bookable)

        description = await self._service_description(service_id)
        daily = []
        current = start_date
        while current <= end_date:
            slots = await self.aggregator.compute_availability(health_post_id, service_id, current)
            daily.append(DailyAvailability(date=current, slots=self._render(slots, description)))
            current += timedelta(days=1)

        return WeeklyAvailabilityResponse(
            health_post_id=health_post_id,
            service_id=service_id,
            start_date=start_date,
            end_date=end_date,
            days=daily,
        )
