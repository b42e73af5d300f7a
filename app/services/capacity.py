from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from app.core.logger import logger
from app.core.timeutils import format_time
from app.schemas.slot import CandidateSlot, ResolvedSlot
from app.services.recurrence import RecurrenceResolver

def pool_by_time(candidates: Iterable[CandidateSlot]) -> "OrderedDict[int, List[CandidateSlot]]":
    """Group candidates sharing a time; bookings are counted per time, not per template."""
    pools: "OrderedDict[int, List[CandidateSlot]]" = OrderedDict()
    for candidate in sorted(candidates, key=lambda c: c.time_seconds):
        pools.setdefault(candidate.time_seconds, []).append(candidate)
    return pools

def build_slot(time_seconds: int, pool: List[CandidateSlot], confirmed: int, context: str = "") -> ResolvedSlot:
    capacity = sum(c.capacity for c in pool)
    raw_remaining = capacity - confirmed
    if raw_remaining < 0:
        # Admission control should make this impossible
        logger.warning(
            f"Slot {context} {format_time(time_seconds)} is overbooked: "
            f"capacity={capacity} confirmed={confirmed}"
        )
    return ResolvedSlot(
        time_seconds=time_seconds,
        capacity=capacity,
        confirmed_count=confirmed,
        remaining=max(raw_remaining, 0),
        template_ids=[c.template_id for c in pool],
    )

class CapacityAggregator:
    def __init__(self, store, resolver: Optional[RecurrenceResolver] = None):
        self.store = store
        self.resolver = resolver or RecurrenceResolver(store)

    async def compute_availability(self, health_post_id: UUID, service_id: UUID, on_date: date) -> List[ResolvedSlot]:
        candidates = await self.resolver.resolve_slots(health_post_id, service_id, on_date)
        if not candidates:
            return []

        confirmed: Dict[int, int] = await self.store.confirmed_counts_by_time(health_post_id, service_id, on_date)
        context = f"{health_post_id}/{service_id}/{on_date.isoformat()}"
        return [
            build_slot(time_seconds, pool, confirmed.get(time_seconds, 0), context)
            for time_seconds, pool in pool_by_time(candidates).items()
        ]

    async def compute_slot(self, health_post_id: UUID, service_id: UUID, on_date: date, time_seconds: int) -> Optional[ResolvedSlot]:
        candidates = await self.resolver.resolve_slots(health_post_id, service_id, on_date)
        pool = [c for c in candidates if c.time_seconds == time_seconds]
        if not pool:
            return None

        confirmed = await self.store.sum_confirmed_patient_count(health_post_id, service_id, on_date, time_seconds)
        context = f"{health_post_id}/{service_id}/{on_date.isoformat()}"
        return build_slot(time_seconds, pool, confirmed, context)
