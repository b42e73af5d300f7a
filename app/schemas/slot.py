from pydantic import BaseModel, ConfigDict
from datetime import date
from typing import List
from uuid import UUID

from app.schemas.common import CamelModel

class SlotKey(BaseModel):
    """Identity of one bookable occurrence. ``time_seconds`` is canonical."""
    model_config = ConfigDict(frozen=True)

    health_post_id: UUID
    service_id: UUID
    date: date
    time_seconds: int

class CandidateSlot(BaseModel):
    template_id: UUID
    time_seconds: int
    capacity: int

class ResolvedSlot(BaseModel):
    time_seconds: int
    capacity: int
    confirmed_count: int
    remaining: int
    template_ids: List[UUID] = []

    @property
    def available(self) -> bool:
        return self.remaining > 0

class AvailableSlotOut(CamelModel):
    time: str
    available: bool
    total_slots: int
    available_slots: int
    service_description: str = ""

class AvailableSlotsResponse(CamelModel):
    available_slots: List[AvailableSlotOut]

class DailyAvailability(CamelModel):
    date: date
    slots: List[AvailableSlotOut]

class WeeklyAvailabilityResponse(CamelModel):
    health_post_id: UUID
    service_id: UUID
    start_date: date
    end_date: date
    days: List[DailyAvailability]
