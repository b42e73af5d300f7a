from uuid import UUID
from datetime import date, datetime
from typing import Optional, List

from app.schemas.common import CamelModel

class TemplateCreate(CamelModel):
    name: str
    health_post_id: UUID
    service_id: UUID
    city_id: UUID
    days_of_week: List[int]
    time_slot: str
    slots_per_time: int
    start_date: date
    end_date: Optional[date] = None

class TemplateUpdate(CamelModel):
    name: Optional[str] = None
    days_of_week: Optional[List[int]] = None
    time_slot: Optional[str] = None
    slots_per_time: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None

class TemplateResponse(CamelModel):
    id: UUID
    name: str
    health_post_id: UUID
    service_id: UUID
    city_id: UUID
    days_of_week: List[int]
    time_slot: str
    slots_per_time: int
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    created_at: datetime
