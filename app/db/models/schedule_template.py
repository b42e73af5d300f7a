from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from typing import Optional, List, FrozenSet
from datetime import date, datetime, time
from uuid import UUID, uuid4

from app.core.timeutils import Weekday, to_weekdays, time_to_seconds

class ScheduleTemplate(SQLModel, table=True):
    __tablename__ = "schedule_templates"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    health_post_id: UUID = Field(foreign_key="health_posts.id", index=True)
    service_id: UUID = Field(foreign_key="services.id", index=True)
    city_id: UUID = Field(foreign_key="cities.id", index=True)
    # 0=Sunday..6=Saturday, stored sorted
    days_of_week: List[int] = Field(default=[], sa_column=Column(JSON, nullable=False))
    time_slot: time
    slots_per_time: int = Field(default=0)
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def weekdays(self) -> FrozenSet[Weekday]:
        return to_weekdays(self.days_of_week or [])

    @property
    def time_seconds(self) -> int:
        return time_to_seconds(self.time_slot)
