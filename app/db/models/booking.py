from enum import Enum
from sqlmodel import SQLModel, Field
from sqlalchemy import Index
from typing import Optional
from datetime import date, datetime, time
from uuid import UUID, uuid4

class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_slot", "health_post_id", "service_id", "date", "status"),
    )
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    reference: str = Field(index=True)
    patient_user_id: UUID = Field(foreign_key="users.id", index=True)
    health_post_id: UUID = Field(foreign_key="health_posts.id")
    service_id: UUID = Field(foreign_key="services.id")
    city_id: UUID = Field(foreign_key="cities.id", index=True)
    date: date
    time: time
    patient_count: int = Field(default=1)
    status: str = Field(default=BookingStatus.CONFIRMED.value) # confirmed, cancelled, completed
    qr_code: str
    admin_comment: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
