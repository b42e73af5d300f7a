from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import date, datetime, time
from uuid import UUID, uuid4

class SlotLock(SQLModel, table=True):
    """
    One row per (health post, service, date, time). Admissions for a key
    hold this row with SELECT ... FOR UPDATE until they commit, and bump it,
    so two transactions can never both read the last free seat.
    """
    __tablename__ = "slot_locks"
    __table_args__ = (
        UniqueConstraint("health_post_id", "service_id", "slot_date", "slot_time", name="uq_slot_locks_key"),
    )
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    health_post_id: UUID
    service_id: UUID
    slot_date: date
    slot_time: time
    admissions: int = Field(default=0)
    last_admitted_at: Optional[datetime] = None
