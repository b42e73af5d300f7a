from sqlmodel import SQLModel
from .city import City
from .health_post import HealthPost
from .service import Service
from .user import User
from .schedule_template import ScheduleTemplate
from .booking import Booking, BookingStatus
from .slot_lock import SlotLock

__all__ = [
    "SQLModel",
    "City",
    "HealthPost",
    "Service",
    "User",
    "ScheduleTemplate",
    "Booking",
    "BookingStatus",
    "SlotLock",
]
