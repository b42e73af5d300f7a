from uuid import UUID
from datetime import date, datetime
from typing import Optional, List

from app.schemas.common import CamelModel

class BookingCreate(CamelModel):
    patient_user_id: UUID
    city_id: UUID
    health_post_id: UUID
    service_id: UUID
    date: date
    # Parsed by the admission controller so malformed times are reported
    # the same way as every other admission rejection
    time: str
    patient_count: int = 1

class HealthPostSummary(CamelModel):
    id: UUID
    name: str
    address: str

class ServiceSummary(CamelModel):
    id: UUID
    name: str
    duration: Optional[int] = None
    requirements: Optional[str] = None

class PatientSummary(CamelModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None

class BookingResponse(CamelModel):
    id: UUID
    reference: str
    qr_code: str
    patient_user_id: UUID
    city_id: UUID
    health_post_id: UUID
    service_id: UUID
    date: date
    time: str
    patient_count: int
    status: str
    admin_comment: Optional[str] = None
    created_at: datetime
    # Resolved for display; None when the referenced row is gone
    health_post: Optional[HealthPostSummary] = None
    service: Optional[ServiceSummary] = None
    patient: Optional[PatientSummary] = None

class BookingStatusUpdate(CamelModel):
    status: str
    admin_comment: Optional[str] = None

class BookingCommentUpdate(CamelModel):
    comment: str

class CityBookingsPage(CamelModel):
    bookings: List[BookingResponse]
    total_pages: int
    total_records: int
    page: int
