from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_admission_controller, get_booking_service, get_principal, require_elevated
from app.core.timeutils import format_time, time_to_seconds
from app.db.models import Booking
from app.schemas.booking import (
    BookingCommentUpdate,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    CityBookingsPage,
    HealthPostSummary,
    PatientSummary,
    ServiceSummary,
)
from app.schemas.identity import Principal
from app.services.admission import AdmissionController
from app.services.booking_service import BookingService

router = APIRouter()

async def construct_response(booking: Booking, service: BookingService) -> BookingResponse:
    health_post = await service.store.get_health_post(booking.health_post_id)
    offered = await service.store.get_service(booking.service_id)
    patient = await service.store.get_user(booking.patient_user_id)

    return BookingResponse(
        id=booking.id,
        reference=booking.reference,
        qr_code=booking.qr_code,
        patient_user_id=booking.patient_user_id,
        city_id=booking.city_id,
        health_post_id=booking.health_post_id,
        service_id=booking.service_id,
        date=booking.date,
        time=format_time(time_to_seconds(booking.time)),
        patient_count=booking.patient_count,
        status=booking.status,
        admin_comment=booking.admin_comment,
        created_at=booking.created_at,
        health_post=HealthPostSummary.model_validate(health_post) if health_post else None,
        service=ServiceSummary.model_validate(offered) if offered else None,
        patient=PatientSummary.model_validate(patient) if patient else None,
    )

@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingCreate,
    principal: Principal = Depends(get_principal),
    controller: AdmissionController = Depends(get_admission_controller),
    service: BookingService = Depends(get_booking_service)
):
    booking = await controller.submit_booking(
        principal,
        patient_user_id=request.patient_user_id,
        city_id=request.city_id,
        health_post_id=request.health_post_id,
        service_id=request.service_id,
        on_date=request.date,
        time_value=request.time,
        patient_count=request.patient_count,
    )
    return await construct_response(booking, service)

@router.get("/users/{user_id}/bookings", response_model=List[BookingResponse])
async def read_user_bookings(
    user_id: UUID,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service)
):
    bookings = await service.list_user_bookings(principal, user_id)
    return [await construct_response(b, service) for b in bookings]

@router.put("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    principal: Principal = Depends(get_principal),
    service: BookingService = Depends(get_booking_service)
):
    booking = await service.cancel_booking(principal, booking_id)
    return await construct_response(booking, service)

@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    request: BookingStatusUpdate,
    principal: Principal = Depends(require_elevated),
    service: BookingService = Depends(get_booking_service)
):
    booking = await service.update_booking_status(booking_id, request.status, request.admin_comment)
    return await construct_response(booking, service)

@router.put("/bookings/{booking_id}/comment", response_model=BookingResponse)
async def update_booking_comment(
    booking_id: UUID,
    request: BookingCommentUpdate,
    principal: Principal = Depends(require_elevated),
    service: BookingService = Depends(get_booking_service)
):
    booking = await service.update_booking_comment(booking_id, request.comment)
    return await construct_response(booking, service)

@router.get("/cities/{city_id}/bookings", response_model=CityBookingsPage)
async def read_city_bookings(
    city_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    principal: Principal = Depends(require_elevated),
    service: BookingService = Depends(get_booking_service)
):
    bookings, total, total_pages = await service.list_city_bookings(city_id, page, page_size)
    return CityBookingsPage(
        bookings=[await construct_response(b, service) for b in bookings],
        total_pages=total_pages,
        total_records=total,
        page=page,
    )
