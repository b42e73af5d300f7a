from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_availability_service
from app.schemas.slot import AvailableSlotsResponse, WeeklyAvailabilityResponse
from app.services.availability_service import AvailabilityService

router = APIRouter()

@router.get("", response_model=AvailableSlotsResponse)
async def read_available_slots(
    health_post_id: UUID = Query(..., alias="healthPostId"),
    service_id: UUID = Query(..., alias="serviceId"),
    on_date: date = Query(..., alias="date"),
    service: AvailabilityService = Depends(get_availability_service)
):
    return await service.get_available_slots(health_post_id, service_id, on_date)

@router.get("/week", response_model=WeeklyAvailabilityResponse)
async def read_week_availability(
    health_post_id: UUID = Query(..., alias="healthPostId"),
    service_id: UUID = Query(..., alias="serviceId"),
    start_date: date = Query(..., alias="startDate"),
    days: Optional[int] = Query(None, ge=1, le=31),
    service: AvailabilityService = Depends(get_availability_service)
):
    return await service.get_week_availability(health_post_id, service_id, start_date, days)
