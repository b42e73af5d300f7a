from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_template_service, require_elevated
from app.core.timeutils import format_time, time_to_seconds
from app.db.models import ScheduleTemplate
from app.schemas.identity import Principal
from app.schemas.template import TemplateCreate, TemplateResponse, TemplateUpdate
from app.services.template_service import TemplateService

router = APIRouter()

def template_to_response(template: ScheduleTemplate) -> TemplateResponse:
    return TemplateResponse(
        id=template.id,
        name=template.name,
        health_post_id=template.health_post_id,
        service_id=template.service_id,
        city_id=template.city_id,
        days_of_week=template.days_of_week,
        time_slot=format_time(time_to_seconds(template.time_slot)),
        slots_per_time=template.slots_per_time,
        start_date=template.start_date,
        end_date=template.end_date,
        is_active=template.is_active,
        created_at=template.created_at,
    )

@router.post("/", response_model=TemplateResponse, status_code=201)
async def create_template(
    request: TemplateCreate,
    principal: Principal = Depends(require_elevated),
    service: TemplateService = Depends(get_template_service)
):
    template = await service.create_template(request)
    return template_to_response(template)

@router.get("/city/{city_id}", response_model=List[TemplateResponse])
async def read_city_templates(
    city_id: UUID,
    principal: Principal = Depends(require_elevated),
    service: TemplateService = Depends(get_template_service)
):
    templates = await service.list_templates_by_city(city_id)
    return [template_to_response(t) for t in templates]

@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: UUID,
    request: TemplateUpdate,
    principal: Principal = Depends(require_elevated),
    service: TemplateService = Depends(get_template_service)
):
    template = await service.update_template(template_id, request)
    return template_to_response(template)

@router.delete("/{template_id}", response_model=TemplateResponse)
async def delete_template(
    template_id: UUID,
    principal: Principal = Depends(require_elevated),
    service: TemplateService = Depends(get_template_service)
):
    template = await service.delete_template(template_id)
    return template_to_response(template)
