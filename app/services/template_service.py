from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from app.core.exceptions import HealthPostNotFound, TemplateNotFound, ValidationError
from app.core.logger import logger
from app.core.timeutils import parse_time_of_day, seconds_to_time, to_weekdays
from app.db.models import ScheduleTemplate
from app.schemas.template import TemplateCreate, TemplateUpdate

def normalize_days(days: List[int]) -> List[int]:
    if not days:
        raise ValidationError("daysOfWeek must contain at least one weekday (0=Sunday..6=Saturday)")
    try:
        weekdays = to_weekdays(days)
    except ValueError as e:
        raise ValidationError(f"Invalid daysOfWeek: {e}") from e
    return sorted(int(day) for day in weekdays)

def normalize_slot_time(value: str) -> time:
    # Templates are kept at minute precision
    try:
        return seconds_to_time(parse_time_of_day(value))
    except ValueError as e:
        raise ValidationError(str(e)) from e

class TemplateService:
    def __init__(self, store):
        self.store = store

    @staticmethod
    def _check_window(slots_per_time: int, start_date: date, end_date: Optional[date]):
        if slots_per_time < 0:
            raise ValidationError("slotsPerTime cannot be negative")
        if end_date is not None and end_date < start_date:
            raise ValidationError("endDate cannot be before startDate")

    async def create_template(self, data: TemplateCreate) -> ScheduleTemplate:
        health_post = await self.store.get_health_post(data.health_post_id)
        if not health_post:
            raise HealthPostNotFound("Health post not found")
        if health_post.city_id != data.city_id:
            raise ValidationError("Health post does not belong to the given city")
        service = await self.store.get_service(data.service_id)
        if not service or service.city_id != data.city_id:
            raise ValidationError("Service not offered in the given city")

        self._check_window(data.slots_per_time, data.start_date, data.end_date)
        template = ScheduleTemplate(
            name=data.name,
            health_post_id=data.health_post_id,
            service_id=data.service_id,
            city_id=data.city_id,
            days_of_week=normalize_days(data.days_of_week),
            time_slot=normalize_slot_time(data.time_slot),
            slots_per_time=data.slots_per_time,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=True,
        )

        await self.store.save_template(template)
        await self.store.commit()
        logger.info(f"Schedule template {template.id} created for health post {template.health_post_id}")
        return template

    async def list_templates_by_city(self, city_id: UUID) -> List[ScheduleTemplate]:
        return await self.store.list_templates_for_city(city_id)

    async def update_template(self, template_id: UUID, data: TemplateUpdate) -> ScheduleTemplate:
        template = await self.store.get_template(template_id)
        if not template:
            raise TemplateNotFound("Template not found")

        update_data = data.model_dump(exclude_unset=True)
        if "days_of_week" in update_data:
            update_data["days_of_week"] = normalize_days(update_data["days_of_week"] or [])
        if "time_slot" in update_data:
            update_data["time_slot"] = normalize_slot_time(update_data["time_slot"] or "")
        update_data = {k: v for k, v in update_data.items() if v is not None or k == "end_date"}
        self._check_window(
            update_data.get("slots_per_time", template.slots_per_time),
            update_data.get("start_date", template.start_date),
            update_data.get("end_date", template.end_date),
        )
        for key, value in update_data.items():
            setattr(template, key, value)

        template.updated_at = datetime.utcnow()
        await self.store.save_template(template)
        await self.store.commit()
        return template

    async def delete_template(self, template_id: UUID) -> ScheduleTemplate:
        # Soft delete: bookings keep pointing at a readable template
        template = await self.store.get_template(template_id)
        if not template:
            raise TemplateNotFound("Template not found")

        template.is_active = False
        template.updated_at = datetime.utcnow()
        await self.store.save_template(template)
        await self.store.commit()
        logger.info(f"Schedule template {template.id} deactivated")
        return template
