from datetime import date, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.core.timeutils import weekday_of
from app.db.models import ScheduleTemplate
from app.schemas.slot import CandidateSlot

def template_is_active_on(template: ScheduleTemplate, on_date: date) -> bool:
    """
    A template is active on ``on_date`` when it is enabled, the date lies in
    its inclusive validity window (no ``end_date`` means open ended) and the
    date's weekday is one of its ``days_of_week``.
    """
    if not template.is_active:
        return False
    if on_date < template.start_date:
        return False
    if template.end_date is not None and on_date > template.end_date:
        return False
    return weekday_of(on_date) in template.weekdays

def check_horizon(on_date: date, horizon_days: int, today: date) -> None:
    limit = today + timedelta(days=horizon_days)
    if on_date > limit:
        raise ValidationError(
            f"Date {on_date.isoformat()} is beyond the booking horizon ({horizon_days} days, last bookable date {limit.isoformat()})"
        )

class RecurrenceResolver:
    def __init__(self, store, horizon_days: Optional[int] = None, today: Optional[Callable[[], date]] = None):
        self.store = store
        self.horizon_days = settings.AVAILABILITY_HORIZON_DAYS if horizon_days is None else horizon_days
        self.today = today or date.today

    async def resolve_slots(self, health_post_id: UUID, service_id: UUID, on_date: date) -> List[CandidateSlot]:
        check_horizon(on_date, self.horizon_days, self.today())

        # The store may return a superset (e.g. every weekday); filter again here
        templates = await self.store.fetch_active_templates(health_post_id, service_id, on_date)
        candidates = []
        for template in templates:
            if template.health_post_id != health_post_id or template.service_id != service_id:
                continue
            try:
                active = template_is_active_on(template, on_date)
            except ValueError as e:
                logger.error(f"Template {template.id} has invalid days_of_week {template.days_of_week!r}: {e}")
                continue
            if active:
                candidates.append(CandidateSlot(
                    template_id=template.id,
                    time_seconds=template.time_seconds,
                    capacity=template.slots_per_time,
                ))

        candidates.sort(key=lambda c: (c.time_seconds, str(c.template_id)))
        return candidates
