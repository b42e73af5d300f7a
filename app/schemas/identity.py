from pydantic import BaseModel
from typing import Optional
from uuid import UUID

from app.core.config import settings

class Principal(BaseModel):
    """The caller, as resolved by the identity layer before the core runs."""
    user_id: UUID
    role: str = "user"
    city_id: Optional[UUID] = None

    @property
    def is_elevated(self) -> bool:
        return self.role in settings.ELEVATED_ROLES
