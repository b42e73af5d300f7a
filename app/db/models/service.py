from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .city import City

class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    city_id: UUID = Field(foreign_key="cities.id", index=True)
    name: str
    duration: Optional[int] = None # minutes
    requirements: Optional[str] = None # shown to patients as the service description
    created_at: datetime = Field(default_factory=datetime.utcnow)

    city: "City" = Relationship(back_populates="services")
