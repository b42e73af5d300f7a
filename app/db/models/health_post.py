from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .city import City

class HealthPost(SQLModel, table=True):
    __tablename__ = "health_posts"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    city_id: UUID = Field(foreign_key="cities.id", index=True)
    name: str
    address: str
    distance: Optional[float] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    city: "City" = Relationship(back_populates="health_posts")
