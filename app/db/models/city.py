from sqlmodel import SQLModel, Field, Relationship
from typing import List, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .health_post import HealthPost
    from .service import Service

class City(SQLModel, table=True):
    __tablename__ = "cities"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    state: str | None = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    health_posts: List["HealthPost"] = Relationship(back_populates="city")
    services: List["Service"] = Relationship(back_populates="city")
