from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    city_id: Optional[UUID] = Field(default=None, foreign_key="cities.id")
    role: str = Field(default="user") # user, staff, admin
    name: str
    email: str = Field(unique=True, index=True)
    phone: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
