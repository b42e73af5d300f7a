from fastapi import APIRouter
from app.api.v1 import bookings, slots, templates

api_router = APIRouter()

api_router.include_router(slots.router, prefix="/available-slots", tags=["availability"])
api_router.include_router(bookings.router, tags=["bookings"])
api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
