from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import PyJWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logger import logger
from app.core.redis import redis_client
from app.core.security import decode_access_token
from app.db.session import get_session
from app.schemas.identity import Principal
from app.services.admission import AdmissionController
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService
from app.services.slot_store import SlotStore
from app.services.template_service import TemplateService

bearer_scheme = HTTPBearer(auto_error=False)

def _principal_from_claims(claims: dict) -> Principal:
    user_id = claims.get("user_id") or claims.get("sub")
    if user_id is None:
        raise ValueError("missing user id")
    return Principal(
        user_id=UUID(str(user_id)),
        role=claims.get("role") or "user",
        city_id=claims.get("city_id"),
    )

async def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if session_id:
        data = await redis_client.get_session(session_id)
        if data:
            try:
                return _principal_from_claims(data)
            except (ValueError, ValidationError):
                logger.warning(f"Session {session_id[:8]}... holds no usable identity")
                raise credentials_exception

    if credentials is None:
        raise credentials_exception

    token = credentials.credentials
    try:
        payload = decode_access_token(token)
        principal = _principal_from_claims(payload)
    except (PyJWTError, ValueError, ValidationError):
        raise credentials_exception

    # Tokens are revoked by removing them from the registry
    if not await redis_client.get_token(token):
        raise credentials_exception
    return principal

async def require_elevated(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_elevated:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff access required")
    return principal

async def get_slot_store(session: AsyncSession = Depends(get_session)) -> SlotStore:
    return SlotStore(session)

async def get_availability_service(store: SlotStore = Depends(get_slot_store)) -> AvailabilityService:
    return AvailabilityService(store)

async def get_admission_controller() -> AdmissionController:
    # Opens its own transaction per attempt
    return AdmissionController()

async def get_booking_service(store: SlotStore = Depends(get_slot_store)) -> BookingService:
    return BookingService(store)

async def get_template_service(store: SlotStore = Depends(get_slot_store)) -> TemplateService:
    return TemplateService(store)
