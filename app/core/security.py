from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from app.core.config import settings

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> dict:
    # Raises jwt.exceptions.PyJWTError on a bad signature or expiry
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
