import json
import redis.asyncio as redis
from app.core.config import settings

class RedisClient:
    """
    Shared identity store.

    Browser sessions (``session:<id>``) and issued bearer tokens
    (``token:<jwt>``) live here instead of in process memory so every worker
    sees the same sessions and revocations.
    """
    def __init__(self):
        self.redis = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)

    async def set_session(self, session_id: str, data: dict, expire: int = settings.SESSION_EXPIRE_SECONDS):
        await self.redis.set(f"session:{session_id}", json.dumps(data), ex=expire)

    async def get_session(self, session_id: str) -> dict | None:
        data = await self.redis.get(f"session:{session_id}")
        if data:
            return json.loads(data)
        return None

    async def delete_session(self, session_id: str):
        await self.redis.delete(f"session:{session_id}")

    async def set_token(self, token: str, value: str, expire: int):
        await self.redis.set(f"token:{token}", value, ex=expire)

    async def get_token(self, token: str) -> str | None:
        return await self.redis.get(f"token:{token}")

    async def delete_token(self, token: str):
        await self.redis.delete(f"token:{token}")

    async def close(self):
        await self.redis.close()

redis_client = RedisClient()
