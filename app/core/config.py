from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "SaudeAgenda"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "saudeagenda"
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_CREATE_ALL: bool = False

    REDIS_URL: str = "redis://localhost:6379/0"

    # Identity (tokens and sessions are issued elsewhere)
    SECRET_KEY: str = "dev-only-secret-key-change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    SESSION_COOKIE_NAME: str = "sessionId"
    SESSION_EXPIRE_SECONDS: int = 60 * 60 * 24
    ELEVATED_ROLES: List[str] = ["admin", "staff"]

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Slot resolution and admission
    AVAILABILITY_HORIZON_DAYS: int = 180
    AVAILABILITY_WEEK_DAYS: int = 7
    ADMISSION_ISOLATION_LEVEL: str = "READ COMMITTED"
    ADMISSION_CONFLICT_RETRIES: int = 1

    class Config:
        case_sensitive = True
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.DATABASE_URL:
            self.DATABASE_URL = f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

settings = Settings()
