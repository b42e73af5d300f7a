from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import InterfaceError, OperationalError

from app.core.config import settings
from app.core.exceptions import AdmissionError, DatastoreUnavailable
from app.core.logger import logger
from app.core.redis import redis_client
from app.schemas.common import ErrorResponse
from app.db.session import init_models
from app.middleware.log_middleware import LogMiddleware

@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield
    await redis_client.close()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LogMiddleware)

def error_response(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=code, detail=detail).model_dump())

@app.exception_handler(AdmissionError)
async def admission_error_handler(request: Request, exc: AdmissionError):
    return error_response(exc.status_code, exc.code, exc.detail)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    ) or "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, "validation_error", detail)

@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def datastore_error_handler(request: Request, exc: Exception):
    logger.error(f"Datastore error on {request.method} {request.url.path}: {exc.__class__.__name__}")
    return error_response(DatastoreUnavailable.status_code, DatastoreUnavailable.code, "Datastore is unavailable, try again later")

@app.exception_handler(RedisConnectionError)
async def session_store_error_handler(request: Request, exc: RedisConnectionError):
    logger.error(f"Session store unreachable on {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "session_store_unavailable", "Session store is unavailable, try again later")

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "An internal server error occurred.")

@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

@app.get("/health")
async def health():
    return {"status": "ok"}

from app.api.api import api_router
app.include_router(api_router, prefix=settings.API_V1_STR)
