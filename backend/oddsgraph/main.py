import logging
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from oddsgraph.api.router import api_router
from oddsgraph.core.config import get_settings
from oddsgraph.core.database import engine
from oddsgraph.core.errors import OddsGraphError
from oddsgraph.core.logging import setup_logging
from oddsgraph.schemas import ErrorDetail, ErrorResponse

settings = get_settings()

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[FastApiIntegration(), SqlalchemyIntegration()],
        send_default_pii=False,
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "Database URL configuration active",
        extra={
            "database_url_source": settings.resolved_database_url_source,
            "database_host": (
                settings.postgres_host if settings.resolved_database_url_source == "postgres_fallback" else None
            ),
            "database_name": (
                settings.postgres_db if settings.resolved_database_url_source == "postgres_fallback" else None
            ),
        },
    )
    if not settings.odds_api_configured:
        logger.warning("ODDS_API_KEY not configured; odds endpoints will return empty results")

    redis: Optional[Redis] = None
    try:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
        logger.info("Redis connected")
    except Exception:
        app.state.redis = None
        logger.exception("Redis connection failed; refresh lock is process-local")

    yield

    if redis is not None:
        await redis.aclose()
    await engine.dispose()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.exception_handler(OddsGraphError)
async def oddsgraph_error_handler(request: Request, exc: OddsGraphError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "code": exc.code, "error": exc.message},
        )
    else:
        logger.info(
            "Request rejected",
            extra={"path": request.url.path, "code": exc.code, "error": exc.message},
        )
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else first.get("msg", "invalid request")
    return _error_response(400, "VALIDATION_FAILED", message)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
)

app.include_router(api_router, prefix="/api/v1")
