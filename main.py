"""FastAPI application entrypoint for the storefront catalog service.

Run with ``uvicorn main:app``.
"""
import sys

# Ensure UTF-8 encoding
if sys.stdout and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

from datetime import datetime, timezone
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import time
import uuid

from app.api.dependencies import get_store
from app.api.errors import register_exception_handlers
from app.api.routes import currency_router, router
from app.core.logging import get_logger, setup_logging
from app.core.config import settings
from app.infrastructure.mongo import close_mongo_client
from app.infrastructure.redis import close_redis_client, redis_health_check
from app.infrastructure.store import ProductStore

# Initialize structured logging
log_format = settings.environment == "production"
setup_logging(level=settings.log_level, json_format=log_format)
logger = get_logger(__name__)

# Application metadata
APP_VERSION = "1.0.0"
APP_NAME = "Storefront Catalog Service"

app = FastAPI(
    title=APP_NAME,
    description="Product catalog administration: products, pricing, search and featured ordering",
    version=APP_VERSION,
    docs_url="/docs" if settings.environment != "production" else None,  # Disable in prod
    redoc_url="/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with timing and a request ID.

    An incoming ``X-Request-ID`` is reused so IDs can be traced across
    services; otherwise a new one is generated.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    context = {"request_id": request_id, "method": request.method, "path": request.url.path}
    started = time.perf_counter()

    logger.debug(f"{request.method} {request.url.path} started", extra=context)

    try:
        response = await call_next(request)
    except Exception as e:
        # Catalog errors never get here; they have their own handlers
        logger.error(
            f"{request.method} {request.url.path} crashed",
            extra={**context, "duration_ms": _elapsed_ms(started), "error_type": type(e).__name__},
            exc_info=True
        )
        return JSONResponse(
            status_code=500,
            content={"message": "Something went wrong!", "request_id": request_id},
            headers={"X-Request-ID": request_id},
        )

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={**context, "status_code": response.status_code, "duration_ms": _elapsed_ms(started)}
    )
    response.headers["X-Request-ID"] = request_id
    return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("Application starting up", extra={"version": APP_VERSION})


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    await close_mongo_client()
    await close_redis_client()
    logger.info("Application shutting down")


app.include_router(router, prefix=settings.api_prefix)
app.include_router(currency_router, prefix=settings.api_prefix)


@app.get("/")
def root():
    """Root endpoint with basic service info."""
    return {
        "service": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.environment
    }


@app.get("/health")
def health_check():
    """Liveness check; does not touch external services."""
    return {
        "status": "ok",
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/ready")
async def readiness_check(store: ProductStore = Depends(get_store)):
    """Readiness check: verifies MongoDB (required) and Redis (optional)."""
    checks = {
        "mongodb": "ok" if await store.ping() else "error",
        "rate_source": settings.rate_source,
    }

    if settings.rate_source == "remote":
        checks["redis"] = "ok" if await redis_health_check() else "unavailable"

    all_ok = checks["mongodb"] == "ok"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "degraded",
            "checks": checks
        }
    )
