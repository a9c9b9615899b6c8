"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from config.settings import settings
from src.rb_circuit.api.router import router as circuit_router
from src.rb_client.api.router import router as client_router
from src.rb_common.database import engine
from src.rb_common.errors import AppError
from src.rb_common.logging_config import configure_logging
from src.rb_common.redis_client import redis_connection
from src.rb_common.response import error_payload, error_response
from src.rb_delivery.api.router import router as delivery_router
from src.rb_gateway.api.router import router as auth_router
from src.rb_gateway.api.users_router import router as users_router
from src.rb_gateway.middleware.request_log import RequestLogMiddleware, get_request_id
from src.rb_payment.api.router import router as payment_router
from src.rb_planning.api.router import router as planning_router
from src.rb_product.api.router import categories_router
from src.rb_product.api.router import router as product_router
from src.rb_session.api.router import router as session_router

configure_logging()
logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await redis_connection.connect()
    logger.info("%s started", settings.APP_NAME)
    yield
    await engine.dispose()
    await redis_connection.close()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list[dict[str, str]] | None = None,
) -> JSONResponse:
    resp = error_response(code, message, details, get_request_id(request))
    return JSONResponse(status_code=status_code, content=error_payload(resp))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error(request, exc.http_status, exc.code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error(request, 422, "VALIDATION_ERROR", "Validation failed", details)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate == _UNIQUE_VIOLATION:
        return _error(request, 409, "DUPLICATE_KEY", "A record with this value already exists")
    logger.warning("Integrity violation on %s: %s", request.url.path, exc.orig)
    return _error(request, 409, "CONFLICT", "Operation conflicts with related records")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.DEBUG else "Internal server error"
    return _error(request, 500, "INTERNAL_ERROR", message)


for router in (
    auth_router,
    users_router,
    client_router,
    product_router,
    categories_router,
    delivery_router,
    payment_router,
    session_router,
    circuit_router,
    planning_router,
):
    app.include_router(router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
