"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.qm_acceptance.api.router import router as acceptance_router
from src.qm_cart.api.router import router as cart_router
from src.qm_common.database import engine
from src.qm_common.errors import AppError
from src.qm_common.redis_client import close_redis, ping_redis
from src.qm_common.response import error_response
from src.qm_gateway.middleware.request_log import RequestLogMiddleware
from src.qm_order.api.router import providers_router
from src.qm_order.api.router import router as order_router
from src.qm_quote.api.router import router as quote_router
from src.qm_request.api.router import router as request_router
from src.qm_sweeper.api.router import router as sweeper_router
from src.qm_sweeper.sweeper import get_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, check Redis, start the expiry sweeper. Shutdown: stop and dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await ping_redis()
    sweeper_task: asyncio.Task[None] | None = None
    if settings.SWEEPER_ENABLED:
        sweeper_task = asyncio.create_task(get_sweeper().run_forever())
    yield
    # Shutdown
    if sweeper_task is not None:
        sweeper_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper_task
        logger.info("expiry sweeper stopped")
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(cart_router, prefix="/api/v1")
app.include_router(request_router, prefix="/api/v1")
app.include_router(quote_router, prefix="/api/v1")
app.include_router(acceptance_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(providers_router, prefix="/api/v1")
app.include_router(sweeper_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
