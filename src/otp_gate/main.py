"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from otp_gate.api.router import otp_error_handler, request_validation_handler
from otp_gate.api.router import router as otp_router
from otp_gate.config import Settings, settings
from otp_gate.errors import OTPError
from otp_gate.runtime import Runtime, build_runtime

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


async def sweep_expired(runtime: Runtime, interval: float) -> None:
    """Periodically evict expired challenges to bound memory."""
    while True:
        await asyncio.sleep(interval)
        runtime.manager.purge_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    runtime: Runtime = app.state.runtime
    interval = runtime.settings.otp_sweep_interval_seconds
    logger.info("Starting %s …", runtime.settings.app_name)

    sweeper = None
    if interval > 0:
        sweeper = asyncio.create_task(sweep_expired(runtime, interval))
        logger.info("Expiry sweep every %gs", interval)
    yield
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    logger.info("Shutting down %s …", runtime.settings.app_name)


def cors_origins(app_settings: Settings) -> list[str]:
    """Parse ``cors_allow_origins`` into the list CORSMiddleware expects."""
    raw = app_settings.cors_allow_origins.strip()
    if raw == "*":
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """Build an application owning *runtime* (or a fresh one from settings)."""
    runtime = runtime or build_runtime(settings)
    app_settings = runtime.settings
    app = FastAPI(
        title=app_settings.app_name,
        description="One-time passcode issuance and verification over SMS and email",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime
    app.add_exception_handler(OTPError, otp_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    origins = cors_origins(app_settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(otp_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Simple liveness probe."""
        runtime = request.app.state.runtime
        return {
            "status": "healthy",
            "app": runtime.settings.app_name,
            "active_challenges": runtime.store.active_count,
        }

    return app


app = create_app()
