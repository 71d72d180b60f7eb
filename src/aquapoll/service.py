"""FastAPI service module for the aquarium controller control plane.

This module keeps only the web-facing FastAPI wiring. The orchestration
implementation lives in ``control_service.py``; routers reach it through
``app.state.service``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .api.exceptions import register_exception_handlers
from .api.routes_control import router as control_router
from .api.routes_sensors import router as sensors_router
from .api.routes_system import router as system_router
from .control_service import ControlService
from .utils import get_env_list

logger = logging.getLogger(__name__)

CORS_ORIGINS_ENV = "AQUAPOLL_CORS_ORIGINS"

# Global service instance - initialized lazily on first access
_service_instance: ControlService | None = None


def get_service() -> ControlService:
    """Get or create the singleton control service instance.

    This lazy initialization prevents reading the environment and opening
    the store when the module is merely imported.
    """
    global _service_instance
    if _service_instance is None:
        _service_instance = ControlService()
    return _service_instance


def set_service(service: ControlService | None) -> None:
    """Replace the singleton (used by tests and embedding applications)."""
    global _service_instance
    _service_instance = service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage control service startup and shutdown via FastAPI lifespan."""
    service = get_service()
    app.state.service = service
    await service.start()
    try:
        yield
    finally:
        await service.stop()


def configure_cors(app: FastAPI) -> None:
    """Allow the browser dashboard to call the API from another origin.

    Origins come from ``AQUAPOLL_CORS_ORIGINS`` (comma-separated, default ``*``).
    """
    origins = get_env_list(CORS_ORIGINS_ENV, ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


app = FastAPI(title="Aquarium Control Plane", lifespan=lifespan)
configure_cors(app)
register_exception_handlers(app)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Smart Aquarium Backend is running!"


@app.get("/api/health")
async def health_check(request: Request):
    """Health check endpoint for container monitoring."""
    service: ControlService = request.app.state.service
    return {
        "status": "healthy",
        "service": "aquapoll",
        "version": "1.0.0",
        "device_id": service.device_id,
    }


app.include_router(control_router)
app.include_router(sensors_router)
app.include_router(system_router)


def main() -> None:  # pragma: no cover
    """Run the FastAPI service under Uvicorn.

    Configuration is handled via environment variables; see
    ``aquapoll.control_service`` and ``aquapoll.logging_config``.
    """
    import sys

    import uvicorn

    from .logging_config import configure_logging, get_uvicorn_log_config
    from .utils import get_env_int, get_env_str

    configure_logging()

    host = get_env_str("AQUAPOLL_HOST", "0.0.0.0")
    port = get_env_int("AQUAPOLL_PORT", 8000)
    logger.info(f"Starting AquaPoll on {host}:{port}")

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_config=get_uvicorn_log_config(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"FATAL ERROR: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
