from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from importlib import import_module
from pathlib import Path

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .locations.dependencies import Gateway
from .locations.exceptions import StorageError, ValidationError
from .locations.gateway import LocationGateway
from .locations.stores import create_store
from .utils import configure_logging

logger = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application and its location gateway.

    The gateway is connected when the application starts and closed when it
    shuts down. Run with ``uvicorn --factory pinpoint.server:create_app``.
    """

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    gateway = LocationGateway(create_store(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await gateway.connect()
        try:
            yield
        finally:
            await gateway.close()

    app = FastAPI(title="pinpoint", lifespan=lifespan)
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, validation_error_handler)

    load_apps(app, Path(__file__).parent)

    @app.get("/health")
    async def get_health(gateway: Gateway) -> JSONResponse:
        try:
            await gateway.ping()
        except StorageError as exc:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "fail", "message": str(exc)},
            )
        return JSONResponse({"status": "pass"})

    @app.get("/test")
    async def get_test() -> dict:
        return {
            "message": "Test endpoint is working!",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


def load_apps(app: FastAPI, path: Path) -> None:
    for api_module in path.glob("*/api.py"):

        # Construct the name of the module
        relative_path = api_module.relative_to(Path(__file__).parent)
        module_path = ".".join(p.name for p in reversed(relative_path.parents))
        module_name = f"{module_path}.{api_module.stem}"

        # Register the module
        module = import_module(module_name, package="pinpoint")
        if router := getattr(module, "router", None):
            app.include_router(router)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ValidationError)
    logger.info("Rejected location", path=request.url.path, reason=exc.error)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict()
    )
