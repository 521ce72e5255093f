"""vscode-deployer HTTP service.

Routes:
    GET  /health            liveness
    GET  /metrics           Prometheus exposition
    POST /api/v1/instances  deploy a code-server instance
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from vscode_deployer import __version__
from vscode_deployer.api import health_router, instances_router
from vscode_deployer.api.dependencies import init_provisioner, reset_provisioner
from vscode_deployer.config import DeployerConfig, get_config
from vscode_deployer.errors import DeployerError
from vscode_deployer.logging import setup_logging
from vscode_deployer.logging_schema import LogEvent

logger = logging.getLogger(__name__)

# Reachable without the API key
PUBLIC_PATHS = frozenset({"/health", "/metrics"})


def create_app(config: DeployerConfig) -> FastAPI:
    """Build the service around one Provisioner for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        provisioner = init_provisioner(config)
        logger.info(
            "Starting vscode-deployer",
            extra={
                "event": LogEvent.APP_STARTED,
                "version": __version__,
                "runtime_mode": config.runtime.mode,
                "records_dir": str(provisioner.store.directory),
                "port_range": f"{config.ports.range_start}-{config.ports.range_end}",
            },
        )
        yield
        logger.info(
            "Shutting down vscode-deployer",
            extra={"event": LogEvent.APP_STOPPED, "runtime": provisioner.detector.cache.get()},
        )
        reset_provisioner()

    app = FastAPI(
        title="vscode-deployer",
        description="Deploys code-server instances on a local container engine",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(DeployerError)
    async def deployer_error_handler(request: Request, exc: DeployerError) -> JSONResponse:
        # Recoverable errors are the caller's to resubmit, not ours to alert on
        level = logging.INFO if exc.recoverable else logging.WARNING
        logger.log(
            level,
            "Deploy failed: %s",
            exc.message,
            extra={
                "event": LogEvent.DEPLOYER_ERROR,
                "error_code": exc.code.value,
                "recoverable": exc.recoverable,
                "details": exc.details or {},
                "path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            extra={
                "event": LogEvent.UNHANDLED_EXCEPTION,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.middleware("http")
    async def api_key_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        api_key = config.server.api_key
        if not api_key or request.url.path in PUBLIC_PATHS:
            return await call_next(request)
        if request.headers.get("Authorization", "") != f"Bearer {api_key}":
            return JSONResponse(status_code=401, content={"detail": "Invalid API key"})
        return await call_next(request)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(health_router)
    app.include_router(instances_router, prefix="/api/v1")
    return app


_config = get_config()
setup_logging(_config.logging)
app = create_app(_config)


def main() -> None:
    """Run the deployer server."""
    uvicorn.run(
        "vscode_deployer.main:app",
        host=_config.server.host,
        port=_config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
