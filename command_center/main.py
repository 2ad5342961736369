"""FastAPI application for the multi-tenant command center."""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from command_center.adapters.tenant_client import open_tenant_client
from command_center.api.utils import error_response
from command_center.infra.error_handler import CommandCenterError
from command_center.infra.logging import app_logger
from command_center.infra.middleware import RequestIDMiddleware, RequestLoggingMiddleware, setup_cors
from command_center.infra.timeout import TimeoutMiddleware, REQUEST_TIMEOUT
from command_center.services.client_cache import ClientFactory, TenantClientCache
from command_center.services.service_factory import ServiceFactory
from command_center.services.tenant_registry import TenantRegistry


def create_app(
    registry: Optional[TenantRegistry] = None,
    client_factory: ClientFactory = open_tenant_client,
) -> FastAPI:
    """
    Build the application.

    The registry, client cache and service factory live on ``app.state`` for
    the lifetime of the process; tests pass their own registry and client
    factory.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown."""
        tenant_registry = registry if registry is not None else TenantRegistry.from_environment()
        client_cache = TenantClientCache(tenant_registry, client_factory=client_factory)
        app.state.client_cache = client_cache
        app.state.service_factory = ServiceFactory(client_cache)
        app_logger.info("Application starting up", extra={"tenants": tenant_registry.agent_ids()})

        yield

        app_logger.info("Application shutting down")
        await client_cache.aclose()

    app = FastAPI(
        title="Command Center API",
        description="""
    Command Center API exposes a uniform view over agents whose data lives in
    separate backend projects, one per agent.

    ## Features

    - **Agents**: normalized agent summary with leads, events and metrics
    - **Brain data**: chat history, sessions, reasoning and memory for one lead
    - **Health**: liveness, registry readiness and Prometheus metrics
    """,
        version="1.0.0",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Agents",
                "description": "Agent summaries and per-lead brain data",
            },
            {
                "name": "Health",
                "description": "Health check and monitoring endpoints",
            },
        ],
    )

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(TimeoutMiddleware, timeout=REQUEST_TIMEOUT)
    setup_cors(app)

    from command_center.api.routers import agents, health

    app.include_router(agents.router)
    app.include_router(health.router)

    @app.exception_handler(CommandCenterError)
    async def command_center_exception_handler(request: Request, exc: CommandCenterError):
        """Handle taxonomy errors raised outside the agent routes."""
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        error_id = str(uuid.uuid4())
        app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"error_id": error_id})
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": f"Internal server error. Error ID: {error_id}"},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
