"""
Application entrypoint exposing the FastAPI instance.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import execute_function
from .config import get_settings
from .errors import register_exception_handlers
from .executor import FunctionExecutor
from .functions import router as functions_router
from .logging import configure_logging
from .registry import FunctionRegistry

EXECUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app(registry: Optional[FunctionRegistry] = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    configure_logging()
    settings = get_settings()

    app = FastAPI(
        title="RunBox",
        summary="Register JavaScript functions by path and execute them over HTTP.",
        version="0.1.0",
    )

    app.state.registry = registry or FunctionRegistry.from_url(settings.database_url)
    app.state.executor = FunctionExecutor(app.state.registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    @app.get("/", tags=["meta"])
    async def root() -> dict[str, str]:
        """Root endpoint with helpful hints."""
        return {
            "message": "RunBox - Function Executor",
            "functions": "/api/functions",
            "execute": "/api/execute/{path}",
            "docs": "/docs",
            "health": "/healthz",
        }

    @app.get("/healthz", tags=["health"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(functions_router)

    app.add_api_route(
        "/api/execute/{script_path:path}",
        execute_function,
        methods=EXECUTE_METHODS,
        tags=["execute"],
    )

    return app


app = create_app()
