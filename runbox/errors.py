"""
Exception types and handler registration.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

EXECUTION_FAILED = "Function execution failed"


class ExecutionError(Exception):
    """Raised when a function invocation ends in a controlled failure."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int = 500,
        function: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        self.detail = detail
        self.status_code = status_code
        self.function = function
        self.details = details
        super().__init__(detail)

    def to_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.detail}
        if self.details is not None:
            body["details"] = self.details
        if self.function is not None:
            body["function"] = self.function
        return body


class FunctionNotFound(ExecutionError):
    """No function is registered at the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__("Function not found", status_code=404)
        self.path = path


class ScriptLoadError(ExecutionError):
    """The script failed to parse or threw while running its top-level code."""

    def __init__(self, message: str, *, function: str) -> None:
        super().__init__(
            EXECUTION_FAILED,
            function=function,
            details=f"JavaScript execution error: {message}",
        )


class HandlerInvocationError(ExecutionError):
    """The resolved handler threw or its promise was rejected."""

    def __init__(self, handler: str, message: str, *, function: str) -> None:
        super().__init__(
            EXECUTION_FAILED,
            function=function,
            details=f"error calling {handler} handler: {message}",
        )
        self.handler = handler


class ResultExportError(ExecutionError):
    """The handler returned a value that has no JSON representation."""

    def __init__(self, message: str, *, function: Optional[str] = None) -> None:
        super().__init__(
            EXECUTION_FAILED,
            function=function,
            details=f"failed to export result: {message}",
        )


class RegistryError(Exception):
    """Base class for function registry failures surfaced to API clients."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class RegistryValidationError(RegistryError):
    status_code = 400


class RegistryConflictError(RegistryError):
    status_code = 409


class RegistryNotFound(RegistryError):
    status_code = 404


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _id_headers(request_id: Optional[str]) -> Optional[Dict[str, str]]:
    return {"X-Request-ID": request_id} if request_id else None


def register_exception_handlers(app: FastAPI) -> None:
    """Attach module exception handlers to the FastAPI app."""

    @app.exception_handler(ExecutionError)
    async def execution_error_handler(request: Request, exc: ExecutionError) -> JSONResponse:
        request_id = _request_id(request)
        if isinstance(exc, FunctionNotFound):
            logger.warning("function_not_found", extra={"request_id": request_id, "path": exc.path})
        else:
            logger.error(
                "function_failed",
                extra={
                    "request_id": request_id,
                    "function": exc.function,
                    "status": exc.status_code,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(),
            headers=_id_headers(request_id),
        )

    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
        request_id = _request_id(request)
        logger.warning("registry_error", extra={"request_id": request_id, "status": exc.status_code})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=_id_headers(request_id),
        )
