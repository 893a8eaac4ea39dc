"""Execution orchestrator: run a registered function against one HTTP request."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from script_runtime import (
    AVAILABLE_HANDLERS,
    ExportError,
    InterpreterSession,
    ScriptError,
    invoke_handler,
    resolve_handler,
)

from .errors import FunctionNotFound, HandlerInvocationError, ResultExportError, ScriptLoadError
from .registry import Function, FunctionRegistry, normalize_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExecutionResult:
    """Structure returned from a successful execution."""

    status: int
    body: Any | None
    handler: Optional[str] = None


def no_handler_payload(method: str) -> Dict[str, Any]:
    return {
        "error": (
            f"No handler found for method {method}. "
            f"Please define a {method} function or a default function."
        ),
        "availableHandlers": list(AVAILABLE_HANDLERS),
        "method": method,
    }


class FunctionExecutor:
    """Facade that looks up a function and runs it in a fresh interpreter session."""

    def __init__(
        self,
        registry: FunctionRegistry,
        session_factory: Callable[[], InterpreterSession] = InterpreterSession,
    ) -> None:
        self._registry = registry
        self._session_factory = session_factory

    async def lookup(self, script_path: str) -> Function:
        path = normalize_path(script_path)
        function = await asyncio.to_thread(self._registry.lookup_by_path, path)
        if function is None:
            raise FunctionNotFound(path)
        return function

    async def run(
        self,
        function: Function,
        method: str,
        request_object: Mapping[str, Any],
        *,
        request_id: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Run ``function`` for one request in a brand-new interpreter session.

        Raises an :class:`~runbox.errors.ExecutionError` subclass for every
        failure; a script without a matching handler is a successful result
        carrying a diagnostic body.
        """

        result = await self._run(function, method.upper(), dict(request_object))
        logger.info(
            "function_executed",
            extra={
                "request_id": request_id,
                "function": function.name,
                "method": method.upper(),
                "status": result.status,
            },
        )
        return result

    async def _run(self, function: Function, method: str, request_object: Dict[str, Any]) -> ExecutionResult:
        async with self._session_factory() as session:
            try:
                await session.bind("request", request_object)
                await session.install_console()
            except ScriptError as exc:
                raise ScriptLoadError(str(exc), function=function.name) from exc

            try:
                await session.load(function.code)
            except ScriptError as exc:
                raise ScriptLoadError(str(exc), function=function.name) from exc

            handler = await resolve_handler(session, method)
            if handler is None:
                return ExecutionResult(status=200, body=no_handler_payload(method))

            try:
                exported = await invoke_handler(session, handler, request_object)
            except ScriptError as exc:
                raise HandlerInvocationError(handler, str(exc), function=function.name) from exc
            except ExportError as exc:
                raise ResultExportError(str(exc), function=function.name) from exc

        return ExecutionResult(status=200, body=exported.value if exported.defined else None, handler=handler)
