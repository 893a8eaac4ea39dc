"""Single-use JavaScript interpreter sessions."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Optional

from jsrun import Runtime

logger = logging.getLogger(__name__)
console_logger = logging.getLogger("script_runtime.console")

CONSOLE_SINK = "__runboxConsoleLog"

# Hides the host sink behind console.log; argument values stay inside the engine.
_CONSOLE_PRELUDE = f"""
(() => {{
  const sink = globalThis.{CONSOLE_SINK};
  delete globalThis.{CONSOLE_SINK};
  globalThis.console = {{
    log: (...args) => {{
      sink();
    }},
  }};
}})();
"""

# Keeps the completion value of arbitrary script text from crossing the engine boundary.
_DISCARD_COMPLETION = "\n;void 0;"


class ScriptError(RuntimeError):
    """Raised when the engine rejects or fails to run a piece of JavaScript."""


def js_literal(value: Any) -> str:
    """Render a JSON-compatible value as a JavaScript expression."""

    return f"JSON.parse({json.dumps(json.dumps(value))})"


def _console_log(*args: Any) -> None:
    console_logger.info("JS Console:")


class InterpreterSession:
    """
    One fresh JavaScript runtime used for exactly one invocation.

    Use as an async context manager; the runtime is closed on every exit path
    and nothing it defined survives into another session.
    """

    def __init__(self, runtime_factory: Callable[[], Runtime] = Runtime) -> None:
        self._runtime_factory = runtime_factory
        self._runtime: Optional[Runtime] = None

    async def __aenter__(self) -> "InterpreterSession":
        self._runtime = await asyncio.to_thread(self._runtime_factory)
        logger.debug("session_opened")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def runtime(self) -> Runtime:
        if self._runtime is None:
            raise ScriptError("Interpreter session is not open")
        return self._runtime

    async def close(self) -> None:
        runtime, self._runtime = self._runtime, None
        if runtime is not None and not runtime.is_closed():
            await asyncio.to_thread(runtime.close)
            logger.debug("session_closed")

    async def evaluate(self, source: str) -> Any:
        """Evaluate JavaScript in the global scope, awaiting a returned promise."""

        try:
            return await self.runtime.eval_async(source)
        except ScriptError:
            raise
        except Exception as exc:
            raise ScriptError(str(exc)) from exc

    async def bind(self, name: str, value: Any) -> None:
        """Expose a JSON-compatible value as a global binding."""

        await self.evaluate(f"globalThis[{json.dumps(name)}] = {js_literal(value)};{_DISCARD_COMPLETION}")

    async def install_console(self) -> None:
        """Define ``console.log``; each call writes one fixed line to the host log as it happens."""

        try:
            self.runtime.bind_function(CONSOLE_SINK, _console_log)
        except Exception as exc:
            raise ScriptError(str(exc)) from exc
        await self.evaluate(_CONSOLE_PRELUDE + _DISCARD_COMPLETION)

    async def load(self, source: str) -> None:
        """Run script text as top-level code."""

        await self.evaluate(source + _DISCARD_COMPLETION)
