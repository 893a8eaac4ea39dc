"""Handler resolution: find the script function that serves an HTTP method."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from .export import ExportedValue, export_expression, read_export
from .session import InterpreterSession, ScriptError, js_literal

DEFAULT_HANDLER = "default"
AVAILABLE_HANDLERS = ["GET", "POST", "PUT", "PATCH", "DELETE", DEFAULT_HANDLER]

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Global object properties first, then top-level lexical bindings (const/let/class),
# which are only reachable through a global-scope eval.
_LOOKUP = """
((name) => {
  let value = globalThis[name];
  if (typeof value !== "function" && %(lexical)s) {
    try {
      value = (0, eval)(name);
    } catch (err) {
      value = undefined;
    }
  }
  return value;
})(%(name)s)
"""


def lookup_expression(name: str) -> str:
    """JavaScript expression evaluating to the top-level binding ``name`` (or undefined)."""

    lexical = "true" if _IDENTIFIER.match(name) and name != DEFAULT_HANDLER else "false"
    return _LOOKUP % {"name": json.dumps(name), "lexical": lexical}


async def try_get_callable(session: InterpreterSession, name: str) -> bool:
    """Whether the session has a callable top-level binding called ``name``."""

    try:
        found = await session.evaluate(f'typeof {lookup_expression(name)} === "function"')
    except ScriptError:
        return False
    return bool(found)


async def resolve_handler(session: InterpreterSession, method: str) -> Optional[str]:
    """
    Pick the binding to invoke for ``method``.

    The upper-cased method name wins, then ``default``. ``None`` means the script
    defines neither.
    """

    method_name = method.upper()
    if await try_get_callable(session, method_name):
        return method_name
    if await try_get_callable(session, DEFAULT_HANDLER):
        return DEFAULT_HANDLER
    return None


async def invoke_handler(session: InterpreterSession, name: str, request: Any) -> ExportedValue:
    """
    Call handler ``name`` with ``request`` as its only argument.

    Async handlers are awaited. Raises :class:`ScriptError` when the handler
    throws and :class:`ExportError` when its result has no JSON form.
    """

    call = f"{lookup_expression(name)}({js_literal(request)})"
    raw = await session.evaluate(export_expression(call))
    return read_export(raw)
