"""JavaScript execution primitives used by the RunBox host."""

from .export import ExportedValue, ExportError
from .handlers import AVAILABLE_HANDLERS, DEFAULT_HANDLER, invoke_handler, resolve_handler, try_get_callable
from .session import InterpreterSession, ScriptError

__all__ = [
    "AVAILABLE_HANDLERS",
    "DEFAULT_HANDLER",
    "ExportError",
    "ExportedValue",
    "InterpreterSession",
    "ScriptError",
    "invoke_handler",
    "resolve_handler",
    "try_get_callable",
]
