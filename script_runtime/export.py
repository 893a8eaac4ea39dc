"""Result export: turn a handler's JavaScript return value into native Python."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

# Serialization runs inside the engine so only JSON text crosses the boundary;
# JSON.stringify turns NaN and Infinity into null, which JSONResponse would reject as floats.
_ENVELOPE = """
(async () => {
  const value = await (%(call)s);
  if (value === undefined) {
    return JSON.stringify({ defined: false });
  }
  let text;
  try {
    text = JSON.stringify(value);
  } catch (err) {
    return JSON.stringify({ defined: true, error: String(err) });
  }
  if (text === undefined) {
    return JSON.stringify({ defined: true, error: `${typeof value} value has no JSON representation` });
  }
  return JSON.stringify({ defined: true, json: text });
})()
"""


class ExportError(ValueError):
    """Raised when a script value cannot be represented as JSON."""


@dataclass(frozen=True, slots=True)
class ExportedValue:
    """Native form of a handler result; ``defined`` is false for ``undefined``."""

    defined: bool
    value: Any = None


def export_expression(call: str) -> str:
    """Wrap a JavaScript call expression so that it yields an export envelope."""

    return _ENVELOPE % {"call": call}


def read_export(raw: Any) -> ExportedValue:
    """Decode the envelope produced by :func:`export_expression`."""

    if not isinstance(raw, str):
        raise ExportError(f"unexpected envelope of type {type(raw).__name__}")

    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ExportError(f"malformed envelope: {exc}") from exc

    if not envelope.get("defined"):
        return ExportedValue(defined=False)
    if "error" in envelope:
        raise ExportError(envelope["error"])
    return ExportedValue(defined=True, value=json.loads(envelope["json"]))
