"""
Request materialization and the function execution route.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Iterable, Tuple, TypedDict

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from .executor import FunctionExecutor

logger = logging.getLogger(__name__)

FORM_METHODS = {"POST", "PUT"}


class RequestObject(TypedDict):
    method: str
    path: str
    query: Dict[str, str]
    body: Dict[str, Any]
    headers: Dict[str, str]


def _first_values(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    collapsed: Dict[str, Any] = {}
    for key, value in pairs:
        collapsed.setdefault(key, value)
    return collapsed


def canonical_header_name(name: str) -> str:
    """Upper-case the first letter of each dash-separated word, lower-case the rest."""

    return "-".join(word[:1].upper() + word[1:].lower() for word in name.split("-"))


def _normalize_headers(raw_headers: Iterable[Tuple[bytes, bytes]]) -> Dict[str, str]:
    # Host is request metadata rather than a header scripts see.
    return _first_values(
        (canonical_header_name(key.decode("latin-1")), value.decode("latin-1"))
        for key, value in raw_headers
        if key.lower() != b"host"
    )


def decode_body(raw_body: bytes) -> Dict[str, Any]:
    """Decode a JSON object body, falling back to ``{"raw": text}``."""

    if not raw_body:
        return {}

    try:
        decoded = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        decoded = None

    if isinstance(decoded, dict):
        return decoded
    return {"raw": raw_body.decode("utf-8", errors="replace")}


async def _merge_form_fields(request: Request, body: Dict[str, Any]) -> None:
    # Form fields overwrite same-named keys already decoded from the body.
    try:
        async with request.form() as form:
            for key in form.keys():
                values = [value for value in form.getlist(key) if isinstance(value, str)]
                if values:
                    body[key] = values[0]
    except (MultiPartException, HTTPException):
        logger.debug("form_parse_failed", exc_info=True)


async def build_request_object(request: Request) -> RequestObject:
    """Gather request details into the script-visible request object."""

    raw_body = await request.body()
    body = decode_body(raw_body)

    if request.method in FORM_METHODS:
        await _merge_form_fields(request, body)

    return {
        "method": request.method,
        "path": request.url.path,
        "query": _first_values(request.query_params.multi_items()),
        "body": body,
        "headers": _normalize_headers(request.headers.raw),
    }


def get_executor(request: Request) -> FunctionExecutor:
    return request.app.state.executor


async def execute_function(script_path: str, request: Request) -> Response:
    """Entry point for ``/api/execute/{script_path}`` on every supported method."""

    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    executor = get_executor(request)
    function = await executor.lookup(script_path)
    request_object = await build_request_object(request)
    logger.info(
        "request_received",
        extra={"request_id": request_id, "function": function.name, "method": request.method},
    )

    result = await executor.run(function, request.method, request_object, request_id=request_id)

    return JSONResponse(
        content=result.body,
        status_code=result.status,
        headers={"X-Request-ID": request_id},
    )
