"""
JSON management API for registered functions.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from .errors import RegistryNotFound, RegistryValidationError
from .registry import Function, FunctionRegistry

router = APIRouter(prefix="/api/functions", tags=["functions"])


class FunctionPayload(BaseModel):
    """Create/update body; every field is replaced on update."""

    name: str = ""
    path: str = ""
    code: str = ""
    description: Optional[str] = None


def get_registry(request: Request) -> FunctionRegistry:
    return request.app.state.registry


def _parse_id(function_id: str) -> int:
    try:
        return int(function_id)
    except ValueError as exc:
        raise RegistryValidationError("Invalid function ID") from exc


@router.get("")
def list_functions(registry: FunctionRegistry = Depends(get_registry)) -> List[Function]:
    return registry.list_all()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_function(
    payload: FunctionPayload,
    registry: FunctionRegistry = Depends(get_registry),
) -> Function:
    return registry.create(payload.name, payload.path, payload.code, payload.description)


@router.get("/{function_id}")
def get_function(function_id: str, registry: FunctionRegistry = Depends(get_registry)) -> Function:
    function = registry.get(_parse_id(function_id))
    if function is None:
        raise RegistryNotFound("Function not found")
    return function


@router.put("/{function_id}")
def update_function(
    function_id: str,
    payload: FunctionPayload,
    registry: FunctionRegistry = Depends(get_registry),
) -> Function:
    function = registry.update(
        _parse_id(function_id),
        payload.name,
        payload.path,
        payload.code,
        payload.description,
    )
    if function is None:
        raise RegistryNotFound("Function not found")
    return function


@router.delete("/{function_id}")
def delete_function(function_id: str, registry: FunctionRegistry = Depends(get_registry)) -> Dict[str, str]:
    # Deleting an unknown id still reports success.
    registry.delete(_parse_id(function_id))
    return {"message": "Function deleted successfully"}
