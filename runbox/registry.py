"""Function registry: relational storage for scripts addressed by HTTP path."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import Column, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from .errors import RegistryConflictError, RegistryValidationError

logger = logging.getLogger(__name__)

Base = declarative_base()


class FunctionRow(Base):
    __tablename__ = "functions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    path = Column(String, nullable=False, unique=True, index=True)
    code = Column(Text, nullable=False)
    description = Column(Text, nullable=True)


@dataclass(frozen=True, slots=True)
class Function:
    """A user-registered script bound to one HTTP path."""

    id: int
    name: str
    path: str
    code: str
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: FunctionRow) -> "Function":
        return cls(
            id=row.id,
            name=row.name,
            path=row.path,
            code=row.code,
            description=row.description,
        )


def normalize_path(path: str) -> str:
    """Ensure a registry path starts with a slash."""

    return path if path.startswith("/") else f"/{path}"


def _validate(name: str, path: str, code: str) -> None:
    if not name or not path or not code:
        raise RegistryValidationError("Name, Path, and Code are required fields")


def _conflict_message(action: str, path: str) -> str:
    return f"Failed to {action} function: path {path} is already registered"


def create_db_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


class FunctionRegistry:
    """
    CRUD access to stored functions.

    Every read goes to the database so an update is visible to the very next
    execution.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str) -> "FunctionRegistry":
        registry = cls(create_db_engine(database_url))
        registry.create_schema()
        return registry

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def create(self, name: str, path: str, code: str, description: Optional[str] = None) -> Function:
        _validate(name, path, code)
        path = normalize_path(path)
        row = FunctionRow(name=name, path=path, code=code, description=description)

        with self._session_factory() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise RegistryConflictError(_conflict_message("create", path)) from exc
            logger.info("function_created", extra={"function": row.name, "path": row.path})
            return Function.from_row(row)

    def get(self, function_id: int) -> Optional[Function]:
        with self._session_factory() as session:
            row = session.get(FunctionRow, function_id)
            return Function.from_row(row) if row is not None else None

    def lookup_by_path(self, path: str) -> Optional[Function]:
        """Return the function registered at exactly ``path``."""

        with self._session_factory() as session:
            row = session.scalars(select(FunctionRow).where(FunctionRow.path == path)).first()
            return Function.from_row(row) if row is not None else None

    def list_all(self) -> List[Function]:
        with self._session_factory() as session:
            rows = session.scalars(select(FunctionRow).order_by(FunctionRow.name)).all()
            return [Function.from_row(row) for row in rows]

    def update(
        self,
        function_id: int,
        name: str,
        path: str,
        code: str,
        description: Optional[str] = None,
    ) -> Optional[Function]:
        """Replace every field of an existing function; ``None`` if it does not exist."""

        _validate(name, path, code)
        path = normalize_path(path)

        with self._session_factory() as session:
            row = session.get(FunctionRow, function_id)
            if row is None:
                return None

            row.name = name
            row.path = path
            row.code = code
            row.description = description
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise RegistryConflictError(_conflict_message("update", path)) from exc
            logger.info("function_updated", extra={"function": row.name, "path": row.path})
            return Function.from_row(row)

    def delete(self, function_id: int) -> bool:
        with self._session_factory() as session:
            row = session.get(FunctionRow, function_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            logger.info("function_deleted", extra={"function": row.name, "path": row.path})
            return True
