from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

if TYPE_CHECKING:  # pragma: no cover - hints only
    from fastapi.testclient import TestClient


@pytest.fixture(autouse=True)
def isolated_database(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[str]:
    """Point every test at its own SQLite file."""

    url = f"sqlite:///{tmp_path / 'runbox.db'}"
    monkeypatch.setenv("RUNBOX_DATABASE_URL", url)

    from runbox import config as app_config

    app_config.get_settings.cache_clear()
    yield url
    app_config.get_settings.cache_clear()


@pytest.fixture
def make_client() -> Callable[[], TestClient]:
    """Factory fixture to build a TestClient backed by a fresh database."""

    def factory() -> TestClient:
        from fastapi.testclient import TestClient
        from runbox.main import create_app

        return TestClient(create_app())

    return factory


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def register(client) -> Callable[..., dict]:
    """Register a function through the management API and return its record."""

    def factory(path: str, code: str, name: str | None = None, description: str | None = None) -> dict:
        response = client.post(
            "/api/functions",
            json={
                "name": name or path.strip("/") or "root",
                "path": path,
                "code": code,
                "description": description,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return factory
