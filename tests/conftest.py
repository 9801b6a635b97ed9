"""Shared pytest fixtures for the ferzcli test suite.

Provides reusable fixtures for:
- Temporary project directories shaped like Node and Laravel projects
- A fixed generation timestamp
- Mocked command runners and httpx clients
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from ferzcli.runner import CommandResult


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty temporary project directory (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def node_project(tmp_project_dir: Path) -> Path:
    """A directory with only a ``package.json``."""
    (tmp_project_dir / "package.json").write_text(
        json.dumps({"name": "demo", "dependencies": {"express": "^4.19.0"}}),
        encoding="utf-8",
    )
    return tmp_project_dir


@pytest.fixture
def laravel_project(tmp_project_dir: Path) -> Path:
    """A Laravel-shaped directory: composer.json, artisan, .env, migrations dir."""
    (tmp_project_dir / "composer.json").write_text(
        json.dumps({"name": "acme/demo", "require": {"laravel/framework": "^11.0"}}),
        encoding="utf-8",
    )
    (tmp_project_dir / "artisan").write_text("#!/usr/bin/env php\n", encoding="utf-8")
    (tmp_project_dir / ".env").write_text(
        "APP_NAME=Demo\nDB_CONNECTION=pgsql\nDB_HOST=127.0.0.1\n", encoding="utf-8"
    )
    (tmp_project_dir / "database" / "migrations").mkdir(parents=True)
    return tmp_project_dir


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 5, 14, 30, 15, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_runner() -> MagicMock:
    """A CommandRunner double whose ``run`` succeeds and echoes the command."""
    runner = MagicMock()

    async def _run(command: str, cwd: Any = None, *, check: bool = True) -> CommandResult:
        return CommandResult(command=command, exit_code=0, stdout="ok")

    runner.run = AsyncMock(side_effect=_run)
    return runner


def make_http_client(response: Any = None, side_effect: Exception | None = None) -> AsyncMock:
    """Build an ``httpx.AsyncClient`` double usable as an async context manager."""
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post = AsyncMock(side_effect=side_effect)
    else:
        mock_client.post = AsyncMock(return_value=response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def make_response(status_code: int = 200, body: Any = None, text: str = "") -> MagicMock:
    """Build an ``httpx.Response`` double."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture(name="make_http_client")
def make_http_client_fixture():
    return make_http_client


@pytest.fixture(name="make_response")
def make_response_fixture():
    return make_response
