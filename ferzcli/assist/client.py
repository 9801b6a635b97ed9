"""Async client for the hosted ferzcli assist API.

Every task is a JSON ``POST`` to ``{base_url}/{endpoint}`` carrying the
configured key as a bearer token.  The remote service does the reasoning;
this client only moves payloads and maps failures onto the
:mod:`ferzcli.errors` hierarchy.  There is no retry and no caching.

Typical usage::

    client = AssistClient(config.assist)
    result = await client.analyze(code, "python", "app/main.py")
    for issue in result.get("issues", []):
        print(issue["message"])
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, Field

from ferzcli.config import AssistConfig
from ferzcli.errors import (
    AuthError,
    ConfigurationError,
    NetworkError,
    RequestTimeout,
)
from ferzcli.utils import read_text_safe

logger = logging.getLogger(__name__)

# File suffix -> language id sent with analyze/optimize requests
LANGUAGE_BY_SUFFIX: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".php": "php",
    ".vue": "vue",
    ".go": "go",
    ".rb": "ruby",
    ".java": "java",
    ".rs": "rust",
    ".sql": "sql",
}

_SEVERITIES = ("error", "warning", "info")


class Diagnostic(BaseModel):
    """One issue reported by the analyze task, anchored to a file position."""

    path: str = Field(..., description="File the issue belongs to")
    message: str
    severity: str = Field(default="info", description="'error', 'warning' or 'info'")
    type: str = Field(default="")
    line: int = Field(default=1, ge=1, description="1-based line")
    column: int = Field(default=1, ge=1, description="1-based column")
    length: int = Field(default=0, ge=0)

    @property
    def range(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Zero-based ``((line, start), (line, end))`` span."""
        start = self.column - 1
        return (self.line - 1, start), (self.line - 1, start + self.length)

    @classmethod
    def from_issue(cls, path: str, issue: dict[str, Any]) -> "Diagnostic":
        severity = str(issue.get("severity", "info")).lower()
        return cls(
            path=path,
            message=str(issue.get("message", "")),
            severity=severity if severity in _SEVERITIES else "info",
            type=str(issue.get("type", "")),
            line=_positive_int(issue.get("line"), 1),
            column=_positive_int(issue.get("column"), 1),
            length=_positive_int(issue.get("length"), 0, minimum=0),
        )


class AssistClient:
    """Async client for the ferzcli assist API.

    Uses ``httpx.AsyncClient`` with a per-request timeout taken from
    :class:`~ferzcli.config.AssistConfig` (30 seconds by default).
    """

    def __init__(self, config: AssistConfig | None = None) -> None:
        self.config = config or AssistConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.timeout = self.config.timeout

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST *payload* to ``{base_url}/{endpoint}`` and return the JSON object.

        Args:
            endpoint: Task name such as ``"analyze"`` or ``"superagent"``.
            payload: JSON-serialisable request body.

        Returns:
            The decoded response object.

        Raises:
            ConfigurationError: No API key is configured (nothing is sent).
            AuthError: The service answered 401 or 403.
            RequestTimeout: No answer within the configured timeout.
            NetworkError: Any other transport failure, non-2xx status or a
                body that is not a JSON object.
        """
        key = self.config.require_api_key()
        headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }
        url = f"/{endpoint.strip('/')}"
        logger.debug("POST %s%s", self.base_url, url)

        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise RequestTimeout(
                f"Request to {self.base_url}{url} timed out after {self.timeout}s."
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Cannot reach {self.base_url}: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthError(f"Assist API rejected the API key (HTTP {status}).")
        if not 200 <= status < 300:
            raise NetworkError(f"Assist API returned HTTP {status}: {response.text[:500]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError("Assist API returned a non-JSON body.") from exc
        if not isinstance(data, dict):
            raise NetworkError("Assist API returned JSON that is not an object.")
        return data

    async def analyze(self, code: str, language: str, filepath: str) -> dict[str, Any]:
        return await self.call(
            "analyze", {"code": code, "language": language, "filepath": filepath}
        )

    async def generate(self, prompt: str, context: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.call("generate", {"prompt": prompt, "context": context or {}})

    async def optimize(self, code: str, language: str) -> dict[str, Any]:
        return await self.call("optimize", {"code": code, "language": language})

    async def super_agent(
        self, request: str, project_path: str, project_type: str
    ) -> dict[str, Any]:
        """Ask the service to plan and implement *request* in a project."""
        return await self.call(
            "superagent",
            {
                "request": request,
                "projectPath": project_path,
                "projectType": project_type,
            },
        )

    async def analyze_file(self, path: str | Path) -> dict[str, Any]:
        """Read *path* and send it to the analyze task.

        Raises:
            ConfigurationError: When the file cannot be read.
        """
        file_path = Path(path)
        code = await asyncio.to_thread(read_text_safe, file_path)
        if code is None:
            raise ConfigurationError(f"Cannot read file: {file_path}")
        return await self.analyze(code, language_for(file_path), str(file_path))

    async def optimize_file(self, path: str | Path) -> dict[str, Any]:
        file_path = Path(path)
        code = await asyncio.to_thread(read_text_safe, file_path)
        if code is None:
            raise ConfigurationError(f"Cannot read file: {file_path}")
        return await self.optimize(code, language_for(file_path))

    async def on_save(self, path: str | Path) -> list[Diagnostic]:
        """Auto-analyze hook for a saved file.

        Returns an empty list, without any network activity, when
        ``auto_analyze`` is off or the file is a log file.
        """
        file_path = Path(path)
        if not self.config.auto_analyze or file_path.suffix == ".log":
            return []
        result = await self.analyze_file(file_path)
        issues = result.get("issues")
        if not isinstance(issues, list):
            return []
        return [
            Diagnostic.from_issue(str(file_path), issue)
            for issue in issues
            if isinstance(issue, dict)
        ]


def language_for(path: Path) -> str:
    return LANGUAGE_BY_SUFFIX.get(path.suffix.lower(), "plaintext")


def _positive_int(value: Any, default: int, minimum: int = 1) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= minimum else default
