"""ferzcli configuration.

Centralised, typed configuration for the CLI. All settings use Pydantic v2
models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.

The persisted settings file lives at ``~/.ferzcli/config.json``; environment
variables override whatever the file holds.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ferzcli.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".ferzcli" / "config.json"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str) -> int:
    """Parse a positive integer environment variable."""
    raw = os.environ[name].strip()
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None
    if value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value}")
    return value


class AssistConfig(BaseModel):
    """Settings for the hosted assist API."""

    api_key: str = Field(default="", description="Bearer key for the assist API")
    auto_analyze: bool = Field(
        default=False, description="Analyse files from the on-save hook"
    )
    base_url: str = Field(default="https://api.ferzcli.dev")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")

    def require_api_key(self) -> str:
        """Return the API key or raise :class:`ConfigurationError`."""
        key = self.api_key.strip()
        if not key:
            raise ConfigurationError(
                "ferzcli API key not configured. "
                "Run 'ferzcli config set api_key <key>' or set FERZ_API_KEY."
            )
        return key


class ProfileDefaults(BaseModel):
    """Fallback profile used when a project gives no usable signal."""

    framework: str = Field(default="node")
    database: str = Field(default="mysql")
    test_framework: str = Field(default="jest")


class DatabaseConfig(BaseModel):
    """Connection settings used by backup and restore."""

    engine: str | None = Field(
        default=None, description="Force an engine instead of detecting it"
    )
    host: str = Field(default="localhost")
    port: int | None = Field(default=None, description="Defaults per engine when unset")
    database: str = Field(default="app")
    username: str = Field(default="root")
    password: str = Field(default="")

    def port_for(self, engine: str) -> int | None:
        """Return the configured port, or the engine's well-known default."""
        if self.port is not None:
            return self.port
        return DEFAULT_DB_PORTS.get(engine)


DEFAULT_DB_PORTS: dict[str, int] = {
    "mysql": 3306,
    "postgresql": 5432,
}


class ApiConfig(BaseModel):
    """Values baked into generated API docs."""

    version: str = Field(default="v1")
    server_url: str = Field(default="http://localhost:8000")


class Config(BaseModel):
    """Global ferzcli configuration.

    Instances are created once by the CLI entry point and then passed through
    the rest of the system.
    """

    assist: AssistConfig = Field(default_factory=AssistConfig)
    profile_defaults: ProfileDefaults = Field(default_factory=ProfileDefaults)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``~/.ferzcli/config.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or DEFAULT_CONFIG_PATH
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, base: "Config | None" = None) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            FERZ_API_KEY, FERZ_AUTO_ANALYZE, FERZ_API_URL, FERZ_API_TIMEOUT,
            FERZ_DB_ENGINE, FERZ_DB_HOST, FERZ_DB_PORT, FERZ_DB_NAME,
            FERZ_DB_USER, FERZ_DB_PASSWORD.

        Args:
            base: Configuration to overlay. Defaults to a fresh ``Config``.
        """
        base = base or cls()

        assist_kwargs: dict[str, Any] = {}
        if os.environ.get("FERZ_API_KEY"):
            assist_kwargs["api_key"] = os.environ["FERZ_API_KEY"]
        if os.environ.get("FERZ_AUTO_ANALYZE"):
            assist_kwargs["auto_analyze"] = (
                os.environ["FERZ_AUTO_ANALYZE"].strip().lower() in _TRUTHY
            )
        if os.environ.get("FERZ_API_URL"):
            assist_kwargs["base_url"] = os.environ["FERZ_API_URL"]
        if os.environ.get("FERZ_API_TIMEOUT"):
            assist_kwargs["timeout"] = _env_int("FERZ_API_TIMEOUT")

        db_kwargs: dict[str, Any] = {}
        if os.environ.get("FERZ_DB_ENGINE"):
            db_kwargs["engine"] = os.environ["FERZ_DB_ENGINE"]
        if os.environ.get("FERZ_DB_HOST"):
            db_kwargs["host"] = os.environ["FERZ_DB_HOST"]
        if os.environ.get("FERZ_DB_PORT"):
            db_kwargs["port"] = _env_int("FERZ_DB_PORT")
        if os.environ.get("FERZ_DB_NAME"):
            db_kwargs["database"] = os.environ["FERZ_DB_NAME"]
        if os.environ.get("FERZ_DB_USER"):
            db_kwargs["username"] = os.environ["FERZ_DB_USER"]
        if os.environ.get("FERZ_DB_PASSWORD"):
            db_kwargs["password"] = os.environ["FERZ_DB_PASSWORD"]

        return base.model_copy(
            update={
                "assist": base.assist.model_copy(update=assist_kwargs),
                "database": base.database.model_copy(update=db_kwargs),
            }
        )

    @classmethod
    def resolve(cls, path: Path | None = None) -> "Config":
        """Load the settings file (when present) and overlay the environment."""
        target = path or DEFAULT_CONFIG_PATH
        base = cls.load(target) if target.exists() else cls()
        return cls.from_env(base)
