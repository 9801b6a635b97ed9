"""Project profiler -- detects the stack a project is built on.

``detect`` probes marker files in a fixed order and returns a
:class:`ProjectProfile` that selects which template family the catalog
uses.  Detection never raises: unreadable or malformed markers are treated
as "no signal" and the caller's :class:`~ferzcli.config.ProfileDefaults`
fill the gaps.

Order matters.  Mixed-stack repositories routinely carry both
``composer.json`` and ``package.json`` (Laravel ships a Vite front end), so
the PHP manifest is checked first and later checks never override an
earlier match.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ferzcli.config import ProfileDefaults
from ferzcli.utils import read_text_safe

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Profile model
# ---------------------------------------------------------------------------


class FrameworkTag(str, Enum):
    LARAVEL = "laravel"
    NODE = "node"
    UNKNOWN = "unknown"


class DatabaseEngine(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    UNKNOWN = "unknown"


class TestFramework(str, Enum):
    JEST = "jest"
    PHPUNIT = "phpunit"
    PYTEST = "pytest"
    CYPRESS = "cypress"
    PLAYWRIGHT = "playwright"
    UNKNOWN = "unknown"


class ProjectProfile(BaseModel):
    """Stack profile of one project, derived once per invocation."""

    model_config = ConfigDict(frozen=True)

    framework: FrameworkTag = Field(default=FrameworkTag.NODE)
    database: DatabaseEngine = Field(default=DatabaseEngine.MYSQL)
    test_framework: TestFramework = Field(default=TestFramework.JEST)


class ProjectInfo(BaseModel):
    """Human-oriented description of a project, for the ``detect`` command."""

    name: str
    type: str = "Generic Project"
    framework: str = "None"
    language: str = "Unknown"
    package_manager: str = "unknown"
    dependencies: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Detection tables
# ---------------------------------------------------------------------------

# (marker file, framework) -- checked in order, first hit wins
_FRAMEWORK_MARKERS: tuple[tuple[str, FrameworkTag], ...] = (
    ("composer.json", FrameworkTag.LARAVEL),
    ("artisan", FrameworkTag.LARAVEL),
    ("package.json", FrameworkTag.NODE),
)

_DB_CONNECTION_NAMES: dict[str, DatabaseEngine] = {
    "mysql": DatabaseEngine.MYSQL,
    "mariadb": DatabaseEngine.MYSQL,
    "pgsql": DatabaseEngine.POSTGRESQL,
    "postgres": DatabaseEngine.POSTGRESQL,
    "postgresql": DatabaseEngine.POSTGRESQL,
    "sqlite": DatabaseEngine.SQLITE,
}

_TEST_CONFIG_MARKERS: tuple[tuple[str, TestFramework], ...] = (
    ("jest.config.js", TestFramework.JEST),
    ("jest.config.ts", TestFramework.JEST),
    ("phpunit.xml", TestFramework.PHPUNIT),
    ("phpunit.xml.dist", TestFramework.PHPUNIT),
    ("pytest.ini", TestFramework.PYTEST),
    ("cypress.json", TestFramework.CYPRESS),
    ("cypress.config.js", TestFramework.CYPRESS),
    ("cypress.config.ts", TestFramework.CYPRESS),
    ("playwright.config.ts", TestFramework.PLAYWRIGHT),
    ("playwright.config.js", TestFramework.PLAYWRIGHT),
)

_TEST_MANIFEST_MARKERS: tuple[tuple[str, TestFramework], ...] = (
    ("package.json", TestFramework.JEST),
    ("composer.json", TestFramework.PHPUNIT),
    ("requirements.txt", TestFramework.PYTEST),
    ("pyproject.toml", TestFramework.PYTEST),
)

_ENV_LINE_RE = re.compile(r"^\s*(?:export\s+)?([A-Z_][A-Z0-9_]*)\s*=\s*(.*?)\s*$")
_DB_DEFAULT_RE = re.compile(r"env\(\s*['\"]DB_CONNECTION['\"]\s*,\s*['\"]([a-z]+)['\"]\s*\)")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def detect(project_path: str | Path, defaults: ProfileDefaults | None = None) -> ProjectProfile:
    """Profile the project at *project_path*.

    Args:
        project_path: Project root directory.  A missing directory simply
            yields the default profile.
        defaults: Fallback values for categories with no signal.

    Returns:
        The detected :class:`ProjectProfile`.
    """
    defaults = defaults or ProfileDefaults()
    root = Path(project_path)

    framework = _detect_framework(root) or _coerce(FrameworkTag, defaults.framework)
    database = _detect_database(root) or _coerce(DatabaseEngine, defaults.database)
    test_framework = _detect_test_framework(root) or _coerce(
        TestFramework, defaults.test_framework
    )

    profile = ProjectProfile(
        framework=framework,
        database=database,
        test_framework=test_framework,
    )
    logger.debug("Profiled %s as %s", root, profile)
    return profile


def describe(project_path: str | Path) -> ProjectInfo:
    """Describe the project's language, package manager and framework.

    Node, PHP and Python manifests are read in that order; a later manifest
    overrides the language reported by an earlier one, so a Laravel app with
    a ``package.json`` reports PHP/Laravel.
    """
    root = Path(project_path)
    info = ProjectInfo(name=root.resolve().name or str(root))

    pkg = _read_json(root / "package.json")
    if pkg is not None:
        info.language = "JavaScript/TypeScript"
        info.package_manager = "npm"
        deps = {**_as_deps(pkg.get("dependencies")), **_as_deps(pkg.get("devDependencies"))}
        info.dependencies = deps
        if "react" in deps:
            info.framework = "React"
        if "next" in deps:
            info.framework, info.type = "Next.js", "Web App"
        if "vue" in deps:
            info.framework = "Vue.js"
        if "laravel-mix" in deps:
            info.framework = "Laravel Mix"
        if "express" in deps:
            info.framework, info.type = "Express", "Backend API"

    composer = _read_json(root / "composer.json")
    if composer is not None:
        info.language = "PHP"
        info.package_manager = "composer"
        deps = {**_as_deps(composer.get("require")), **_as_deps(composer.get("require-dev"))}
        info.dependencies = deps
        if "laravel/framework" in deps:
            info.framework, info.type = "Laravel", "Full Stack Framework"

    requirements = read_text_safe(root / "requirements.txt")
    if requirements is not None:
        info.language = "Python"
        info.package_manager = "pip"
        info.framework = "Python Script"
        lowered = requirements.lower()
        for marker, name in (("django", "Django"), ("flask", "Flask"), ("fastapi", "FastAPI")):
            if marker in lowered:
                info.framework = name

    return info


# ---------------------------------------------------------------------------
# Category probes
# ---------------------------------------------------------------------------


def _detect_framework(root: Path) -> FrameworkTag | None:
    for marker, tag in _FRAMEWORK_MARKERS:
        if _exists(root / marker):
            return tag
    return None


def _detect_database(root: Path) -> DatabaseEngine | None:
    env_content = read_text_safe(root / ".env")
    if env_content is not None:
        engine = _engine_from_env(env_content)
        if engine is not None:
            return engine

    db_config = root / "config" / "database.php"
    if _exists(db_config):
        content = read_text_safe(db_config) or ""
        match = _DB_DEFAULT_RE.search(content)
        if match and match.group(1) in _DB_CONNECTION_NAMES:
            return _DB_CONNECTION_NAMES[match.group(1)]
        return DatabaseEngine.MYSQL

    return None


def _detect_test_framework(root: Path) -> TestFramework | None:
    for marker, framework in _TEST_CONFIG_MARKERS:
        if _exists(root / marker):
            return framework
    for marker, framework in _TEST_MANIFEST_MARKERS:
        if _exists(root / marker):
            return framework
    return None


def _engine_from_env(content: str) -> DatabaseEngine | None:
    """Read ``DB_CONNECTION`` first, then the ``DATABASE_URL`` scheme."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        match = _ENV_LINE_RE.match(line)
        if match:
            values.setdefault(match.group(1), match.group(2).strip("'\""))

    connection = values.get("DB_CONNECTION", "").lower()
    if connection in _DB_CONNECTION_NAMES:
        return _DB_CONNECTION_NAMES[connection]

    url = values.get("DATABASE_URL", "").lower()
    if url.startswith("mysql://") or url.startswith("mariadb://"):
        return DatabaseEngine.MYSQL
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return DatabaseEngine.POSTGRESQL
    if url.startswith("sqlite:"):
        return DatabaseEngine.SQLITE
    return None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except (OSError, ValueError):
        return False


def _coerce(enum_cls: type[Enum], value: str) -> Any:
    """Map a configured default onto *enum_cls*, falling back to UNKNOWN."""
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls("unknown")


def _read_json(path: Path) -> dict[str, Any] | None:
    raw = read_text_safe(path)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def _as_deps(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}
