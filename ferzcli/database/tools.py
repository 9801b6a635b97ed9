"""Database tooling: migrations, schema suggestions, seeders, backups.

Migrations and seeders reuse the scaffolder's template catalog so their
names agree with the models and controllers a scaffold run produces.
Backup and restore shell out through :class:`~ferzcli.runner.CommandRunner`.
Query analysis is a static text review and never connects to a database.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shlex
from datetime import datetime, timezone
from pathlib import Path

from ferzcli.config import DatabaseConfig
from ferzcli.errors import ConfigurationError, FileSystemError, UnsupportedStack
from ferzcli.profiler import FrameworkTag, ProjectProfile, detect
from ferzcli.runner import CommandRunner
from ferzcli.scaffolder.catalog import TemplateCatalog
from ferzcli.scaffolder.models import (
    ArtifactKind,
    FeatureRequest,
    GeneratedArtifact,
)
from ferzcli.scaffolder.templates import TemplateRenderer
from ferzcli.utils import write_file

from .models import (
    BackupResult,
    Column,
    Index,
    OptimizationReport,
    PerformanceReport,
    QueryAnalysis,
    Relationship,
    RestoreResult,
    TableSchema,
)

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# File types scanned for embedded SQL
_SOURCE_EXTENSIONS = (".php", ".js", ".ts", ".py", ".java", ".sql")
_SKIP_DIRS = {"node_modules", "vendor"}

# A statement ends at a semicolon, a newline or a closing double quote/backtick
_QUERY_PATTERNS = (
    re.compile(r"\bSELECT\s+[^;\n\"`]*?\s+FROM\s+[^;\n\"`]*", re.I),
    re.compile(r"\bINSERT\s+INTO\s+[^;\n\"`]*?\s+VALUES\s*\([^;\n\"`]*?\)", re.I),
    re.compile(r"\bUPDATE\s+\w+\s+SET\s+[^;\n\"`]*", re.I),
    re.compile(r"\bDELETE\s+FROM\s+[^;\n\"`]*", re.I),
)
_LEADING_WILDCARD_RE = re.compile(r"LIKE\s+['\"]%", re.I)

_FIXED_RECOMMENDATIONS = (
    "Add database indexes on frequently queried columns",
    "Implement database connection pooling",
    "Set up database monitoring and alerting",
)


class DatabaseTools:
    """Database helpers bound to one project directory."""

    def __init__(
        self,
        project_path: str | Path,
        config: DatabaseConfig | None = None,
        runner: CommandRunner | None = None,
        catalog: TemplateCatalog | None = None,
        profile: ProjectProfile | None = None,
    ) -> None:
        self.project_path = Path(project_path)
        self.config = config or DatabaseConfig()
        self.runner = runner or CommandRunner()
        self.catalog = catalog or TemplateCatalog()
        self.profile = profile or detect(self.project_path)
        self.renderer = TemplateRenderer(_TEMPLATE_DIR)

    @property
    def engine(self) -> str:
        """Configured engine, or the one detected from the project."""
        return (self.config.engine or self.profile.database.value).lower()

    # ------------------------------------------------------------------
    # Migrations and schema
    # ------------------------------------------------------------------

    async def create_migration(
        self, feature: str, generated_at: datetime | None = None
    ) -> GeneratedArtifact:
        """Write a create-table migration for *feature*.

        A Laravel migration is produced when ``database/migrations`` exists,
        otherwise a plain SQL migration under ``migrations/``.
        """
        laravel = (self.project_path / "database" / "migrations").is_dir()
        stack = FrameworkTag.LARAVEL if laravel else FrameworkTag.NODE
        profile = self.profile.model_copy(update={"framework": stack})
        artifact = self.catalog.render(
            ArtifactKind.MIGRATION,
            FeatureRequest(feature_name=feature),
            profile,
            generated_at=generated_at,
        )
        assert isinstance(artifact, GeneratedArtifact)
        await self._write(artifact)
        logger.info("Migration created: %s", artifact.path)
        return artifact

    def generate_schema(self, feature: str) -> TableSchema:
        """Suggest columns, indexes and relations for *feature*."""
        names = FeatureRequest(feature_name=feature).names
        table = names.table_name
        lowered = feature.lower()
        is_user = "user" in lowered

        columns = [Column(name="id", type="BIGINT", nullable=False, primary=True, auto_increment=True)]
        if is_user:
            columns += [
                Column(name="name", type="VARCHAR(255)", nullable=False),
                Column(name="email", type="VARCHAR(255)", nullable=False, unique=True),
                Column(name="password", type="VARCHAR(255)", nullable=False),
                Column(name="is_active", type="BOOLEAN", default=True),
            ]
        elif "post" in lowered or "article" in lowered:
            columns += [
                Column(name="title", type="VARCHAR(255)", nullable=False),
                Column(name="content", type="TEXT", nullable=False),
                Column(name="author_id", type="BIGINT", nullable=False),
                Column(name="published_at", type="TIMESTAMP", nullable=True),
            ]
        else:
            columns += [
                Column(name="name", type="VARCHAR(255)", nullable=False),
                Column(name="description", type="TEXT", nullable=True),
            ]
        columns += [
            Column(name="created_at", type="TIMESTAMP", default="CURRENT_TIMESTAMP"),
            Column(name="updated_at", type="TIMESTAMP", default="CURRENT_TIMESTAMP"),
        ]

        indexes: list[Index] = []
        relationships: list[Relationship] = []
        if is_user:
            indexes.append(Index(name=f"idx_{table}_email", columns=["email"], unique=True))
            relationships.append(Relationship(type="hasMany", table="posts", foreign_key="user_id"))
        indexes.append(Index(name=f"idx_{table}_created_at", columns=["created_at"]))

        return TableSchema(
            table_name=table,
            columns=columns,
            indexes=indexes,
            relationships=relationships,
        )

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    async def setup_seeding(
        self,
        tables: list[str] | None = None,
        generated_at: datetime | None = None,
    ) -> list[GeneratedArtifact]:
        """Write one Laravel seeder per table plus a ``DatabaseSeeder``.

        Args:
            tables: Table names to seed.  Defaults to users, posts and
                categories.
        """
        tables = tables or ["users", "posts", "categories"]
        profile = self.profile.model_copy(update={"framework": FrameworkTag.LARAVEL})

        artifacts: list[GeneratedArtifact] = []
        for table in tables:
            artifact = self.catalog.render(
                ArtifactKind.SEEDER,
                FeatureRequest(feature_name=_singular(table)),
                profile,
                generated_at=generated_at,
            )
            assert isinstance(artifact, GeneratedArtifact)
            artifacts.append(artifact)

        seeder_classes = [Path(a.path).stem for a in artifacts]
        artifacts.insert(
            0,
            GeneratedArtifact(
                kind=ArtifactKind.SEEDER,
                stack=FrameworkTag.LARAVEL.value,
                path="database/seeders/DatabaseSeeder.php",
                content=self.renderer.render(
                    "database_seeder.php.j2", {"seeders": seeder_classes}
                ),
            ),
        )

        for artifact in artifacts:
            await self._write(artifact)
        return artifacts

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    def backup_command(self, backup_path: Path) -> str:
        """Build the dump command for the active engine."""
        cfg = self.config
        engine = self.engine
        target = shlex.quote(str(backup_path))
        host, user, database = _quoted(cfg)
        if engine == "mysql":
            password = f" -p{shlex.quote(cfg.password)}" if cfg.password else ""
            return (
                f"mysqldump -h {host} -P {cfg.port_for(engine)} -u {user}"
                f"{password} {database} > {target}"
            )
        if engine == "postgresql":
            return (
                f"pg_dump -h {host} -p {cfg.port_for(engine)} -U {user} "
                f"{database} > {target}"
            )
        if engine == "sqlite":
            return f"sqlite3 {database} .dump > {target}"
        raise UnsupportedStack(engine, "backup")

    def restore_command(self, backup_path: Path) -> str:
        """Build the restore command for the active engine."""
        cfg = self.config
        engine = self.engine
        source = shlex.quote(str(backup_path))
        host, user, database = _quoted(cfg)
        if engine == "mysql":
            password = f" -p{shlex.quote(cfg.password)}" if cfg.password else ""
            return (
                f"mysql -h {host} -P {cfg.port_for(engine)} -u {user}"
                f"{password} {database} < {source}"
            )
        if engine == "postgresql":
            return (
                f"psql -h {host} -p {cfg.port_for(engine)} -U {user} "
                f"-d {database} < {source}"
            )
        if engine == "sqlite":
            return f"sqlite3 {database} < {source}"
        raise UnsupportedStack(engine, "restore")

    async def backup(self, now: datetime | None = None) -> BackupResult:
        """Dump the database to ``backups/backup_<date>.sql``.

        Raises:
            UnsupportedStack: For engines without a dump command.
            ExternalProcessError: When the dump command fails.
        """
        now = now or datetime.now(timezone.utc)
        backup_dir = self.project_path / "backups"
        backup_path = backup_dir / f"backup_{now.strftime('%Y-%m-%d')}.sql"
        command = self.backup_command(backup_path)

        await asyncio.to_thread(backup_dir.mkdir, parents=True, exist_ok=True)
        await self.runner.run(command, cwd=self.project_path)

        size = backup_path.stat().st_size if backup_path.exists() else 0
        logger.info("Backup created: %s (%d bytes)", backup_path, size)
        return BackupResult(path=str(backup_path), size=size, command=command)

    async def restore(self, backup_path: str | Path) -> RestoreResult:
        """Load a dump produced by :meth:`backup` back into the database.

        Raises:
            ConfigurationError: When *backup_path* does not exist.
            UnsupportedStack: For engines without a restore command.
            ExternalProcessError: When the restore command fails.
        """
        path = Path(backup_path)
        if not path.is_absolute():
            path = self.project_path / path
        if not path.is_file():
            raise ConfigurationError(f"Backup file not found: {path}")

        command = self.restore_command(path)
        await self.runner.run(command, cwd=self.project_path)
        logger.info("Database restored from %s", path)
        return RestoreResult(backup_path=str(path), command=command)

    # ------------------------------------------------------------------
    # Static query review
    # ------------------------------------------------------------------

    async def extract_queries(self) -> list[str]:
        """Collect SQL statements embedded in the project's source files."""
        return await asyncio.to_thread(self._scan_queries)

    @staticmethod
    def analyze_query(query: str) -> QueryAnalysis:
        """Flag common anti-patterns in *query*."""
        upper = query.upper()
        analysis = QueryAnalysis(query=query)

        if "SELECT *" in upper:
            analysis.issues.append("Using SELECT * instead of specific columns")
            analysis.suggestions.append("Specify only the columns you need")

        if upper.lstrip().startswith("SELECT") and "WHERE" not in upper:
            analysis.issues.append("Query without WHERE clause on large tables")
            analysis.suggestions.append("Add appropriate WHERE conditions")

        if _LEADING_WILDCARD_RE.search(query) and "FULLTEXT" not in upper:
            analysis.issues.append("Inefficient LIKE search with a leading wildcard")
            analysis.suggestions.append(
                "Consider using FULLTEXT search or optimizing with indexes"
            )

        return analysis

    async def optimize_queries(self) -> OptimizationReport:
        queries = await self.extract_queries()
        flagged = [a for a in map(self.analyze_query, queries) if a.needs_optimization]
        return OptimizationReport(total_queries=len(queries), optimizations=flagged)

    async def analyze_performance(self) -> PerformanceReport:
        """Summarise the static review with general recommendations."""
        queries = await self.extract_queries()
        flagged = [a for a in map(self.analyze_query, queries) if a.needs_optimization]

        recommendations: list[str] = []
        if flagged:
            recommendations.append(f"Review {len(flagged)} flagged queries")
        if len(queries) > 100:
            recommendations.append("Consider query result caching")
        recommendations.extend(_FIXED_RECOMMENDATIONS)

        return PerformanceReport(
            query_count=len(queries),
            flagged_queries=flagged,
            recommendations=recommendations,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _scan_queries(self) -> list[str]:
        queries: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.project_path):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and d not in _SKIP_DIRS
            )
            for filename in sorted(filenames):
                if not filename.endswith(_SOURCE_EXTENSIONS):
                    continue
                try:
                    content = (Path(dirpath) / filename).read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError):
                    logger.debug("Skipping unreadable file %s", filename)
                    continue
                queries.extend(_parse_queries(content))
        return queries

    async def _write(self, artifact: GeneratedArtifact) -> None:
        target = self.project_path / artifact.path
        try:
            await asyncio.to_thread(write_file, target, artifact.content)
        except OSError as exc:
            raise FileSystemError(artifact.kind.value, target, exc) from exc


def _parse_queries(content: str) -> list[str]:
    queries: list[str] = []
    for pattern in _QUERY_PATTERNS:
        queries.extend(match.group(0).strip() for match in pattern.finditer(content))
    return queries


def _singular(table: str) -> str:
    if table.endswith("ies"):
        return table[:-3] + "y"
    if table.endswith(("ches", "shes", "xes", "zes", "sses")):
        return table[:-2]
    if table.endswith("s") and not table.endswith("ss"):
        return table[:-1]
    return table


def _quoted(cfg: DatabaseConfig) -> tuple[str, str, str]:
    """Shell-quote the host, username and database of *cfg*."""
    return shlex.quote(cfg.host), shlex.quote(cfg.username), shlex.quote(cfg.database)
