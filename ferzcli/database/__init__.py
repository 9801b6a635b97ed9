"""ferzcli database tools -- migrations, seeders, backups and query review."""

from ferzcli.database.models import (
    BackupResult,
    OptimizationReport,
    PerformanceReport,
    QueryAnalysis,
    RestoreResult,
    TableSchema,
)
from ferzcli.database.tools import DatabaseTools

__all__ = [
    "BackupResult",
    "DatabaseTools",
    "OptimizationReport",
    "PerformanceReport",
    "QueryAnalysis",
    "RestoreResult",
    "TableSchema",
]
