"""Result models for the database tools."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Column(BaseModel):
    name: str
    type: str
    nullable: bool = True
    primary: bool = False
    auto_increment: bool = False
    unique: bool = False
    default: str | bool | None = None


class Index(BaseModel):
    name: str
    columns: list[str]
    unique: bool = False


class Relationship(BaseModel):
    type: str = Field(..., description="Eloquent-style relation, e.g. hasMany")
    table: str
    foreign_key: str


class TableSchema(BaseModel):
    """Suggested table layout for a feature."""

    table_name: str
    columns: list[Column] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


class QueryAnalysis(BaseModel):
    """Static review of one SQL statement.

    The review is a pattern match on the query text only; nothing is
    executed, so no timing information is available.
    """

    query: str
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    heuristic: bool = Field(default=True, description="Always True: text-only review")

    @property
    def needs_optimization(self) -> bool:
        return bool(self.issues)


class OptimizationReport(BaseModel):
    total_queries: int = 0
    optimizations: list[QueryAnalysis] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"{len(self.optimizations)} of {self.total_queries} queries flagged"


class PerformanceReport(BaseModel):
    query_count: int = 0
    flagged_queries: list[QueryAnalysis] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    heuristic: bool = True


class BackupResult(BaseModel):
    path: str
    size: int = Field(default=0, description="Size of the dump file in bytes")
    command: str = ""


class RestoreResult(BaseModel):
    backup_path: str
    command: str = ""
    status: str = "success"
