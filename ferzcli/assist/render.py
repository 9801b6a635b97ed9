"""Presentation of assist results as HTML pages or Rich console output.

Response bodies come from a remote service, so every field is optional
here: missing keys fall back to placeholders and values of the wrong type
are ignored.  HTML output is autoescaped; console output escapes Rich
markup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ferzcli.scaffolder.templates import TemplateRenderer
from ferzcli.utils import console

from .client import Diagnostic

_TEMPLATE_DIR = Path(__file__).parent / "templates"

_renderer = TemplateRenderer(_TEMPLATE_DIR, autoescape=True)

_SEVERITY_STYLE = {"error": "red", "warning": "yellow", "info": "blue"}


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def analysis_view(result: dict[str, Any]) -> dict[str, Any]:
    """Reduce an analyze response to the fields the views display."""
    issues = []
    for issue in _dicts(result.get("issues")):
        severity = str(issue.get("severity", "info")).lower()
        issues.append(
            {
                "type": _text(issue.get("type"), "issue"),
                "message": _text(issue.get("message"), ""),
                "severity": severity if severity in _SEVERITY_STYLE else "info",
                "line": _text(issue.get("line"), "N/A"),
                "column": _text(issue.get("column"), "N/A"),
            }
        )
    return {
        "metrics": [
            ("Complexity", _text(result.get("complexity"), "N/A")),
            ("Maintainability", _text(result.get("maintainability"), "N/A")),
            ("Test Coverage", _text(result.get("coverage"), "N/A")),
        ],
        "issues": issues,
        "suggestions": [_text(s, "") for s in _list(result.get("suggestions"))],
    }


def super_agent_view(result: dict[str, Any]) -> dict[str, Any]:
    """Reduce a superagent response to the fields the views display."""
    confidence = result.get("confidence")
    return {
        "original_request": _text(result.get("originalRequest"), ""),
        "intent": _text(result.get("intent"), "unknown"),
        "confidence": f"{confidence}%" if isinstance(confidence, (int, float)) else "N/A",
        "phases": [
            {
                "name": _text(p.get("name"), "Unnamed phase"),
                "description": _text(p.get("description"), ""),
                "status": _text(p.get("status"), "unknown"),
            }
            for p in _dicts(result.get("phases"))
        ],
        "files": [
            {
                "path": _text(f.get("path"), "?"),
                "action": _text(f.get("action"), "modified"),
                "description": _text(f.get("description"), ""),
            }
            for f in _dicts(result.get("files"))
        ],
        "commands": [_text(c, "") for c in _list(result.get("commands"))],
        "documentation": _text(result.get("documentation"), ""),
    }


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def render_analysis_html(result: dict[str, Any]) -> str:
    return _renderer.render("analysis.html.j2", analysis_view(result))


def render_super_agent_html(result: dict[str, Any]) -> str:
    return _renderer.render("super_agent.html.j2", super_agent_view(result))


# ---------------------------------------------------------------------------
# Rich console
# ---------------------------------------------------------------------------


def print_analysis(result: dict[str, Any]) -> None:
    """Pretty-print an analyze response."""
    view = analysis_view(result)
    console.print(
        Panel(
            "\n".join(f"{label}: {escape(value)}" for label, value in view["metrics"]),
            title="Code Analysis",
            border_style="cyan",
        )
    )

    if view["issues"]:
        table = Table(title="Issues Found", show_lines=True)
        table.add_column("Severity", width=9)
        table.add_column("Type", width=14)
        table.add_column("Location", width=12)
        table.add_column("Message")
        for issue in view["issues"]:
            style = _SEVERITY_STYLE[issue["severity"]]
            table.add_row(
                f"[{style}]{issue['severity']}[/{style}]",
                escape(issue["type"]),
                f"{issue['line']}:{issue['column']}",
                escape(issue["message"]),
            )
        console.print(table)
    else:
        console.print("[green]No issues found![/green]")

    if view["suggestions"]:
        console.print("\n[bold]Suggestions:[/bold]")
        for suggestion in view["suggestions"]:
            console.print(f"  - {escape(suggestion)}")


def print_super_agent(result: dict[str, Any]) -> None:
    """Pretty-print a superagent response."""
    view = super_agent_view(result)
    console.print(
        Panel(
            f"[bold]Request:[/bold] {escape(view['original_request'])}\n"
            f"Intent: {escape(view['intent'])}\n"
            f"Confidence: {view['confidence']}",
            title="Super Agent",
            border_style="green",
        )
    )
    for phase in view["phases"]:
        style = "green" if phase["status"] == "completed" else "red"
        console.print(
            f"  [{style}]{escape(phase['status'])}[/{style}] "
            f"{escape(phase['name'])}: {escape(phase['description'])}"
        )
    if view["files"]:
        table = Table(title="Files Created/Modified")
        table.add_column("Path")
        table.add_column("Action", width=10)
        table.add_column("Description")
        for file in view["files"]:
            table.add_row(escape(file["path"]), escape(file["action"]), escape(file["description"]))
        console.print(table)
    for command in view["commands"]:
        console.print(f"  [dim]$ {escape(command)}[/dim]")
    if view["documentation"]:
        console.print(Panel(escape(view["documentation"]), title="Documentation"))


def print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    if not diagnostics:
        console.print("[green]No issues found![/green]")
        return
    for diag in diagnostics:
        style = _SEVERITY_STYLE.get(diag.severity, "blue")
        console.print(
            f"{escape(diag.path)}:{diag.line}:{diag.column} "
            f"[{style}]{diag.severity}[/{style}] {escape(diag.message)}"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _dicts(value: Any) -> list[dict[str, Any]]:
    return [item for item in _list(value) if isinstance(item, dict)]


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value)
