"""Command-line entry point: ``ferzcli`` / ``python -m ferzcli``.

The CLI is the only place where :class:`~ferzcli.errors.FerzError` is
turned into user-facing output: errors are printed in red and the process
exits non-zero without a traceback.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from ferzcli import __version__
from ferzcli.assist import (
    AssistClient,
    print_analysis,
    print_diagnostics,
    print_super_agent,
    render_analysis_html,
    render_super_agent_html,
)
from ferzcli.config import DEFAULT_CONFIG_PATH, AssistConfig, Config
from ferzcli.database import DatabaseTools
from ferzcli.errors import ConfigurationError, ExternalProcessError, FerzError
from ferzcli.logging_config import setup_logging
from ferzcli.profiler import describe, detect
from ferzcli.runner import CommandRunner
from ferzcli.scaffolder import Manifest, ScaffoldOrchestrator, TemplateCatalog
from ferzcli.testing import TestingFramework
from ferzcli.utils import (
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    write_file,
)

logger = logging.getLogger(__name__)

Handler = Callable[[argparse.Namespace, Config], Awaitable[int]]

CONFIG_KEYS = ("api_key", "auto_analyze", "base_url", "timeout")


# ---------------------------------------------------------------------------
# detect / scaffold
# ---------------------------------------------------------------------------


async def _cmd_detect(args: argparse.Namespace, config: Config) -> int:
    path = Path(args.path)
    profile = detect(path, config.profile_defaults)
    info = describe(path)
    print_summary_table(
        {
            "Project": info.name,
            "Type": info.type,
            "Language": info.language,
            "Framework": info.framework,
            "Package manager": info.package_manager,
            "Dependencies": len(info.dependencies),
            "Stack": profile.framework.value,
            "Database": profile.database.value,
            "Test framework": profile.test_framework.value,
        },
        title="Project Profile",
    )
    return 0


async def _cmd_scaffold(args: argparse.Namespace, config: Config) -> int:
    endpoints = [e for e in (args.endpoints or "").split(",") if e.strip()]
    orchestrator = ScaffoldOrchestrator(
        catalog=TemplateCatalog(api=config.api),
        defaults=config.profile_defaults,
    )
    manifest = await orchestrator.scaffold(args.path, args.feature, endpoints)
    _print_manifest(manifest)
    print_success(f"Scaffolded {manifest.feature}: {len(manifest.written)} files written.")
    return 0


def _print_manifest(manifest: Manifest) -> None:
    table = Table(title=f"Scaffold: {manifest.feature} ({manifest.profile.framework.value})")
    table.add_column("Kind", width=11)
    table.add_column("Path")
    table.add_column("Operations")
    table.add_column("Status", width=8)
    for entry in manifest.entries:
        ops = ", ".join(f"{op.verb} {op.path}" for op in entry.operations)
        if entry.skipped:
            table.add_row(entry.kind.value, "-", entry.reason or "", "[yellow]skipped[/yellow]")
        else:
            table.add_row(entry.kind.value, entry.path or "", ops, "[green]written[/green]")
    console.print(table)


# ---------------------------------------------------------------------------
# test
# ---------------------------------------------------------------------------


async def _cmd_test(args: argparse.Namespace, config: Config) -> int:
    framework = TestingFramework(
        args.path,
        framework=args.framework,
        coverage=not args.skip_coverage,
        parallel=args.parallel,
        watch=args.watch,
        runner=CommandRunner(capture=False),
    )
    name = framework.framework.value

    if args.setup:
        result = await framework.setup(install=not args.no_install)
        print_success(f"{name} setup completed: {', '.join(result.files)}")

    if args.generate:
        written = await framework.write_templates(args.generate)
        print_success(f"Generated {len(written)} {name} test files for {args.generate}.")

    if args.setup or args.generate:
        return 0

    await framework.run_tests()
    print_success("Tests completed successfully!")
    report = framework.coverage_report()
    if report is not None:
        console.print(f"Coverage report available at: {report}")
    return 0


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------


async def _cmd_db(args: argparse.Namespace, config: Config) -> int:
    tools = DatabaseTools(
        args.path,
        config=config.database,
        catalog=TemplateCatalog(api=config.api),
    )
    action = args.db_action

    if action == "migrate":
        artifact = await tools.create_migration(args.feature)
        print_success(f"Migration created: {artifact.path}")
    elif action == "schema":
        schema = tools.generate_schema(args.feature)
        table = Table(title=f"Schema: {schema.table_name}")
        table.add_column("Column")
        table.add_column("Type")
        table.add_column("Constraints")
        for column in schema.columns:
            flags = [
                label
                for label, on in (
                    ("primary", column.primary),
                    ("unique", column.unique),
                    ("not null", not column.nullable),
                )
                if on
            ]
            table.add_row(column.name, column.type, ", ".join(flags))
        console.print(table)
        for index in schema.indexes:
            console.print(f"  index {index.name} ({', '.join(index.columns)})")
        for rel in schema.relationships:
            console.print(f"  {rel.type} {rel.table} via {rel.foreign_key}")
    elif action == "seed":
        artifacts = await tools.setup_seeding(args.tables or None)
        for artifact in artifacts:
            console.print(f"  {artifact.path}")
        print_success(f"{len(artifacts)} seeders written.")
    elif action == "backup":
        backup = await tools.backup()
        print_success(f"Backup created: {backup.path} ({backup.size} bytes)")
    elif action == "restore":
        await tools.restore(args.file)
        print_success("Database restored successfully!")
    elif action == "analyze":
        report = await tools.analyze_performance()
        print_summary_table(
            {
                "Queries found": report.query_count,
                "Flagged": len(report.flagged_queries),
            },
            title="Query Review (heuristic)",
        )
        for analysis in report.flagged_queries:
            console.print(f"[yellow]{escape(analysis.query)}[/yellow]")
            for issue, suggestion in zip(analysis.issues, analysis.suggestions):
                console.print(f"  - {issue}: {suggestion}")
        for rec in report.recommendations:
            console.print(f"  * {rec}")
    return 0


# ---------------------------------------------------------------------------
# assist
# ---------------------------------------------------------------------------


async def _cmd_assist(args: argparse.Namespace, config: Config) -> int:
    client = AssistClient(config.assist)
    action = args.assist_action

    if action == "analyze":
        result = await client.analyze_file(args.file)
        _emit(result, args.html, render_analysis_html, print_analysis)
    elif action == "generate":
        result = await client.generate(args.prompt, {"projectPath": str(Path(args.path).resolve())})
        console.print(_field(result, "code"), markup=False, highlight=False)
    elif action == "optimize":
        result = await client.optimize_file(args.file)
        console.print(_field(result, "optimizedCode"), markup=False, highlight=False)
    elif action == "agent":
        path = Path(args.path).resolve()
        profile = detect(path, config.profile_defaults)
        result = await client.super_agent(args.request, str(path), profile.framework.value)
        _emit(result, args.html, render_super_agent_html, print_super_agent)
    elif action == "on-save":
        diagnostics = await client.on_save(args.file)
        if not config.assist.auto_analyze:
            print_warning("auto_analyze is off; nothing was sent.")
        print_diagnostics(diagnostics)
        return 1 if any(d.severity == "error" for d in diagnostics) else 0
    return 0


def _emit(
    result: dict[str, Any],
    html_out: str | None,
    to_html: Callable[[dict[str, Any]], str],
    to_console: Callable[[dict[str, Any]], None],
) -> None:
    if html_out:
        write_file(Path(html_out), to_html(result))
        print_success(f"Report written to {html_out}")
    else:
        to_console(result)


def _field(result: dict[str, Any], key: str) -> str:
    value = result.get(key)
    return value if isinstance(value, str) else ""


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


async def _cmd_config(args: argparse.Namespace, config: Config) -> int:
    path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH

    if args.config_action == "show":
        assist = config.assist
        key = assist.api_key
        print_summary_table(
            {
                "config file": path,
                "api_key": f"{key[:4]}...{key[-4:]}" if len(key) > 8 else ("set" if key else "not set"),
                "auto_analyze": assist.auto_analyze,
                "base_url": assist.base_url,
                "timeout": assist.timeout,
                "database engine": config.database.engine or "auto",
                "api version": config.api.version,
            },
            title="ferzcli Configuration",
        )
        return 0

    # set: persist the file's own values, never the environment overlay
    stored = Config.load(path) if path.exists() else Config()
    value: Any = args.value
    if args.key == "auto_analyze":
        value = value.strip().lower() in ("1", "true", "yes", "on")
    elif args.key == "timeout":
        try:
            value = int(value)
        except ValueError:
            raise ConfigurationError(f"timeout must be an integer, got '{args.value}'") from None
    updated = stored.model_copy(
        update={"assist": AssistConfig.model_validate({**stored.assist.model_dump(), args.key: value})}
    )
    target = updated.save(path)
    print_success(f"Saved {args.key} to {target}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ferzcli",
        description="ferzcli -- stack-aware scaffolding and remote assist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  ferzcli detect\n"
            "  ferzcli scaffold post --endpoints index,store\n"
            "  ferzcli test --setup --framework jest\n"
            "  ferzcli db migrate post\n"
            "  ferzcli assist analyze app/Http/Controllers/PostController.php\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Settings file (default: ~/.ferzcli/config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_path(p: argparse.ArgumentParser) -> None:
        p.add_argument("--path", "-p", default=".", help="Project root (default: .)")

    p_detect = sub.add_parser("detect", help="Show the detected project profile")
    add_path(p_detect)
    p_detect.set_defaults(handler=_cmd_detect)

    p_scaffold = sub.add_parser("scaffold", help="Generate API boilerplate for a feature")
    p_scaffold.add_argument("feature", help="Feature name, e.g. 'post' or 'blog post'")
    p_scaffold.add_argument(
        "--endpoints", "-e", default="",
        help="Comma-separated endpoints: index,show,store,update,destroy (default: all)",
    )
    add_path(p_scaffold)
    p_scaffold.set_defaults(handler=_cmd_scaffold)

    p_test = sub.add_parser("test", help="Set up, generate or run tests")
    p_test.add_argument("--framework", "-f", default="auto", help="jest, phpunit, pytest, cypress, playwright or auto")
    p_test.add_argument("--setup", action="store_true", help="Install and configure the framework")
    p_test.add_argument("--no-install", action="store_true", help="With --setup: write files only")
    p_test.add_argument("--generate", metavar="FEATURE", help="Write unit/integration/e2e templates")
    p_test.add_argument("--skip-coverage", action="store_true", help="Run without coverage")
    p_test.add_argument("--parallel", action="store_true", help="Run tests in parallel")
    p_test.add_argument("--watch", action="store_true", help="Re-run tests on change")
    add_path(p_test)
    p_test.set_defaults(handler=_cmd_test)

    p_db = sub.add_parser("db", help="Database tools")
    db_sub = p_db.add_subparsers(dest="db_action", required=True)
    for name, help_text in (("migrate", "Create a migration"), ("schema", "Suggest a table schema")):
        p = db_sub.add_parser(name, help=help_text)
        p.add_argument("feature")
        add_path(p)
    p = db_sub.add_parser("seed", help="Write seeders")
    p.add_argument("tables", nargs="*", help="Tables to seed (default: users posts categories)")
    add_path(p)
    p = db_sub.add_parser("backup", help="Dump the database to backups/")
    add_path(p)
    p = db_sub.add_parser("restore", help="Restore the database from a dump")
    p.add_argument("file")
    add_path(p)
    p = db_sub.add_parser("analyze", help="Static review of SQL found in the project")
    add_path(p)
    p_db.set_defaults(handler=_cmd_db)

    p_assist = sub.add_parser("assist", help="Remote assist tasks")
    assist_sub = p_assist.add_subparsers(dest="assist_action", required=True)
    p = assist_sub.add_parser("analyze", help="Analyze a file")
    p.add_argument("file")
    p.add_argument("--html", metavar="OUT", help="Write an HTML report instead of printing")
    p = assist_sub.add_parser("generate", help="Generate code from a prompt")
    p.add_argument("prompt")
    add_path(p)
    p = assist_sub.add_parser("optimize", help="Optimize a file")
    p.add_argument("file")
    p = assist_sub.add_parser("agent", help="Super agent: implement a request")
    p.add_argument("request")
    p.add_argument("--html", metavar="OUT", help="Write an HTML report instead of printing")
    add_path(p)
    p = assist_sub.add_parser("on-save", help="Run the auto-analyze hook on a file")
    p.add_argument("file")
    p_assist.set_defaults(handler=_cmd_assist)

    p_config = sub.add_parser("config", help="Show or change settings")
    config_sub = p_config.add_subparsers(dest="config_action", required=True)
    config_sub.add_parser("show", help="Print the effective settings")
    p = config_sub.add_parser("set", help="Persist one assist setting")
    p.add_argument("key", choices=CONFIG_KEYS)
    p.add_argument("value")
    p_config.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``ferzcli``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        level = "DEBUG"
    elif args.verbose:
        level = "INFO"
    else:
        level = os.environ.get("FERZ_LOG_LEVEL", "WARNING")
    setup_logging(level)

    handler: Handler = args.handler
    try:
        config = Config.resolve(Path(args.config) if args.config else None)
        code = asyncio.run(handler(args, config))
    except ExternalProcessError as exc:
        print_error(escape(str(exc)))
        sys.exit(exc.exit_code if exc.exit_code > 0 else 1)
    except FerzError as exc:
        print_error(escape(str(exc)))
        sys.exit(1)
    except ValidationError as exc:
        print_error(escape(f"Invalid input: {exc.errors()[0].get('msg', exc)}"))
        sys.exit(1)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
