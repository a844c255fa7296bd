"""CLI module for exporting database schemas.

Provides commands for listing profiles, engines and tables, and for
exporting tables as a DDL script or a JSON document.

Usage:
    DB_PROFILE=local schema-export tables
    schema-export profiles
    schema-export engines
    schema-export --profile local export --tables users,orders
    schema-export --profile local export --format json --pretty --output schema.json
    schema-export export --from-json schema.json --engine sqlite

Commands:
    profiles  - List available profiles
    engines   - List SQL dialects
    tables    - List tables visible through the active profile
    export    - Export tables as DDL (sql) or a JSON document (json)
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from schema_export.config.loader import load_export_config
from schema_export.config.models import ExportSettings
from schema_export.dialects import ENGINE_ALIASES, DIALECTS
from schema_export.exceptions import SchemaExportError
from schema_export.export.ddl import DdlExporter
from schema_export.factory import (
    ProfileNotFoundError,
    create_reader,
    get_active_profile,
    get_active_profile_name,
    get_exporter,
)
from schema_export.readers.base import SchemaReader
from schema_export.readers.document import DocumentReader

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _config_path(args: argparse.Namespace) -> Path | None:
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _export_settings(args: argparse.Namespace) -> ExportSettings:
    """Export defaults from the config file, or built-in defaults without one."""
    try:
        return load_export_config(_config_path(args)).export
    except FileNotFoundError:
        return ExportSettings()


def _parse_tables(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _all_tables(reader: SchemaReader) -> list[str]:
    listing = reader.tables() or []
    return [info["name"] for info in listing if info.get("type", "table") == "table"]


def _render(
    reader: SchemaReader,
    tables: list[str] | None,
    fmt: str,
    pretty: bool,
    engine: str | None,
) -> str:
    if tables is None:
        tables = _all_tables(reader)
    exporter = get_exporter(reader, format=fmt, engine=engine)
    if isinstance(exporter, DdlExporter):
        return exporter.export(tables).to_sql()
    return exporter.to_json(tables, pretty_print=pretty) + "\n"


def _emit(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text)
        err_console.print(f"[green]v[/green] Wrote [bold]{output}[/bold]")
    else:
        sys.stdout.write(text)


# ============================================================================
# Command implementations
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from schema-export.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if the config file is missing or invalid.
    """
    try:
        config = load_export_config(_config_path(args))
    except (FileNotFoundError, SchemaExportError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    try:
        current = args.profile or get_active_profile_name(args.env_prefix)
    except ProfileNotFoundError:
        current = None

    table = Table(
        title="Database Profiles", show_header=True, header_style="bold"
    )
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Engine")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.engine or "",
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


def cmd_engines(args: argparse.Namespace) -> int:
    """List the SQL dialects DDL can be rendered for.

    Returns:
        0 always (informational command).
    """
    table = Table(title="SQL Dialects", show_header=True, header_style="bold")
    table.add_column("Engine")
    table.add_column("Aliases", style="dim")
    table.add_column("Inline FKs only")

    for name, dialect_cls in DIALECTS.items():
        aliases = [alias for alias, target in ENGINE_ALIASES.items() if target == name]
        table.add_row(
            name,
            ", ".join(aliases),
            "yes" if not dialect_cls.supports_alter_foreign_key else "no",
        )

    console.print(table)
    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    """List tables and views visible through the active profile.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        profile_name, profile = get_active_profile(
            args.profile, args.env_prefix, _config_path(args)
        )
        settings = _export_settings(args)
        with create_reader(profile, excluded_tables=settings.excluded_tables) as reader:
            listing = reader.tables() or []
    except (FileNotFoundError, SchemaExportError, SQLAlchemyError) as e:
        err_console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    table = Table(title=f"Tables ({profile_name})", show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type", style="dim")
    for info in listing:
        table.add_row(info["name"], info.get("type", "table"))

    console.print(table)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export tables as a DDL script or a JSON document.

    Reads metadata from the active profile, or from a JSON document with
    ``--from-json``. Output goes to stdout unless ``--output`` is given;
    nothing is written when the export fails.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    tables = _parse_tables(args.tables)

    try:
        settings = _export_settings(args)
        fmt = args.format or settings.format
        pretty = args.pretty or settings.pretty
        logger.debug("Export format=%s pretty=%s tables=%s", fmt, pretty, tables or "all")

        if args.from_json:
            if fmt == "sql" and not args.engine:
                err_console.print(
                    "[red]Error: --engine is required to render DDL from a JSON document[/red]"
                )
                return 1
            reader = DocumentReader.from_file(args.from_json, engine=args.engine or "postgres")
            text = _render(reader, tables, fmt, pretty, args.engine)
        else:
            profile_name, profile = get_active_profile(
                args.profile, args.env_prefix, _config_path(args)
            )
            err_console.print(f"Exporting from [bold cyan]{profile_name}[/bold cyan]...", style="dim")
            with create_reader(profile, excluded_tables=settings.excluded_tables) as reader:
                text = _render(reader, tables, fmt, pretty, args.engine)
    except (FileNotFoundError, SchemaExportError, SQLAlchemyError) as e:
        err_console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        return 1

    _emit(text, args.output)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="schema-export",
        description="Export database table schemas as DDL or JSON",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to schema-export.toml (default: ./schema-export.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Profile to use (overrides the DB_PROFILE environment variable)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # engines command
    p_engines = subparsers.add_parser(
        "engines",
        help="List SQL dialects",
    )
    p_engines.set_defaults(func=cmd_engines)

    # tables command
    p_tables = subparsers.add_parser(
        "tables",
        help="List tables visible through the active profile",
    )
    p_tables.set_defaults(func=cmd_tables)

    # export command
    p_export = subparsers.add_parser(
        "export",
        help="Export tables as DDL or a JSON document",
    )
    p_export.add_argument(
        "--tables",
        "-t",
        default=None,
        help="Comma-separated list of tables to export (default: all tables)",
    )
    p_export.add_argument(
        "--format",
        "-f",
        choices=["sql", "json"],
        default=None,
        help="Output format (default: [export] format from config, else sql)",
    )
    p_export.add_argument(
        "--engine",
        "-e",
        default=None,
        help="Target SQL dialect (default: the source database's engine)",
    )
    p_export.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output",
    )
    p_export.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write to this file instead of stdout",
    )
    p_export.add_argument(
        "--from-json",
        default=None,
        help="Read metadata from an exported JSON document instead of a database",
    )
    p_export.set_defaults(func=cmd_export)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
