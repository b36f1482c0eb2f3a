#!/usr/bin/env python3
"""
Reel - derived views over site content records

Inspect the views a site build would produce, and try template filter
expressions against a record file.
"""
import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from rich.console import Console
from rich.table import Table

from reel.config import init_config, ReelConfig
from reel.filters import where_exp
from reel.loader import load_records
from reel.models import Record
from reel.views.core import record_label
from reel.views.fields import MISSING, resolve_field

logger = logging.getLogger(__name__)


console = Console()

DEFAULT_COLUMNS = ["type", "airedYear", "popularity", "rating"]


def _record_to_dict(record: Any) -> Any:
    if isinstance(record, Record):
        return record.to_dict()
    if isinstance(record, dict):
        return record
    return str(record)


def _cell(record: Any, field: str) -> str:
    value = resolve_field(record, field)
    return "" if value is MISSING or value is None else str(value)


def output_records(records: List[Any], format: str = "table", title: str = "Records",
                   columns: Optional[List[str]] = None, page_size: int = 0):
    """
    Output records in the specified format.

    Tables show at most ``page_size`` rows (0 shows all); json and plain
    output always include every record.
    """
    columns = columns or DEFAULT_COLUMNS

    if format == "json":
        print(json.dumps([_record_to_dict(r) for r in records], indent=2, default=str))
    elif format == "plain":
        for record in records:
            print(record_label(record))
    else:
        table = Table(title=f"{title} ({len(records)})")
        table.add_column("#", style="cyan")
        table.add_column("Title", style="green")
        for column in columns:
            table.add_column(column, style="yellow")

        shown = records[:page_size] if page_size > 0 else records
        for index, record in enumerate(shown, 1):
            table.add_row(
                str(index),
                record_label(record)[:50],
                *[_cell(record, c)[:30] for c in columns]
            )

        console.print(table)

        hidden = len(records) - len(shown)
        if hidden > 0:
            console.print(f"[dim]... {hidden} more (use --limit or -o json)[/dim]")


def _load(args, config: ReelConfig):
    records_path = args.records or config.records_file
    return load_records(records_path)


def _columns(args) -> Optional[List[str]]:
    if getattr(args, "fields", None):
        return [f.strip() for f in args.fields.split(",") if f.strip()]
    return None


def cmd_views_list(args, config: ReelConfig):
    """List registered views."""
    registry = config.build_registry()
    info = registry.info()

    if args.output == "json":
        print(json.dumps(info, indent=2))
        return

    if args.output == "plain":
        for view in info["views"]:
            print(view["name"])
        return

    table = Table(title=f"Views ({info['total_views']})")
    table.add_column("Name", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("Sort", style="yellow")
    table.add_column("Built-in", style="magenta")

    for view in info["views"]:
        sort = f"{view['sort']} {view['order']}" if view["sort"] else ""
        table.add_row(view["name"], view["description"], sort, "✓" if view["builtin"] else "")

    console.print(table)


def cmd_views_show(args, config: ReelConfig):
    """Derive a single view and print its records."""
    registry = config.build_registry()
    records = _load(args, config)

    result = registry.resolve(args.name, records)
    shown = result.to_list()
    if args.limit:
        shown = shown[:args.limit]

    output_records(shown, args.output, title=args.name, columns=_columns(args),
                   page_size=config.page_size)


def cmd_views_resolve(args, config: ReelConfig):
    """Derive every view and print a summary."""
    registry = config.build_registry()
    records = _load(args, config)

    workers = args.workers if args.workers is not None else config.max_workers
    results = registry.resolve_all(records, max_workers=workers)

    if args.output == "json":
        payload: Dict[str, Any] = {
            name: [_record_to_dict(r) for r in result]
            for name, result in results.items()
        }
        print(json.dumps(payload, indent=2, default=str))
        return

    if args.output == "plain":
        for name, result in results.items():
            print(f"{name}\t{result.count}")
        return

    table = Table(title=f"Resolved views ({len(records)} records)")
    table.add_column("View", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_column("First", style="yellow")

    for name, result in results.items():
        first = record_label(result[0]) if result else ""
        table.add_row(name, str(result.count), first[:50])

    console.print(table)


def cmd_filter(args, config: ReelConfig):
    """Apply a whereExp expression to the record file."""
    records = _load(args, config)
    matched = where_exp(records, args.var, args.expression)
    output_records(matched, args.output, title=args.expression, columns=_columns(args),
                   page_size=config.page_size)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reel",
        description="Reel - derived views over site content records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Views
  reel views list
  reel views show movies --records content.json
  reel views resolve --records content.json --workers 4

  # Ad-hoc filtering, as a template would do it
  reel filter "item.rating >= 8.0" --records content.json
  reel filter "item.type == 'anime'" -o json | jq '.[].title'

Configuration:
  Config file: ~/.config/reel/config.toml or ./reel.toml
  Environment: REEL_RECORDS_FILE, REEL_VIEWS_FILE, REEL_LOG_LEVEL
        """
    )

    # Global options
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("--views", help="YAML file with view definitions")
    parser.add_argument("--no-builtins", action="store_true", help="Do not register the built-in catalog views")
    parser.add_argument("-o", "--output", choices=["table", "json", "plain"], help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command groups")

    # =================
    # VIEWS GROUP
    # =================
    views_parser = subparsers.add_parser("views", help="View operations")
    views_subparsers = views_parser.add_subparsers(dest="views_command", required=True)

    views_list = views_subparsers.add_parser("list", help="List registered views")
    views_list.set_defaults(func=cmd_views_list)

    views_show = views_subparsers.add_parser("show", help="Derive one view")
    views_show.add_argument("name", help="View name")
    views_show.add_argument("--records", help="Record file (JSON or YAML)")
    views_show.add_argument("--limit", type=int, help="Show at most N records")
    views_show.add_argument("--fields", help="Comma-separated columns to show")
    views_show.set_defaults(func=cmd_views_show)

    views_resolve = views_subparsers.add_parser("resolve", help="Derive every view")
    views_resolve.add_argument("--records", help="Record file (JSON or YAML)")
    views_resolve.add_argument("--workers", type=int, help="Derive views on N threads")
    views_resolve.set_defaults(func=cmd_views_resolve)

    # =================
    # FILTER
    # =================
    filter_parser = subparsers.add_parser("filter", help="Filter records with an expression")
    filter_parser.add_argument("expression", help="e.g. \"item.category == 'movie'\"")
    filter_parser.add_argument("--records", help="Record file (JSON or YAML)")
    filter_parser.add_argument("--var", default="item", help="Loop variable name (default: item)")
    filter_parser.add_argument("--fields", help="Comma-separated columns to show")
    filter_parser.set_defaults(func=cmd_filter)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize configuration with CLI overrides
    config = init_config(
        config_file=Path(args.config) if args.config else None,
        output_format=args.output,
        views_file=args.views,
        include_builtins=False if args.no_builtins else None,
    )

    # Set default output format if not specified
    if not args.output:
        args.output = config.output_format

    console.no_color = not config.color_output

    level = "DEBUG" if args.verbose else config.log_level
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    # Execute command
    try:
        args.func(args, config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
