#!/usr/bin/env python3
"""
Command-line interface for the winget manager.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .config import WinGetConfig
from .exceptions import ToolNotFoundError, WinGetError
from .logging_config import setup_logging
from .models import RecordKind, records_to_dicts
from .package_manager import WinGetPackageManager
from .parser import OutputParser
from .source_manager import WinGetSourceManager

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_INSTALLED = 2


class CLI:
    """Command-line interface for WinGetPackageManager and WinGetSourceManager."""

    def __init__(self) -> None:
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="winget-manager",
            description="Query and manage Windows packages through winget",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s version                     # Show the installed winget version
  %(prog)s upgradeable --json          # List available upgrades as JSON
  %(prog)s search 7zip --source winget # Search one source
  %(prog)s parse saved.txt --kind pinned_package
            """,
        )

        parser.add_argument("--json", action="store_true", help="Print results as JSON")
        parser.add_argument(
            "--verbose",
            "-v",
            action="count",
            default=0,
            help="Increase verbosity (use -vv for trace output)",
        )
        parser.add_argument("--config", type=Path, help="JSON configuration file")
        parser.add_argument("--executable", help="winget executable name or path")
        parser.add_argument("--log-file", type=Path, help="Also log into this file")

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        subparsers.add_parser("version", help="Show the installed winget version")

        list_parser = subparsers.add_parser("list", help="List installed packages")
        list_parser.add_argument("--query", "-q", help="Filter by text")
        list_parser.add_argument("--source", "-s", help="Filter by source")

        search_parser = subparsers.add_parser("search", help="Search packages")
        search_parser.add_argument("query", help="Search text")
        search_parser.add_argument("--source", "-s", help="Search only this source")
        search_parser.add_argument("--exact", "-e", action="store_true", help="Match exactly")

        upgradeable_parser = subparsers.add_parser(
            "upgradeable", help="List packages with an available upgrade"
        )
        upgradeable_parser.add_argument(
            "--include-unknown",
            action="store_true",
            help="Include packages with an unknown installed version",
        )

        subparsers.add_parser("pins", help="List pinned packages (winget 1.5+)")

        sources_parser = subparsers.add_parser("sources", help="List configured sources")
        sources_parser.add_argument("--name", "-n", help="Only show this source")

        settings_parser = subparsers.add_parser("settings", help="Export winget settings")
        settings_parser.add_argument("--output", "-o", type=Path, help="Write to this file")

        parse_parser = subparsers.add_parser("parse", help="Decode saved winget output")
        parse_parser.add_argument("file", type=Path, help="File holding captured output")
        parse_parser.add_argument(
            "--kind",
            "-k",
            choices=[kind.value for kind in RecordKind],
            default=RecordKind.PACKAGE.value,
            help="Record kind of the table",
        )

        return parser

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse arguments, run one command and return the exit status."""
        args = self.parser.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return EXIT_FAILED

        try:
            config = self._load_config(args)
            setup_logging(_log_level(args.verbose, config.log_level), args.log_file)
            return self._handle_command(config, args)
        except ToolNotFoundError as e:
            logger.error(str(e))
            return EXIT_NOT_INSTALLED
        except WinGetError as e:
            logger.error(f"Command failed: {e}")
            return EXIT_FAILED

    @staticmethod
    def _load_config(args: argparse.Namespace) -> WinGetConfig:
        config = WinGetConfig.load_from_file(args.config) if args.config else WinGetConfig.from_env()
        if args.executable:
            config.executable = args.executable
        return config

    def _handle_command(self, config: WinGetConfig, args: argparse.Namespace) -> int:
        match args.command:
            case "version":
                return self._handle_version(WinGetPackageManager(config), args)
            case "list":
                packages = WinGetPackageManager(config).get_installed_packages(args.query, args.source)
                return self._print_records(packages, args)
            case "search":
                packages = WinGetPackageManager(config).search_package(
                    args.query, args.source, args.exact
                )
                return self._print_records(packages, args)
            case "upgradeable":
                packages = WinGetPackageManager(config).get_upgradeable_packages(args.include_unknown)
                return self._print_records(packages, args)
            case "pins":
                return self._print_records(WinGetPackageManager(config).get_pinned_packages(), args)
            case "sources":
                sources = WinGetSourceManager(config).get_installed_sources(args.name)
                return self._print_records(sources, args)
            case "settings":
                return self._handle_settings(WinGetPackageManager(config), args)
            case "parse":
                return self._handle_parse(config, args)
            case _:
                print(f"Unknown command: {args.command}")
                return EXIT_FAILED

    def _handle_version(self, manager: WinGetPackageManager, args: argparse.Namespace) -> int:
        raw = manager.winget_version
        if not raw:
            logger.error(f"{manager.config.executable} is not installed or reports no version")
            return EXIT_NOT_INSTALLED
        version = manager.winget_version_object
        if args.json:
            self._print_json({"raw": raw, **version.to_dict()})
        else:
            print(f"winget {version} ({raw})")
        return EXIT_OK

    def _handle_settings(self, manager: WinGetPackageManager, args: argparse.Namespace) -> int:
        if args.output:
            manager.export_settings_to_file(args.output)
            print(f"Settings written to {args.output}")
        else:
            print(manager.export_settings())
        return EXIT_OK

    def _handle_parse(self, config: WinGetConfig, args: argparse.Namespace) -> int:
        try:
            text = args.file.read_text(encoding=config.encoding, errors="replace")
        except OSError as e:
            logger.error(f"Cannot read {args.file}: {e}")
            return EXIT_FAILED
        records = OutputParser().parse_lines(text.splitlines(), args.kind)
        return self._print_records(records, args)

    def _print_records(self, records: List[Any], args: argparse.Namespace) -> int:
        rows = records_to_dicts(records)
        if args.json:
            self._print_json(rows)
            return EXIT_OK
        if not rows:
            print("No entries found")
            return EXIT_OK
        for row in rows:
            print("  ".join(str(value) for value in row.values() if value not in ("", None)))
        return EXIT_OK

    @staticmethod
    def _print_json(data: Dict[str, Any] | List[Dict[str, Any]]) -> None:
        print(json.dumps(data, indent=2, ensure_ascii=False))


def _log_level(verbose: int, configured: str) -> str:
    if verbose == 1:
        return "DEBUG"
    if verbose >= 2:
        return "TRACE"
    return configured


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
