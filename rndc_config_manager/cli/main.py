#!/usr/bin/env python3
"""
RNDC Config Manager - Command Line Interface

Main entry point for the rndc-config CLI.
"""

import argparse
import logging
import shlex
import sys
from datetime import datetime
from typing import Dict, List, Optional

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.conf_types import ConfigDocument
from ..core.credentials import (
    DEFAULT_CONF_PATHS,
    DEFAULT_PORT,
    DEFAULT_SERVER,
    credentials_from_document,
    load_credentials,
)
from ..core.errors import ParseError
from ..core.zone_config import ZoneConfig
from ..core.zone_manager import ZoneManager
from ..parsers.conf_parser import resolve_includes
from ..parsers.zone_parser import parse_zone_block

console = Console()
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rndc-config",
        description="RNDC Config Manager - rndc.conf and zone configuration tooling",
    )

    parser.add_argument(
        "--config",
        "-c",
        default="configs/config.yaml",
        help="Configuration file path (default: configs/config.yaml)",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    conf = commands.add_parser("conf", help="Inspect rndc configuration files")
    conf_commands = conf.add_subparsers(dest="conf_command", required=True)

    conf_show = conf_commands.add_parser(
        "show", help="Show keys, servers and options with includes resolved"
    )
    conf_show.add_argument(
        "path", nargs="?", help="rndc.conf path (default: configured candidates)"
    )

    conf_credentials = conf_commands.add_parser(
        "credentials", help="Show the credentials an rndc client would use"
    )
    conf_credentials.add_argument(
        "path", nargs="?", help="rndc.conf path (default: configured candidates)"
    )

    zone = commands.add_parser("zone", help="Work with rndc showzone output")
    zone_commands = zone.add_subparsers(dest="zone_command", required=True)

    zone_show = zone_commands.add_parser("show", help="Parse and display showzone output")
    zone_show.add_argument("file", help="File with showzone output, '-' for stdin")

    zone_modify = zone_commands.add_parser(
        "modify", help="Change address lists and print the modzone block"
    )
    zone_modify.add_argument("file", help="File with showzone output, '-' for stdin")
    zone_modify.add_argument(
        "--also-notify", nargs="*", metavar="IP", help="Replace also-notify"
    )
    zone_modify.add_argument(
        "--allow-transfer", nargs="*", metavar="IP", help="Replace allow-transfer"
    )
    zone_modify.add_argument(
        "--allow-update", nargs="*", metavar="IP", help="Replace allow-update"
    )
    zone_modify.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without printing the rndc command",
    )
    zone_modify.add_argument(
        "--output-file",
        "-o",
        help="File to save dry run summary (only used with --dry-run)",
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if getattr(args, "output_file", None) and not args.dry_run:
        console.print("Error: --output-file can only be used with --dry-run")
        sys.exit(1)

    config = load_config(args.config)
    config_logger(config, verbose=args.verbose)

    try:
        if args.command == "conf":
            if args.conf_command == "show":
                show_conf(args, config)
            else:
                show_credentials(args, config)
        elif args.zone_command == "show":
            show_zone(args)
        else:
            modify_zone(args)
        sys.exit(0)

    except Exception as e:
        logger.error(f"{e}")
        console.print(f"Error: {escape(str(e))}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


def load_config(config_path: str) -> Dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
        logger.info(f"Configuration loaded from {config_path}")
        return config or get_default_config()
    except FileNotFoundError:
        logger.warning(f"Config file {config_path} not found, using defaults")
        return get_default_config()
    except yaml.YAMLError as e:
        console.print(f"Error parsing config file: {escape(str(e))}")
        sys.exit(1)


def get_default_config() -> Dict:
    """Return default configuration."""
    return {
        "rndc": {
            "conf_paths": list(DEFAULT_CONF_PATHS),
            "default_server": DEFAULT_SERVER,
            "default_port": DEFAULT_PORT,
        },
        "logging": {"level": "INFO", "file": "rndc_config_manager.log"},
    }


def config_logger(config: Dict, verbose: bool = False):
    """Configure logging."""
    logging_config = config.get("logging", None) or {}
    log_level = "DEBUG" if verbose else logging_config.get("level", "INFO")

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = logging_config.get("file")
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _rndc_settings(config: Dict) -> Dict:
    settings = dict(get_default_config()["rndc"])
    settings.update(config.get("rndc", None) or {})
    return settings


def _load_document(path: Optional[str], config: Dict) -> ConfigDocument:
    """Resolve path, or the first configured candidate that resolves."""
    if path:
        return resolve_includes(path)

    last_error: Optional[ParseError] = None
    for candidate in _rndc_settings(config)["conf_paths"]:
        try:
            document = resolve_includes(candidate)
        except ParseError as e:
            logger.debug(f"Skipping rndc configuration {candidate}: {e}")
            last_error = e
            continue
        logger.info(f"Using rndc configuration {candidate}")
        return document

    if last_error is not None:
        raise last_error
    raise ParseError("no rndc configuration paths configured")


def _read_zone_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, "r") as f:
        return f.read()


def _mask(secret: str) -> str:
    return "*" * 8 if secret else "(empty)"


def show_conf(args, config: Dict):
    """Display a resolved rndc configuration."""
    document = _load_document(args.path, config)

    table = Table(title="Keys")
    table.add_column("Name", style="cyan")
    table.add_column("Algorithm", style="magenta")
    table.add_column("Secret", style="white")
    for name, key in document.keys.items():
        table.add_row(escape(name), escape(key.algorithm), _mask(key.secret))
    console.print(table)

    table = Table(title="Servers")
    table.add_column("Address", style="cyan")
    table.add_column("Key", style="magenta")
    table.add_column("Port", style="white")
    table.add_column("Addresses", style="white")
    for address, server in document.servers.items():
        table.add_row(
            escape(address),
            escape(server.key or "-"),
            str(server.port) if server.port is not None else "-",
            ", ".join(str(ip) for ip in server.addresses or ()) or "-",
        )
    console.print(table)

    table = Table(title="Options")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    options = document.options
    table.add_row("default-server", escape(options.default_server or "-"))
    table.add_row("default-key", escape(options.default_key or "-"))
    table.add_row(
        "default-port",
        str(options.default_port) if options.default_port is not None else "-",
    )
    console.print(table)

    for include_path in document.includes:
        console.print(f"[blue]Included: {escape(str(include_path))}[/blue]")


def show_credentials(args, config: Dict):
    """Display the credentials selected from an rndc configuration."""
    settings = _rndc_settings(config)
    if args.path:
        credentials = credentials_from_document(
            resolve_includes(args.path),
            default_server=settings["default_server"],
            default_port=settings["default_port"],
        )
    else:
        credentials = load_credentials(
            settings["conf_paths"],
            default_server=settings["default_server"],
            default_port=settings["default_port"],
        )

    table = Table(title="RNDC Credentials")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Server", escape(credentials.address))
    table.add_row("Key", escape(credentials.key_name))
    table.add_row("Algorithm", escape(credentials.algorithm))
    table.add_row("Secret", _mask(credentials.secret))
    console.print(table)


def _display_zone(zone: ZoneConfig):
    table = Table(title=f"Zone {escape(zone.zone_name)} ({zone.dns_class.value})")
    table.add_column("Directive", style="cyan")
    table.add_column("Value", style="white")
    for name, value in zone.directives():
        if name not in zone.raw_options:
            table.add_row(escape(name), escape(value))
    console.print(table)

    if zone.raw_options:
        table = Table(title="Raw Options")
        table.add_column("Directive", style="cyan")
        table.add_column("Value", style="white")
        for name, value in zone.raw_options.items():
            table.add_row(escape(name), escape(value))
        console.print(table)


def show_zone(args):
    """Parse showzone output and display it."""
    zone = parse_zone_block(_read_zone_input(args.file))
    _display_zone(zone)
    console.print(zone.to_protocol_block(), markup=False, highlight=False, soft_wrap=True)


def modify_zone(args):
    """Apply address list changes to showzone output."""
    manager = ZoneManager()
    current = parse_zone_block(_read_zone_input(args.file))
    desired = manager.apply_changes(
        current,
        also_notify=args.also_notify,
        allow_transfer=args.allow_transfer,
        allow_update=args.allow_update,
    )

    changes = manager.analyze_changes(current, desired)
    _display_changes_summary(changes)

    if args.dry_run:
        console.print("[yellow]DRY RUN MODE - No changes will be applied[/yellow]")
        console.print(
            desired.to_protocol_block(), markup=False, highlight=False, soft_wrap=True
        )
        if args.output_file:
            _save_dry_run_output(changes, desired, args.output_file)
            console.print(
                f"[green]Dry run output saved to: {escape(args.output_file)}[/green]"
            )
        return

    if changes["total_changes"] == 0:
        console.print("[green]No changes required - zone is up to date[/green]")
        return

    command = "rndc " + " ".join(
        shlex.quote(argument) for argument in manager.modzone_arguments(desired)
    )
    console.print(command, markup=False, highlight=False, soft_wrap=True)


def _display_changes_summary(changes: Dict):
    """Display a summary of planned changes."""
    table = Table(title="Zone Changes Summary")
    table.add_column("Operation", style="cyan")
    table.add_column("Count", style="magenta")
    table.add_column("Details", style="white")

    if changes["added"]:
        table.add_row(
            "Add",
            str(len(changes["added"])),
            ", ".join(name for name, _ in changes["added"]),
        )

    if changes["changed"]:
        table.add_row(
            "Change",
            str(len(changes["changed"])),
            ", ".join(name for name, _, _ in changes["changed"]),
        )

    if changes["removed"]:
        table.add_row(
            "Remove",
            str(len(changes["removed"])),
            ", ".join(name for name, _ in changes["removed"]),
        )

    if changes["unchanged"]:
        table.add_row(
            "No Change",
            str(len(changes["unchanged"])),
            ", ".join(changes["unchanged"]),
        )

    console.print(table)
    console.print(f"\n[bold]Total changes: {changes['total_changes']}[/bold]")


def _save_dry_run_output(changes: Dict, zone: ZoneConfig, output_file: str):
    """Save dry run output to a file."""
    with open(output_file, "w") as f:
        f.write("=" * 60 + "\n")
        f.write("RNDC CONFIG MANAGER - DRY RUN SUMMARY\n")
        f.write("=" * 60 + "\n\n")

        f.write(f"Zone: {zone.zone_name}\n")
        f.write(f"Total Changes: {changes['total_changes']}\n")
        f.write(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")

        if changes["added"]:
            f.write("DIRECTIVES TO ADD:\n")
            f.write("-" * 20 + "\n")
            for name, value in changes["added"]:
                f.write(f"  + {name:<24} {value}\n")
            f.write("\n")

        if changes["changed"]:
            f.write("DIRECTIVES TO CHANGE:\n")
            f.write("-" * 20 + "\n")
            for name, old, new in changes["changed"]:
                f.write(f"  ~ {name:<24} {old} -> {new}\n")
            f.write("\n")

        if changes["removed"]:
            f.write("DIRECTIVES TO REMOVE:\n")
            f.write("-" * 20 + "\n")
            for name, _ in changes["removed"]:
                f.write(f"  - {name}\n")
            f.write("\n")

        f.write("MODZONE BLOCK:\n")
        f.write("-" * 20 + "\n")
        f.write(zone.to_protocol_block() + "\n\n")

        f.write("=" * 60 + "\n")
        f.write("END OF DRY RUN SUMMARY\n")
        f.write("=" * 60 + "\n")

    logger.info(f"Dry run output saved to: {output_file}")


if __name__ == "__main__":
    main()
