#!/usr/bin/env python3
"""
PlaceOS partner environment CLI entry point.

Builds the argument parser from the command definitions, dispatches to the
matching PlaceOS handler and turns failures into a one-line diagnostic and a
non-zero exit code.
"""

import argparse
import sys

from rich.console import Console

from .cli import CommandDefinition, CommandRegistry
from .errors import InvalidVersionFormat
from .placeos import PlaceOS


def _version_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "version",
        nargs="?",
        default="",
        help="Release tag (placeos-<major>.<YYMM>[.<patch>], nightly, preview or latest). "
        "Defaults to the latest stable release.",
    )


def _configure_start(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--skip-init",
        action="store_true",
        help="Do not run the init container after starting",
    )


def _configure_update(parser: argparse.ArgumentParser) -> None:
    _version_argument(parser)
    parser.add_argument(
        "--no-changelog",
        action="store_true",
        help="Do not print the release notes after updating",
    )


def _configure_uninstall(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--force", "-f", action="store_true", help="Skip the confirmation prompt"
    )


def _configure_changelog(parser: argparse.ArgumentParser) -> None:
    _version_argument(parser)
    parser.add_argument(
        "--full",
        action="store_true",
        help="Include the notes of every older release",
    )


def build_commands(placeos: PlaceOS) -> list[CommandDefinition]:
    """Define all available CLI commands."""
    return [
        CommandDefinition(
            "start", "Start PlaceOS", placeos.handle_start_command, _configure_start
        ),
        CommandDefinition("stop", "Stop PlaceOS", placeos.handle_stop_command),
        CommandDefinition(
            "update",
            "Update PlaceOS to a release",
            placeos.handle_update_command,
            _configure_update,
        ),
        CommandDefinition(
            "upgrade",
            "Upgrade the partner environment, then update PlaceOS",
            placeos.handle_upgrade_command,
            _configure_update,
        ),
        CommandDefinition(
            "migrate", "Run database migrations", placeos.handle_migrate_command
        ),
        CommandDefinition(
            "uninstall",
            "Remove PlaceOS containers, volumes and images",
            placeos.handle_uninstall_command,
            _configure_uninstall,
        ),
        CommandDefinition(
            "changelog",
            "Show the changelog for a release",
            placeos.handle_changelog_command,
            _configure_changelog,
        ),
        CommandDefinition(
            "versions", "List available releases", placeos.handle_versions_command
        ),
        CommandDefinition(
            "status", "Show container status", placeos.handle_status_command
        ),
    ]


def build_parser(
    commands: list[CommandDefinition],
) -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per definition."""
    parser = argparse.ArgumentParser(
        prog="placeos",
        description="Manage a PlaceOS partner environment with Docker Compose",
    )
    parser.add_argument(
        "--directory",
        "-C",
        default=".",
        help="Partner environment directory (default: current directory)",
    )
    parser.add_argument(
        "--env-file", default=".env", help="Environment file name (default: .env)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Print commands as they run"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for command in commands:
        subparser = subparsers.add_parser(command.name, help=command.help_text)
        if command.configure:
            command.configure(subparser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    console = Console()
    error_console = Console(stderr=True)
    placeos = PlaceOS(console)

    commands = build_commands(placeos)
    registry = CommandRegistry()
    for command in commands:
        registry.register(command.name, command.handler)

    parser = build_parser(commands)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        handler = registry.get_handler(args.command)
        handler(args)
    except InvalidVersionFormat as e:
        message = f"Error: {e}"
        if e.valid_versions:
            message += ". Valid versions: " + ", ".join(e.valid_versions)
        error_console.print(message, style="bold red", soft_wrap=True)
        sys.exit(1)
    except KeyboardInterrupt:
        error_console.print("Aborted", style="yellow")
        sys.exit(130)
    except Exception as e:
        error_console.print(f"Error: {e}", style="bold red", soft_wrap=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
