# toggl_notes/cli.py
# Description: Command-line entry point
#
# Imports
import argparse
import asyncio
import sys
from datetime import date
from typing import List, Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from . import __version__
from .logging_config import configure_logging
from .Notes.sync_service import CommandResult, TimeTrackingService
#
#######################################################################################################################
#
# Functions:

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Toggl Track timers for markdown notes",
        prog="toggl-notes"
    )
    parser.add_argument(
        "--vault",
        type=str,
        help="Root folder of the notes vault (default: [notes].vault_path from the config)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Log level (default: [logging].log_level from the config)"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    token_parser = subparsers.add_parser("token", help="Save the Toggl API token")
    token_parser.add_argument("api_token", help="Token from https://track.toggl.com/profile")

    subparsers.add_parser("connect", help="Look up and cache the default workspace")

    start_parser = subparsers.add_parser("start", help="Start a timer for a note")
    start_parser.add_argument("note", help="Note path, relative to the vault")

    subparsers.add_parser("stop", help="Stop the running timer")
    subparsers.add_parser("status", help="Show the running timer")

    push_parser = subparsers.add_parser("push", help="Push a note's name and project to its time entries")
    push_parser.add_argument("note", help="Note path, relative to the vault")

    pull_parser = subparsers.add_parser("pull", help="Replace a note's time entries with the matching ones")
    pull_parser.add_argument("note", help="Note path, relative to the vault")
    pull_parser.add_argument("--start", type=date.fromisoformat, help="Window start (YYYY-MM-DD)")
    pull_parser.add_argument("--end", type=date.fromisoformat, help="Window end (YYYY-MM-DD)")

    return parser


async def run_command(args: argparse.Namespace) -> CommandResult:
    async with TimeTrackingService.from_config(vault_path=args.vault) as service:
        if args.command == "token":
            return await service.set_api_token(args.api_token)
        if args.command == "connect":
            return await service.connect()
        if args.command == "start":
            return await service.start_timer(args.note)
        if args.command == "stop":
            return await service.stop_timer()
        if args.command == "status":
            return await service.status()
        if args.command == "push":
            return await service.push_note(args.note)
        if args.command == "pull":
            return await service.pull_note(args.note, start=args.start, end=args.end)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the toggl-notes command."""
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    try:
        result = asyncio.run(run_command(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())

#
# End of cli.py
#######################################################################################################################
