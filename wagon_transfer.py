"""CLI entrypoint for cloud-storage-wagon.

This file wires together:

- Settings loading (``--config`` or ``WAGON_SETTINGS``)
- Transport selection from the repository URL scheme
- The get / put / put-dir / exists / ls operations

Exit codes: 0 on success, 1 on a transfer failure (or a missing resource for
``exists``), 2 on invalid configuration.
"""

import argparse
import logging
import sys
from typing import Any, List, Optional

from wagon import __version__
from wagon.config import load_settings
from wagon.events import TransferEvent
from wagon.exceptions import ConfigurationError, WagonError
from wagon.logging_config import setup_logging
from wagon.transports import Transport, get_transport, list_transports

logger = logging.getLogger(__name__)


class LoggingTransferListener:
    """Transfer listener that reports progress through logging."""

    def transfer_initiated(self, event: TransferEvent) -> None:
        logger.debug("%s initiated: %s", event.request_type.value, event.resource.name)

    def transfer_started(self, event: TransferEvent) -> None:
        logger.info(
            "%s started: %s (%s)",
            event.request_type.value,
            event.resource.name,
            event.local_file,
        )

    def transfer_completed(self, event: TransferEvent) -> None:
        logger.info("%s completed: %s", event.request_type.value, event.resource.name)

    def transfer_error(self, event: TransferEvent) -> None:
        logger.error(
            "%s failed: %s: %s",
            event.request_type.value,
            event.resource.name,
            event.exception,
        )

    def debug(self, message: str) -> None:
        logger.debug(message)


class TransferErrorRecorder:
    """Collects transfer error events, including ones a transport does not raise."""

    def __init__(self) -> None:
        self.errors: List[TransferEvent] = []

    def transfer_error(self, event: TransferEvent) -> None:
        self.errors.append(event)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wagon-transfer",
        description="Transfer artifacts between local files and a cloud repository",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML settings file. Defaults to WAGON_SETTINGS env var.",
    )
    parser.add_argument(
        "--repository",
        "-r",
        help="Repository URL (s3://, gs://, gsutil:gs://) or configured repository id",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Log transfer events as they happen",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG level) logging",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress all output except errors"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cloud-storage-wagon {__version__}",
        help="Show version and exit",
    )
    parser.add_argument(
        "--list-transports",
        action="store_true",
        help="List available repository transports and exit",
    )
    parser.add_argument(
        "--log-format",
        choices=["human", "json", "simple"],
        default=None,
        help="Log format (default: human). Can also set via WAGON_LOG_FORMAT env var",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    get_cmd = commands.add_parser("get", help="Download a resource")
    get_cmd.add_argument("resource", help="Resource name relative to the repository")
    get_cmd.add_argument("destination", help="Local file to write")
    get_cmd.add_argument(
        "--if-newer-than",
        type=int,
        metavar="MILLIS",
        help="Only download when modified after this epoch-millisecond timestamp",
    )

    put_cmd = commands.add_parser("put", help="Upload a local file")
    put_cmd.add_argument("source", help="Local file to upload")
    put_cmd.add_argument("resource", help="Resource name relative to the repository")

    put_dir_cmd = commands.add_parser(
        "put-dir", help="Upload a local directory (gsutil transport only)"
    )
    put_dir_cmd.add_argument("source", help="Local directory to upload")
    put_dir_cmd.add_argument(
        "destination", help="Destination directory relative to the repository"
    )

    exists_cmd = commands.add_parser(
        "exists", help="Exit 0 if the resource exists, 1 otherwise"
    )
    exists_cmd.add_argument("resource", help="Resource name relative to the repository")

    ls_cmd = commands.add_parser("ls", help="List the children of a directory")
    ls_cmd.add_argument(
        "directory", nargs="?", default="", help="Directory relative to the repository"
    )

    return parser


def run_command(transport: Transport, args: argparse.Namespace) -> int:
    if args.command == "get":
        if args.if_newer_than is not None:
            if not transport.get_if_newer(
                args.resource, args.destination, args.if_newer_than
            ):
                logger.info("%s is not newer; nothing downloaded", args.resource)
            return 0
        transport.get(args.resource, args.destination)
        return 0

    if args.command == "put":
        transport.put(args.source, args.resource)
        return 0

    if args.command == "put-dir":
        transport.put_directory(args.source, args.destination)
        return 0

    if args.command == "exists":
        found = transport.resource_exists(args.resource)
        print("yes" if found else "no")
        return 0 if found else 1

    if args.command == "ls":
        for entry in transport.get_file_list(args.directory):
            print(entry)
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle simple info commands
    if args.list_transports:
        print("Available transports:")
        for scheme in list_transports():
            print(f"  - {scheme}")
        return 0

    if not args.command:
        parser.error("a command is required (get, put, put-dir, exists, ls)")
    if not args.repository:
        parser.error("--repository is required")

    # Configure logging based on flags
    log_level = (
        logging.DEBUG if args.verbose else logging.ERROR if args.quiet else logging.INFO
    )
    setup_logging(level=log_level, format_type=args.log_format, use_colors=True)

    try:
        settings = load_settings(args.config)
        recorder = TransferErrorRecorder()
        listeners: List[Any] = [recorder]
        if args.progress:
            listeners.append(LoggingTransferListener())
        transport = get_transport(args.repository, settings, listeners=listeners)
        try:
            code = run_command(transport, args)
        finally:
            transport.close_connection()
        # gsutil get reports failures only as events
        if code == 0 and recorder.errors:
            if not args.progress:
                for event in recorder.errors:
                    logger.error(
                        "%s failed: %s: %s",
                        event.request_type.value,
                        event.resource.name,
                        event.exception,
                    )
            return 1
        return code
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except WagonError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
