import argparse
import json
import logging
import sys
from dataclasses import asdict

from rich.console import Console
from rich.table import Table

from . import __version__, filters
from .config import load_settings
from .errors import SystemCommandError, ValidationError
from .query import QueryEngine
from .termination import TerminationEngine
from .utils import configure_logging
from .validation import validate_pids, validate_port

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SYSTEM_COMMAND = 1
EXIT_INVALID_INPUT = 2

PORT_COLUMNS = [
    ("port", "Port"),
    ("pid", "PID"),
    ("protocol", "Protocol"),
    ("local_address", "Local Address"),
    ("remote_address", "Remote Address"),
    ("state", "State"),
    ("process_name", "Process Name"),
]
PROCESS_COLUMNS = [
    ("pid", "PID"),
    ("name", "Process Name"),
    ("user", "User"),
    ("cpu_usage", "CPU %"),
    ("memory_usage", "Memory"),
    ("status", "Status"),
    ("command_line", "Command Line"),
]
KILL_COLUMNS = [("pid", "PID"), ("success", "Killed"), ("message", "Message")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portkill",
        description=(
            "Find which processes hold a port or match a name, and force-kill them. "
            "Uses the platform's own tools (netstat/tasklist/taskkill on Windows, "
            "ss/lsof/ps/kill on Linux and macOS) and prints JSON records."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--config", help="Path to a JSON configuration file (default: ~/.portkill.json)")
    parser.add_argument("--timeout-ms", type=int, help="Timeout for each system command, in milliseconds")
    parser.add_argument(
        "--format",
        choices=("json", "table"),
        default="json",
        help="Output format (default: json)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ports = subparsers.add_parser("query-ports", help="List sockets, optionally only those on one local port")
    ports.add_argument("--port", help="Port number (1-65535); all ports when omitted")
    ports.add_argument("--listening", action="store_true", help="Only listening sockets")

    processes = subparsers.add_parser("query-processes", help="List processes by name or PID")
    processes.add_argument("--name", help="Process name substring, or a PID; all processes when omitted")
    processes.add_argument("--user", help="Only processes owned by this user")
    processes.add_argument("--min-cpu", type=float, help="Only processes using at least this much CPU (percent)")

    kill = subparsers.add_parser("kill", help="Force-kill processes by PID")
    kill.add_argument("--pid", action="append", required=True, help="PID to kill, may be repeated")

    kill_port = subparsers.add_parser("kill-port", help="Force-kill every process holding a local port")
    kill_port.add_argument("--port", required=True, help="Port number (1-65535)")

    subparsers.add_parser("info", help="Show the detected platform and which system commands are available")
    return parser


def build_engines(settings) -> tuple[QueryEngine, TerminationEngine]:
    return QueryEngine(settings=settings), TerminationEngine(settings=settings)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _print_table(rows: list[dict], columns, title: str, caption: str | None = None) -> None:
    table = Table(title=title, caption=caption)
    for _, label in columns:
        table.add_column(label, overflow="ellipsis")
    for row in rows:
        table.add_row(*(str(row.get(key, "")) for key, _ in columns))
    Console().print(table)


def _emit_records(records, columns, title: str, fmt: str) -> None:
    rows = [asdict(r) for r in records]
    if fmt == "table":
        _print_table(rows, columns, title)
    else:
        _print_json(rows)


def _emit_batch(result, fmt: str) -> None:
    data = asdict(result)
    if fmt == "table":
        _print_table(data["outcomes"], KILL_COLUMNS, "Kill results", caption=result.message)
    else:
        _print_json(data)


def run_command(args, query: QueryEngine, termination: TerminationEngine) -> None:
    if args.command == "query-ports":
        records = query.query_ports(args.port, listening=args.listening)
        _emit_records(records, PORT_COLUMNS, "Ports", args.format)
    elif args.command == "query-processes":
        records = query.query_processes(args.name)
        if args.user:
            records = filters.by_user(records, args.user)
        if args.min_cpu is not None:
            records = filters.min_cpu(records, args.min_cpu)
        _emit_records(records, PROCESS_COLUMNS, "Processes", args.format)
    elif args.command == "kill":
        pids = validate_pids(args.pid)
        _emit_batch(termination.kill_many(pids), args.format)
    elif args.command == "kill-port":
        port = validate_port(args.port, required=True)
        pids = filters.unique_pids(query.query_ports(port))
        LOGGER.info("Port %s is held by %d process(es)", port, len(pids))
        _emit_batch(termination.kill_many(pids), args.format)
    elif args.command == "info":
        _print_json(query.system_info())


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config, command_timeout_ms=args.timeout_ms)
    except ValidationError as e:
        print(f"portkill: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    configure_logging(logging.DEBUG if args.verbose else settings.log_level, settings.log_file)

    query, termination = build_engines(settings)
    try:
        run_command(args, query, termination)
    except ValidationError as e:
        LOGGER.error("Invalid input: %s", e)
        return EXIT_INVALID_INPUT
    except SystemCommandError as e:
        LOGGER.error("System command failed: %s", e)
        return EXIT_SYSTEM_COMMAND
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
