import dataclasses
import logging
import shutil

from . import commands, filters, output_parser
from .command_runner import FAILED_TO_START, TIMED_OUT, AbstractRunner, CommandRunner
from .config import Settings
from .datatype import CommandResult, PortRecord, ProcessRecord
from .errors import SystemCommandError
from .inspector import ProcessInspector
from .output_parser import macos
from .platform_detect import Platform, detect
from .validation import is_digits, validate_keyword, validate_port

LOGGER = logging.getLogger(__name__)


class QueryEngine:
    """
    Finds sockets and processes by running the platform's own tools.

    Inputs are validated here again, so nothing reaches a command line
    unchecked even when the caller skipped the validation layer.
    """

    def __init__(
        self,
        platform: Platform | None = None,
        runner: AbstractRunner | None = None,
        settings: Settings | None = None,
        inspector: ProcessInspector | None = None,
    ):
        self.platform = platform or detect()
        self.runner = runner or CommandRunner(self.platform)
        self.settings = settings or Settings()
        if inspector is None and self.settings.resolve_process_details:
            inspector = ProcessInspector()
        self.inspector = inspector

    # ---- ports -----------------------------------------------------------

    def query_ports(self, port=None, listening: bool = False) -> list[PortRecord]:
        """
        Sockets whose local port equals ``port``, or every socket when no port
        is given. No match is an empty list, not an error.
        """
        port = validate_port(port)
        records = self._run_port_commands(port)
        if port is not None:
            records = filters.by_local_port(records, port)
        if listening:
            records = filters.listening_only(records)
        records = self._with_process_details(records)
        return sorted(records, key=lambda r: int(r.port))

    def _port_commands(self, port: str | None):
        if self.platform is Platform.LINUX:
            lsof = commands.LSOF_PORT_QUERY_SPECIFIC if port else commands.LSOF_PORT_QUERY
            return [
                (commands.PORT_QUERY[Platform.LINUX], output_parser.PORT_PARSERS[Platform.LINUX]),
                (lsof, macos.parse_lsof),
            ]
        template = commands.PORT_QUERY[self.platform]
        if port is not None:
            template = commands.PORT_QUERY_SPECIFIC.get(self.platform, template)
        return [(template, output_parser.PORT_PARSERS[self.platform])]

    def _run_port_commands(self, port: str | None) -> list[PortRecord]:
        candidates = self._port_commands(port)
        fragments = {"port": port} if port is not None else {}
        for index, (template, parser) in enumerate(candidates):
            try:
                result = self._run(template, **fragments)
            except SystemCommandError as e:
                if e.exit_code == FAILED_TO_START and index + 1 < len(candidates):
                    LOGGER.info("%s, falling back to %s", e, candidates[index + 1][0][0])
                    continue
                raise
            return parser(result.stdout_lines)
        return []

    def _with_process_details(self, records: list[PortRecord]) -> list[PortRecord]:
        if self.inspector is None:
            return records
        cache: dict[str, tuple[str, str]] = {}
        enriched = []
        for record in records:
            if record.pid and not (record.process_name and record.command_line):
                if record.pid not in cache:
                    cache[record.pid] = (self.inspector.name(record.pid), self.inspector.command_line(record.pid))
                name, command_line = cache[record.pid]
                record = dataclasses.replace(
                    record,
                    process_name=record.process_name or name,
                    command_line=record.command_line or command_line,
                )
            enriched.append(record)
        return enriched

    # ---- processes -------------------------------------------------------

    def query_processes(self, keyword=None) -> list[ProcessRecord]:
        """
        All processes, the one with PID ``keyword`` when it is numeric, or
        those whose name contains ``keyword`` (case-insensitive).
        """
        keyword = validate_keyword(keyword)
        if keyword is None:
            records = self._list_processes()
        elif is_digits(keyword):
            template = commands.PROCESS_QUERY_BY_PID[self.platform]
            records = [r for r in self._run_process_command(template, pid=keyword) if r.pid == keyword]
        else:
            records = self._query_processes_by_name(keyword)
        return sorted(records, key=lambda r: int(r.pid))

    def _query_processes_by_name(self, keyword: str) -> list[ProcessRecord]:
        # Phase 1: let the OS filter by name. Phase 2: tools truncate or
        # wildcard names differently (ps -C sees only 15 chars of comm,
        # tasklist wants the image name), so fall back to a full listing
        # filtered here.
        template = commands.PROCESS_QUERY_BY_NAME.get(self.platform)
        if template is not None:
            exact = self._run_process_command(template, name=keyword)
            if exact:
                return exact
            LOGGER.info("No process named %r, retrying with a substring match", keyword)
        return [r for r in self._list_processes() if filters.matches_name(r, keyword)]

    def _list_processes(self) -> list[ProcessRecord]:
        return self._run_process_command(commands.PROCESS_QUERY[self.platform])

    def _run_process_command(self, template, **fragments) -> list[ProcessRecord]:
        result = self._run(template, **fragments)
        records = output_parser.parse_processes(self.platform, result.stdout_lines)
        if self.platform is Platform.MACOS:
            records = self._with_process_names(records)
        return records

    def _with_process_names(self, records: list[ProcessRecord]) -> list[ProcessRecord]:
        # macOS ps has no unambiguous name column, argv[0] may contain spaces
        if self.inspector is None:
            return records
        named = []
        for record in records:
            name = self.inspector.name(record.pid)
            named.append(dataclasses.replace(record, name=name) if name else record)
        return named

    # ---- shared ----------------------------------------------------------

    def _run(self, template, **fragments) -> CommandResult:
        argv = commands.render(template, **fragments)
        result = self.runner.run(argv, self.settings.command_timeout_ms)
        if result.exit_code == FAILED_TO_START:
            raise SystemCommandError(
                f"Could not run {result.command}: {result.stderr or 'command unavailable'}",
                command=result.command,
                exit_code=result.exit_code,
            )
        if result.exit_code == TIMED_OUT:
            raise SystemCommandError(
                f"{result.command} did not finish within {self.settings.command_timeout_ms} ms",
                command=result.command,
                exit_code=result.exit_code,
            )
        # lsof, ps -p and ps -C exit with 1 when nothing matched
        if result.exit_code != 0:
            LOGGER.debug("%s exited with %d: %s", result.command, result.exit_code, result.stderr.strip())
        return result

    def system_info(self) -> dict:
        required = commands.REQUIRED_COMMANDS[self.platform]
        return {
            "platform": self.platform.value,
            "runner": self.runner.name,
            "commands": {
                "port_query": commands.display(commands.PORT_QUERY[self.platform], self.platform),
                "process_query": commands.display(commands.PROCESS_QUERY[self.platform], self.platform),
                "kill_process": commands.display(commands.KILL[self.platform], self.platform),
            },
            "available_commands": {name: shutil.which(name) is not None for name in required},
        }
