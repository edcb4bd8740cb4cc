import re
from typing import Iterable

from ..datatype import PortRecord, ProcessRecord
from . import normalize
from .linux import executable_name, split_ps_aux

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME; SIZE/OFF may be blank
LSOF_MIN_FIELDS = 8

_APP_EXECUTABLE = re.compile(r"([^/]+)\.app/Contents/MacOS/")
_APP_FRAMEWORK = re.compile(r"([^/]+)\.app/Contents/Frameworks/")


def parse_lsof(lines: Iterable[str]) -> list[PortRecord]:
    """
    Parse ``lsof -i [-:port] -n -P``. Also used on Linux hosts without ss.

        nginx  1234 user  6u  IPv4 0x1a2b  0t0  TCP *:8080 (LISTEN)
        curl   4242 user  5u  IPv4 0x1a2c  0t0  TCP 10.0.0.2:50312->10.0.0.9:443 (ESTABLISHED)
        mDNSRe  321 _mdns 7u  IPv4 0x1a2d  0t0  UDP *:5353

    The protocol token is searched for instead of read from a fixed column,
    since SIZE/OFF is left blank for some descriptors.
    """
    records = []
    for line in lines:
        parts = line.split()
        if len(parts) < LSOF_MIN_FIELDS or parts[0] == "COMMAND":
            continue
        if not parts[1].isdigit() or not parts[1].isascii():
            continue
        proto_index = _protocol_index(parts)
        if proto_index is None or proto_index + 1 >= len(parts):
            continue
        name = parts[proto_index + 1]
        local, _, remote = name.partition("->")
        port = normalize.port_of(local)
        if not port:
            continue
        state = ""
        if proto_index + 2 < len(parts):
            state = parts[proto_index + 2]
        records.append(
            PortRecord(
                port=port,
                pid=parts[1],
                protocol=normalize.protocol(parts[proto_index]),
                local_address=normalize.address(local),
                remote_address=normalize.address(remote),
                state=normalize.state(state),
                process_name=parts[0].replace("\\x20", " "),
            )
        )
    return records


def _protocol_index(parts: list[str]) -> int | None:
    # the first four columns are COMMAND PID USER FD, never the protocol
    for index in range(len(parts) - 1, 3, -1):
        if normalize.protocol(parts[index]) in ("TCP", "UDP") and parts[index].isalpha():
            return index
    return None


def parse_ps(lines: Iterable[str]) -> list[ProcessRecord]:
    """
    Parse ``ps aux`` (or ``ps u -p``) on macOS.

    Columns match Linux, but application bundles put spaces in argv[0]
    (``/Applications/Google Chrome.app/Contents/MacOS/Google Chrome``), so the
    name comes from the innermost bundle when there is one. These names are a
    best guess; :class:`portkill.query.QueryEngine` replaces them with the
    kernel's process name when it can look the PID up.
    """
    records = []
    for line in lines:
        parts = split_ps_aux(line)
        if parts is None:
            continue
        command = parts[10].strip()
        records.append(
            ProcessRecord(
                pid=parts[1],
                name=_macos_process_name(command),
                user=parts[0],
                cpu_usage=normalize.percent(parts[2]),
                memory_usage=normalize.percent(parts[3]),
                command_line=command,
                status=normalize.status(parts[7]),
            )
        )
    return records


def _macos_process_name(command: str) -> str:
    # helpers live inside their parent app's bundle, the innermost one is running
    executable = command.split(" -", 1)[0]
    bundles = _APP_EXECUTABLE.findall(executable) or _APP_FRAMEWORK.findall(executable)
    if bundles:
        return bundles[-1]
    if command.startswith("(") and command.endswith(")"):
        return command[1:-1]
    return executable_name(command)
