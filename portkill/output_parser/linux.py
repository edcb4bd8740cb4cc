import re
from typing import Iterable

from ..datatype import PortRecord, ProcessRecord
from ..validation import is_digits
from . import normalize

# State Recv-Q Send-Q Local-Address:Port Peer-Address:Port, after the Netid column
SS_MIN_FIELDS = 5
# USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND
PS_AUX_FIELDS = 11

_SS_NETIDS = {"tcp", "udp", "tcp6", "udp6"}
_SS_USER = re.compile(r'\("([^"]*)",pid=(\d+)')


def parse_ss(lines: Iterable[str]) -> list[PortRecord]:
    """
    Parse ``ss -tulpn``.

        tcp   LISTEN 0  4096  0.0.0.0:22  0.0.0.0:*  users:(("sshd",pid=1000,fd=3))

    A socket shared by several processes lists them all in ``users:(...)``;
    each one becomes its own record. Without privileges ss omits the process
    column for other users' sockets and the record keeps an empty PID.
    """
    records = []
    for line in lines:
        parts = line.split()
        if not parts:
            continue
        if parts[0].lower() in _SS_NETIDS:
            netid, parts = parts[0], parts[1:]
        elif parts[0].lower() in ("netid", "state"):
            continue
        else:
            # -t only output has no Netid column
            netid = "tcp"
        if len(parts) < SS_MIN_FIELDS:
            continue
        local, peer = parts[3], parts[4]
        port = normalize.port_of(local)
        if not port:
            continue
        owners = _SS_USER.findall(" ".join(parts[5:])) or [("", "")]
        for name, pid in owners:
            records.append(
                PortRecord(
                    port=port,
                    pid=pid,
                    protocol=normalize.protocol(netid),
                    local_address=normalize.address(local),
                    remote_address=normalize.address(peer),
                    state=normalize.state(parts[0]),
                    process_name=name,
                )
            )
    return records


def split_ps_aux(line: str) -> list[str] | None:
    """Fields of one ``ps aux``/``ps u`` row, or None for headers and short rows."""
    parts = line.strip().split(None, PS_AUX_FIELDS - 1)
    if len(parts) < PS_AUX_FIELDS:
        return None
    if not is_digits(parts[1]):
        return None
    return parts


def parse_ps(lines: Iterable[str]) -> list[ProcessRecord]:
    """
    Parse ``ps aux`` (or ``ps u -p``/``ps u -C``) on Linux.

    Kernel threads show up as ``[kworker/0:1]``; their name is the bracketed
    text, everything else is named after the basename of argv[0].
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
                name=_linux_process_name(command),
                user=parts[0],
                cpu_usage=normalize.percent(parts[2]),
                memory_usage=normalize.percent(parts[3]),
                command_line=command,
                status=normalize.status(parts[7]),
            )
        )
    return records


def _linux_process_name(command: str) -> str:
    if command.startswith("[") and command.endswith("]"):
        return command[1:-1]
    return executable_name(command)


def executable_name(command: str) -> str:
    """
    Basename of argv[0] in a ``ps`` COMMAND column.

    ps joins argv with spaces, so ``/opt/Foo Agent/bin/agent --daemon`` arrives
    as several words. Words are glued back onto an absolute argv[0] while they
    look like the rest of that path: relative, containing ``/``, and not an
    option or an assignment.
    """
    words = command.split(" ")
    argv0 = words[0]
    if argv0.startswith("/"):
        for word in words[1:]:
            if "/" not in word or word.startswith(("/", "-")) or "=" in word:
                break
            argv0 = f"{argv0} {word}"
    # "sshd: user@pts/0" style retitled processes
    return argv0.rstrip(":").rsplit("/", 1)[-1] or argv0
