import csv
import logging
from typing import Iterable

from ..datatype import PortRecord, ProcessRecord
from ..validation import is_digits
from . import normalize

LOGGER = logging.getLogger(__name__)

# Proto  Local Address  Foreign Address  [State]  PID
NETSTAT_MIN_FIELDS = 4
# "Image Name","PID","Session Name","Session#","Mem Usage"[,"Status","User Name","CPU Time","Window Title"]
TASKLIST_MIN_FIELDS = 5
TASKLIST_VERBOSE_FIELDS = 9

_NO_TASKS_MARKER = "INFO:"


def parse_netstat(lines: Iterable[str]) -> list[PortRecord]:
    """
    Parse ``netstat -ano``.

        TCP    0.0.0.0:135      0.0.0.0:0      LISTENING       1234
        UDP    0.0.0.0:5353     *:*                            9012

    UDP rows have no state column, so the PID is always taken from the last
    field. Headers ("Active Connections", "Proto ...") fail the protocol check.
    """
    records = []
    for line in lines:
        parts = line.split()
        if len(parts) < NETSTAT_MIN_FIELDS:
            continue
        proto = normalize.protocol(parts[0])
        if proto not in ("TCP", "UDP"):
            continue
        pid = parts[-1]
        if not is_digits(pid):
            continue
        port = normalize.port_of(parts[1])
        if not port:
            continue
        state = parts[3] if len(parts) >= 5 else ""
        records.append(
            PortRecord(
                port=port,
                pid=pid,
                protocol=proto,
                local_address=normalize.address(parts[1]),
                remote_address=normalize.address(parts[2]),
                state=normalize.state(state),
            )
        )
    return records


def parse_tasklist(lines: Iterable[str]) -> list[ProcessRecord]:
    """
    Parse ``tasklist /FO CSV`` with or without ``/NH`` and ``/V``.

    Quoted fields may contain commas (``"12,345 K"``), so rows go through the
    csv module rather than a plain split.
    """
    records = []
    for line in lines:
        fields = _csv_fields(line)
        if len(fields) < TASKLIST_MIN_FIELDS:
            continue
        name, pid = fields[0].strip(), fields[1].strip()
        if not is_digits(pid):
            # header row or garbage
            continue
        user = status = ""
        if len(fields) >= TASKLIST_VERBOSE_FIELDS:
            status = fields[5].strip()
            user = "" if fields[6].strip() == "N/A" else fields[6].strip()
        records.append(
            ProcessRecord(
                pid=pid,
                name=name,
                user=user,
                memory_usage=normalize.memory(fields[4]),
                command_line=name,
                status=status or "Running",
            )
        )
    return records


def _csv_fields(line: str) -> list[str]:
    line = line.strip()
    if not line or line.startswith(_NO_TASKS_MARKER):
        return []
    try:
        return next(csv.reader([line]), [])
    except csv.Error as e:
        LOGGER.debug("Skipping malformed tasklist row %r: %s", line, e)
        return []
