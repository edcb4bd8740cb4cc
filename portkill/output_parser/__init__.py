"""
Text parsers for the port and process tools of each platform.

Every parser is pure and total: it takes the lines a command printed and
returns whatever records it could read, skipping headers and malformed rows.
Duplicate PIDs are kept, de-duplicating is up to whoever displays them.
"""

from typing import Iterable

from ..datatype import PortRecord, ProcessRecord
from ..platform_detect import Platform
from . import linux, macos, windows

PORT_PARSERS = {
    Platform.WINDOWS: windows.parse_netstat,
    Platform.LINUX: linux.parse_ss,
    Platform.MACOS: macos.parse_lsof,
}

PROCESS_PARSERS = {
    Platform.WINDOWS: windows.parse_tasklist,
    Platform.LINUX: linux.parse_ps,
    Platform.MACOS: macos.parse_ps,
}


def parse_ports(platform: Platform, lines: Iterable[str]) -> list[PortRecord]:
    return PORT_PARSERS[platform](lines)


def parse_processes(platform: Platform, lines: Iterable[str]) -> list[ProcessRecord]:
    return PROCESS_PARSERS[platform](lines)
