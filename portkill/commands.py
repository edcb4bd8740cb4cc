"""
Command templates per platform.

Templates are argument vectors, never shell strings. Placeholders such as
``{port}`` are filled by :func:`render` from values that already went through
:mod:`portkill.validation`. Filtering a shell would do with
``| findstr`` or ``| grep`` happens on the parsed records instead.
"""

import shlex
import subprocess

from .errors import ValidationError
from .platform_detect import Platform
from .validation import is_digits, validate_keyword

PORT_QUERY = {
    Platform.WINDOWS: ("netstat", "-ano"),
    Platform.LINUX: ("ss", "-tulpn"),
    Platform.MACOS: ("lsof", "-i", "-P", "-n"),
}

PORT_QUERY_SPECIFIC = {
    Platform.MACOS: ("lsof", "-i", ":{port}", "-n", "-P"),
}

# used on linux when ss is not installed
LSOF_PORT_QUERY = ("lsof", "-i", "-P", "-n")
LSOF_PORT_QUERY_SPECIFIC = ("lsof", "-i", ":{port}", "-n", "-P")

PROCESS_QUERY = {
    Platform.WINDOWS: ("tasklist", "/FO", "CSV", "/NH"),
    Platform.LINUX: ("ps", "aux"),
    Platform.MACOS: ("ps", "aux"),
}

PROCESS_QUERY_BY_PID = {
    Platform.WINDOWS: ("tasklist", "/FI", "PID eq {pid}", "/FO", "CSV", "/NH"),
    Platform.LINUX: ("ps", "u", "-p", "{pid}"),
    Platform.MACOS: ("ps", "u", "-p", "{pid}"),
}

# exact/prefix name filter done by the OS; macOS ps has no equivalent
PROCESS_QUERY_BY_NAME = {
    Platform.WINDOWS: ("tasklist", "/FI", "IMAGENAME eq {name}*", "/FO", "CSV", "/NH"),
    Platform.LINUX: ("ps", "u", "-C", "{name}"),
}

KILL = {
    Platform.WINDOWS: ("taskkill", "/F", "/PID", "{pid}"),
    Platform.LINUX: ("kill", "-9", "{pid}"),
    Platform.MACOS: ("kill", "-9", "{pid}"),
}

REQUIRED_COMMANDS = {
    Platform.WINDOWS: ("netstat", "tasklist", "taskkill"),
    Platform.LINUX: ("ss", "ps", "kill"),
    Platform.MACOS: ("lsof", "ps", "kill"),
}

_NUMERIC_FRAGMENTS = {"port", "pid"}


def render(template, **fragments) -> list[str]:
    for key, value in fragments.items():
        value = str(value)
        if key in _NUMERIC_FRAGMENTS:
            if not is_digits(value):
                raise ValidationError(f"{key} must be numeric: {value!r}", value=value, field=key)
        elif validate_keyword(value) != value:
            raise ValidationError(f"Unsafe command fragment for {key}: {value!r}", value=value, field=key)
        fragments[key] = value
    return [part.format(**fragments) for part in template]


def display(argv, platform: Platform | None = None) -> str:
    if platform is Platform.WINDOWS:
        return subprocess.list2cmdline(list(argv))
    return shlex.join(argv)
