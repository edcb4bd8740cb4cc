"""Helpers that turn the different spellings each tool uses into one vocabulary."""

import re

_STATE_ALIASES = {
    "LISTENING": "LISTEN",
    "ESTAB": "ESTABLISHED",
    "TIME-WAIT": "TIME_WAIT",
    "CLOSE-WAIT": "CLOSE_WAIT",
    "FIN-WAIT-1": "FIN_WAIT1",
    "FIN-WAIT-2": "FIN_WAIT2",
    "FIN_WAIT_1": "FIN_WAIT1",
    "FIN_WAIT_2": "FIN_WAIT2",
    "SYN-SENT": "SYN_SENT",
    "SYN-RECV": "SYN_RECV",
    "SYN_RECEIVED": "SYN_RECV",
    "LAST-ACK": "LAST_ACK",
    "CLOSING": "CLOSING",
    "CLOSED": "CLOSED",
}

_WILDCARD_ADDRESSES = {"0.0.0.0:0", "*:*", "0.0.0.0:*", "[::]:0", "[::]:*", "*"}

_STAT_NAMES = {
    "R": "Running",
    "S": "Sleeping",
    "D": "Waiting",
    "U": "Waiting",
    "Z": "Zombie",
    "T": "Stopped",
    "t": "Stopped",
    "I": "Idle",
    "X": "Dead",
}

_WINDOWS_MEMORY = re.compile(r"^([\d.,\s ]+?)\s*([KMGT])(?:B)?$", re.IGNORECASE)
_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")
_PORT_SUFFIX = re.compile(r":(\d+)$")


def state(value: str) -> str:
    value = value.strip().strip("()").upper()
    return _STATE_ALIASES.get(value, value)


def protocol(value: str) -> str:
    value = value.strip().upper()
    # tcp6 / udp6 / TCP/IPv6 all count as the base protocol
    for base in ("TCP", "UDP"):
        if value.startswith(base):
            return base
    return value


def address(value: str) -> str:
    value = value.strip()
    if value in _WILDCARD_ADDRESSES:
        return "*"
    return value


def port_of(addr: str) -> str:
    """Port part of ``host:port``, ``[v6]:port`` or ``*:port``; empty when there is none."""
    match = _PORT_SUFFIX.search(addr.strip())
    if not match:
        return ""
    number = int(match.group(1))
    if not 1 <= number <= 65535:
        return ""
    return str(number)


def percent(value: str) -> str:
    value = value.strip()
    if _NUMBER.match(value):
        return value + "%"
    return value.replace(" %", "%")


def memory(value: str) -> str:
    """``"12,345 K"`` (tasklist) becomes ``"12345 KB"``."""
    value = value.strip()
    match = _WINDOWS_MEMORY.match(value)
    if match:
        number = re.sub(r"[,.\s ]", "", match.group(1))
        return f"{number} {match.group(2).upper()}B"
    return percent(value)


def status(stat: str) -> str:
    stat = stat.strip()
    if not stat:
        return ""
    name = _STAT_NAMES.get(stat[0])
    if name is None:
        return stat
    modifiers = stat[1:]
    if "s" in modifiers:
        return f"{name} (session leader)"
    if "+" in modifiers:
        return f"{name} (foreground)"
    return name
