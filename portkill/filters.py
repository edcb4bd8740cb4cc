from typing import Iterable, TypeVar

from .datatype import PortRecord, ProcessRecord

R = TypeVar("R", PortRecord, ProcessRecord)


def matches_name(record: ProcessRecord, keyword: str) -> bool:
    return keyword.lower() in record.name.lower()


def by_local_port(records: Iterable[PortRecord], port: str) -> list[PortRecord]:
    return [r for r in records if r.port == port]


def listening_only(records: Iterable[PortRecord]) -> list[PortRecord]:
    # UDP has no LISTEN state; an unconnected UDP socket is the equivalent
    return [r for r in records if r.state == "LISTEN" or (r.protocol == "UDP" and not r.remote_address.strip("*"))]


def by_user(records: Iterable[ProcessRecord], user: str) -> list[ProcessRecord]:
    return [r for r in records if r.user == user]


def min_cpu(records: Iterable[ProcessRecord], threshold: float) -> list[ProcessRecord]:
    selected = []
    for record in records:
        try:
            usage = float(record.cpu_usage.rstrip("%"))
        except ValueError:
            continue
        if usage >= threshold:
            selected.append(record)
    return selected


def unique_pids(records: Iterable[R]) -> list[str]:
    """PIDs in first-seen order, without blanks or repeats."""
    seen: dict[str, None] = {}
    for record in records:
        if record.pid:
            seen.setdefault(record.pid, None)
    return list(seen)
