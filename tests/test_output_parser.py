import pytest

from portkill.datatype import PortRecord, ProcessRecord
from portkill.output_parser import linux, macos, normalize, parse_ports, parse_processes, windows
from portkill.platform_detect import Platform

import samples


def test_netstat_reads_tcp_and_udp_rows():
    records = windows.parse_netstat(samples.NETSTAT.splitlines())

    assert [(r.port, r.pid, r.protocol, r.state) for r in records] == [
        ("135", "1044", "TCP", "LISTEN"),
        ("8080", "1234", "TCP", "LISTEN"),
        ("8080", "1234", "TCP", "ESTABLISHED"),
        ("445", "4", "TCP", "LISTEN"),
        ("5353", "9012", "UDP", ""),
    ]
    assert records[0].local_address == "0.0.0.0:135"
    assert records[0].remote_address == "*"
    assert records[2].remote_address == "127.0.0.1:52000"


def test_netstat_keeps_duplicate_pids():
    records = windows.parse_netstat(samples.NETSTAT.splitlines())
    assert [r.pid for r in records].count("1234") == 2


def test_tasklist_sample_row():
    records = windows.parse_tasklist(['"nginx.exe","1234","Console","1","12,345 K"'])

    assert len(records) == 1
    assert records[0].pid == "1234"
    assert records[0].name == "nginx.exe"
    assert records[0].memory_usage == "12345 KB"
    assert records[0].status == "Running"


def test_tasklist_skips_header_and_honours_quoted_commas():
    records = windows.parse_tasklist(samples.TASKLIST.splitlines())

    assert [(r.pid, r.name) for r in records] == [
        ("0", "System Idle Process"),
        ("1234", "nginx.exe"),
        ("4321", "weird, name.exe"),
    ]
    assert records[2].memory_usage == "1024 KB"


def test_tasklist_verbose_columns():
    (record,) = windows.parse_tasklist(samples.TASKLIST_VERBOSE.splitlines())
    assert record.user == "DESKTOP\\bob"
    assert record.status == "Running"
    assert record.memory_usage == "150000 KB"


def test_tasklist_no_tasks_message():
    assert windows.parse_tasklist(samples.TASKLIST_EMPTY.splitlines()) == []


def test_tasklist_survives_broken_quoting():
    lines = ['"broken.exe,"12', '"nginx.exe","1234","Console","1","12,345 K"']
    assert [r.pid for r in windows.parse_tasklist(lines)] == ["1234"]


def test_ss_one_record_per_owning_process():
    records = linux.parse_ss(samples.SS.splitlines())

    assert [(r.port, r.pid, r.protocol, r.state, r.process_name) for r in records] == [
        ("53", "640", "UDP", "UNCONN", "systemd-resolve"),
        ("80", "1235", "TCP", "LISTEN", "nginx"),
        ("80", "1234", "TCP", "LISTEN", "nginx"),
        ("22", "", "TCP", "LISTEN", ""),
        ("22", "2001", "TCP", "ESTABLISHED", "sshd"),
    ]
    assert records[0].local_address == "127.0.0.53%lo:53"
    assert records[0].remote_address == "*"
    assert records[4].remote_address == "10.0.0.9:51234"


def test_ss_without_netid_column():
    lines = [
        "State  Recv-Q Send-Q Local Address:Port Peer Address:Port Process",
        'LISTEN 0      128    127.0.0.1:5432     0.0.0.0:*         users:(("postgres",pid=77,fd=5))',
    ]
    (record,) = linux.parse_ss(lines)
    assert (record.port, record.pid, record.protocol) == ("5432", "77", "TCP")


def test_lsof_sample_row():
    (record,) = macos.parse_lsof(["nginx 1234 user 6u IPv4 ... TCP *:8080 (LISTEN)"])

    assert record == PortRecord(
        port="8080",
        pid="1234",
        protocol="TCP",
        local_address="*:8080",
        remote_address="",
        state="LISTEN",
        process_name="nginx",
    )


def test_lsof_connections_and_udp():
    records = macos.parse_lsof(samples.LSOF.splitlines())

    assert [(r.port, r.pid, r.protocol, r.state) for r in records] == [
        ("8080", "1234", "TCP", "LISTEN"),
        ("50312", "4242", "TCP", "ESTABLISHED"),
        ("5353", "321", "UDP", ""),
    ]
    assert records[1].local_address == "10.0.0.2:50312"
    assert records[1].remote_address == "10.0.0.9:8080"


def test_ps_linux():
    records = linux.parse_ps(samples.PS_LINUX.splitlines())

    assert [(r.pid, r.name, r.user) for r in records] == [
        ("1", "init", "root"),
        ("2", "kthreadd", "root"),
        ("1234", "nginx", "www-data"),
        ("4321", "python3", "alice"),
    ]
    python = records[3]
    assert python.cpu_usage == "12.0%"
    assert python.memory_usage == "5.3%"
    assert python.status == "Running (foreground)"
    assert python.command_line == "/usr/bin/python3 -m http.server 8080"
    assert records[0].status == "Sleeping (session leader)"


def test_ps_macos_app_bundles():
    records = macos.parse_ps(samples.PS_MACOS.splitlines())

    assert [(r.pid, r.name) for r in records] == [("501", "Google Chrome"), ("1", "launchd")]
    assert records[0].command_line.endswith("Google Chrome --flag")


@pytest.mark.parametrize(
    "parser, header",
    [
        (windows.parse_netstat, "  Proto  Local Address          Foreign Address        State           PID"),
        (windows.parse_tasklist, '"Image Name","PID","Session Name","Session#","Mem Usage"'),
        (linux.parse_ss, "Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port Process"),
        (linux.parse_ps, samples.PS_LINUX_HEADER_ONLY),
        (macos.parse_lsof, "COMMAND   PID USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"),
        (macos.parse_ps, samples.PS_MACOS.splitlines()[0]),
    ],
)
def test_empty_and_header_only_output(parser, header):
    assert parser([]) == []
    assert parser([""]) == []
    assert parser(header.splitlines()) == []


@pytest.mark.parametrize(
    "parser",
    [windows.parse_netstat, windows.parse_tasklist, linux.parse_ss, linux.parse_ps, macos.parse_lsof, macos.parse_ps],
)
def test_garbage_is_skipped(parser):
    garbage = ["\x00\x01", "a b c d e f g h i j k l", ":::::", '"""', "TCP x y z"]
    assert parser(garbage) == []


def test_dispatch_by_platform():
    assert isinstance(parse_ports(Platform.WINDOWS, samples.NETSTAT.splitlines())[0], PortRecord)
    assert isinstance(parse_processes(Platform.LINUX, samples.PS_LINUX.splitlines())[0], ProcessRecord)
    assert parse_ports(Platform.MACOS, samples.LSOF.splitlines())[0].pid == "1234"


@pytest.mark.parametrize(
    "raw, expected",
    [("LISTENING", "LISTEN"), ("ESTAB", "ESTABLISHED"), ("(LISTEN)", "LISTEN"), ("time-wait", "TIME_WAIT"), ("", "")],
)
def test_normalize_state(raw, expected):
    assert normalize.state(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("0.0.0.0:80", "80"), ("[::1]:443", "443"), ("*:5353", "5353"), ("*:*", ""), ("host:0", ""), ("host:70000", "")],
)
def test_normalize_port_of(raw, expected):
    assert normalize.port_of(raw) == expected


def test_normalize_memory_and_status():
    assert normalize.memory("12,345 K") == "12345 KB"
    assert normalize.memory("2.5") == "2.5%"
    assert normalize.status("Z") == "Zombie"
    assert normalize.status("S+") == "Sleeping (foreground)"
    assert normalize.status("??") == "??"


def test_ps_macos_names_nested_helpers_and_paths_with_spaces():
    records = macos.parse_ps(samples.PS_MACOS_HELPERS.splitlines())

    assert [(r.pid, r.name) for r in records] == [
        ("612", "Google Chrome Helper (Renderer)"),
        ("733", "fooagent"),
        ("801", "python3"),
    ]


@pytest.mark.parametrize(
    "command, name",
    [
        ("/opt/Foo Agent/bin/agent --daemon", "agent"),
        ("/usr/bin/env PATH=/opt/bin tool", "env"),
        ("sshd: alice@pts/0", "sshd"),
        ("nginx", "nginx"),
    ],
)
def test_executable_name(command, name):
    assert linux.executable_name(command) == name
