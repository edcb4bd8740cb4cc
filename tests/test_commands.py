import pytest

from portkill import commands
from portkill.errors import ValidationError
from portkill.platform_detect import Platform


def test_render_fills_placeholders():
    assert commands.render(commands.KILL[Platform.WINDOWS], pid="4321") == ["taskkill", "/F", "/PID", "4321"]
    assert commands.render(commands.PORT_QUERY_SPECIFIC[Platform.MACOS], port=8080) == [
        "lsof",
        "-i",
        ":8080",
        "-n",
        "-P",
    ]
    assert commands.render(commands.PROCESS_QUERY_BY_NAME[Platform.WINDOWS], name="nginx") == [
        "tasklist",
        "/FI",
        "IMAGENAME eq nginx*",
        "/FO",
        "CSV",
        "/NH",
    ]


def test_render_without_placeholders():
    assert commands.render(commands.PORT_QUERY[Platform.LINUX]) == ["ss", "-tulpn"]


@pytest.mark.parametrize(
    "fragments",
    [{"pid": "1; reboot"}, {"port": "80 && id"}, {"pid": ""}, {"name": 'nginx" or "1'}, {"name": " padded "}],
)
def test_render_rejects_unsafe_fragments(fragments):
    template = ("tool", "{pid}", "{port}", "{name}")
    with pytest.raises(ValidationError):
        commands.render(template, **fragments)


def test_display():
    argv = ["tasklist", "/FI", "PID eq 5"]
    assert commands.display(argv, Platform.WINDOWS) == 'tasklist /FI "PID eq 5"'
    assert commands.display(argv, Platform.LINUX) == "tasklist /FI 'PID eq 5'"


def test_every_platform_has_every_command():
    for platform in Platform:
        assert platform in commands.PORT_QUERY
        assert platform in commands.PROCESS_QUERY
        assert platform in commands.PROCESS_QUERY_BY_PID
        assert platform in commands.KILL
        assert platform in commands.REQUIRED_COMMANDS
