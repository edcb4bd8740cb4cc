import pytest

from portkill.platform_detect import Platform, detect


@pytest.mark.parametrize(
    "system_name, expected",
    [
        ("Windows", Platform.WINDOWS),
        ("win32", Platform.WINDOWS),
        ("Darwin", Platform.MACOS),
        ("Linux", Platform.LINUX),
        ("FreeBSD", Platform.LINUX),
        ("", Platform.LINUX),
    ],
)
def test_detect(system_name, expected):
    assert detect(system_name) is expected


def test_detect_host():
    assert detect() in set(Platform)
