import enum
import logging
import platform

LOGGER = logging.getLogger(__name__)


class Platform(str, enum.Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"


_SYSTEM_NAMES = {
    "windows": Platform.WINDOWS,
    "darwin": Platform.MACOS,
    "linux": Platform.LINUX,
}


def detect(system_name: str | None = None) -> Platform:
    """
    Classify the host OS. Anything unrecognised (BSDs, Cygwin, ...) gets the
    Linux command conventions since ps/kill/lsof behave close enough there.
    """
    if system_name is None:
        system_name = platform.system()
    key = system_name.strip().lower()
    if key.startswith("win"):
        return Platform.WINDOWS
    found = _SYSTEM_NAMES.get(key)
    if found is None:
        LOGGER.debug("Unrecognised OS %r, using linux command conventions", system_name)
        return Platform.LINUX
    return found
