try:
    from . import _version

    __version__ = _version.__version__
except ImportError:
    __version__ = "0.0.0-dev"

from .datatype import BatchKillResult, CommandResult, KillOutcome, PortRecord, ProcessRecord
from .errors import PortkillError, SystemCommandError, ValidationError
from .platform_detect import Platform, detect
from .query import QueryEngine
from .termination import TerminationEngine

__all__ = [
    "BatchKillResult",
    "CommandResult",
    "KillOutcome",
    "Platform",
    "PortRecord",
    "PortkillError",
    "ProcessRecord",
    "QueryEngine",
    "SystemCommandError",
    "TerminationEngine",
    "ValidationError",
    "detect",
]
