import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Sequence

from . import commands
from .datatype import CommandResult
from .platform_detect import Platform
from .utils import kill_process_tree, popen_kwargs

LOGGER = logging.getLogger(__name__)

FAILED_TO_START = -1
TIMED_OUT = -2

DEFAULT_TIMEOUT_MS = 10_000
# how long to wait for output pipes to close after a timed out command is killed
REAP_TIMEOUT_S = 1.0


class AbstractRunner(ABC):
    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def run(self, argv: Sequence[str], timeout_ms: int = DEFAULT_TIMEOUT_MS) -> CommandResult:
        """Run ``argv`` and describe how it went. Must not raise."""


class CommandRunner(AbstractRunner):
    """
    Runs one external command as an argument vector (no shell) and waits for it.

    A binary that cannot be started yields ``exit_code == FAILED_TO_START``; a
    command that outlives ``timeout_ms`` is killed together with its children
    and yields ``exit_code == TIMED_OUT`` with no output.
    """

    def __init__(self, platform: Platform | None = None):
        self.platform = platform

    def run(self, argv: Sequence[str], timeout_ms: int = DEFAULT_TIMEOUT_MS) -> CommandResult:
        argv = [str(a) for a in argv]
        command = commands.display(argv, self.platform)
        timeout = max(timeout_ms, 1) / 1000.0

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                **popen_kwargs(),
            )
        except OSError as e:
            LOGGER.warning("Failed to start %s: %s", command, e)
            return CommandResult(command=command, exit_code=FAILED_TO_START, stderr=str(e))

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            LOGGER.warning("Command %s timed out after %d ms, killing it", command, timeout_ms)
            kill_process_tree(process.pid)
            process.kill()
            try:
                process.communicate(timeout=REAP_TIMEOUT_S)
            except subprocess.TimeoutExpired:
                # a descendant we could not kill still holds the pipes
                LOGGER.warning("Output pipes of %s are still open, leaving them behind", command)
            return CommandResult(command=command, exit_code=TIMED_OUT)

        LOGGER.debug("Command %s exited with %d", command, process.returncode)
        return CommandResult(
            command=command,
            exit_code=process.returncode,
            stdout_lines=tuple(stdout.splitlines()),
            raw_output=stdout,
            stderr=stderr,
        )
