import logging

import psutil

LOGGER = logging.getLogger(__name__)


class ProcessInspector:
    """Looks up details the text tools do not print, through psutil."""

    def _process(self, pid: str) -> psutil.Process | None:
        try:
            return psutil.Process(int(pid))
        except (ValueError, psutil.Error) as e:
            LOGGER.debug("No process details for pid %s: %s", pid, e)
            return None

    def name(self, pid: str) -> str:
        proc = self._process(pid)
        if proc is None:
            return ""
        try:
            return proc.name()
        except psutil.Error as e:
            LOGGER.debug("Cannot read name of pid %s: %s", pid, e)
            return ""

    def command_line(self, pid: str) -> str:
        proc = self._process(pid)
        if proc is None:
            return ""
        try:
            return " ".join(proc.cmdline())
        except psutil.Error as e:
            LOGGER.debug("Cannot read command line of pid %s: %s", pid, e)
            return ""
