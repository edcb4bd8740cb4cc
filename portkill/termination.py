import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable

from . import commands
from .command_runner import FAILED_TO_START, TIMED_OUT, AbstractRunner, CommandRunner
from .config import Settings
from .datatype import BatchKillResult, CommandResult, KillOutcome
from .errors import ValidationError
from .inspector import ProcessInspector
from .platform_detect import Platform, detect
from .validation import is_digits, validate_pid

LOGGER = logging.getLogger(__name__)

PROTECTED_MESSAGE = "protected system process"
PERMISSION_MESSAGE = "permission denied - run as administrator"

BUILTIN_PROTECTED_PIDS = {
    Platform.WINDOWS: frozenset({0, 1, 4}),
    Platform.LINUX: frozenset({0, 1}),
    Platform.MACOS: frozenset({0, 1}),
}

BUILTIN_PROTECTED_NAMES = {
    Platform.WINDOWS: frozenset(
        {
            "system idle process",
            "idle",
            "system",
            "registry",
            "smss.exe",
            "csrss.exe",
            "wininit.exe",
            "winlogon.exe",
            "services.exe",
            "lsass.exe",
        }
    ),
    Platform.LINUX: frozenset({"init", "systemd", "kthreadd"}),
    Platform.MACOS: frozenset({"kernel_task", "launchd"}),
}

_PERMISSION_MARKERS = ("permission", "access is denied", "access denied", "not permitted")


class TerminationEngine:
    """
    Force-kills processes by PID, one external kill command per PID.

    The system-process denylist is a best-effort guard against obvious
    mistakes (PID 0/1, kernel_task, init, ...). It is not a security boundary:
    the OS permissions of the calling user are what actually limit a kill.
    """

    def __init__(
        self,
        platform: Platform | None = None,
        runner: AbstractRunner | None = None,
        settings: Settings | None = None,
        inspector: ProcessInspector | None = None,
    ):
        self.platform = platform or detect()
        self.runner = runner or CommandRunner(self.platform)
        self.settings = settings or Settings()
        self.inspector = inspector if inspector is not None else ProcessInspector()
        self.protected_pids = BUILTIN_PROTECTED_PIDS[self.platform] | set(self.settings.protected_pids)
        self.protected_names = BUILTIN_PROTECTED_NAMES[self.platform] | {
            n.lower() for n in self.settings.protected_names
        }

    def is_system_process(self, pid) -> bool:
        pid = str(pid).strip()
        if not is_digits(pid):
            return False
        if int(pid) in self.protected_pids:
            return True
        name = self.inspector.name(pid).strip().lower()
        return bool(name) and name in self.protected_names

    def kill_one(self, pid) -> KillOutcome:
        try:
            pid = validate_pid(pid)
        except ValidationError as e:
            return KillOutcome(pid=str(pid), success=False, message=str(e))

        if self.is_system_process(pid):
            LOGGER.warning("Refusing to kill protected system process %s", pid)
            return KillOutcome(pid=pid, success=False, message=PROTECTED_MESSAGE)

        argv = commands.render(commands.KILL[self.platform], pid=pid)
        result = self.runner.run(argv, self.settings.kill_timeout_ms)
        outcome = self._interpret(pid, result)
        if outcome.success:
            LOGGER.info("Killed process %s", pid)
        else:
            LOGGER.warning("Failed to kill process %s: %s", pid, outcome.message)
        return outcome

    def _interpret(self, pid: str, result: CommandResult) -> KillOutcome:
        if result.exit_code == FAILED_TO_START:
            return KillOutcome(pid, False, f"kill command unavailable: {result.stderr or result.command}")
        if result.exit_code == TIMED_OUT:
            return KillOutcome(pid, False, f"kill command timed out after {self.settings.kill_timeout_ms} ms")

        succeeded = result.exit_code == 0
        if not succeeded and self.platform is Platform.WINDOWS:
            # Legacy signal: taskkill prints "SUCCESS: ..." (English locales only)
            succeeded = "SUCCESS" in result.raw_output
        if succeeded:
            return KillOutcome(pid, True, "Process killed successfully")

        text = (result.stderr.strip() or result.raw_output.strip())
        if any(marker in text.lower() for marker in _PERMISSION_MARKERS):
            return KillOutcome(pid, False, PERMISSION_MESSAGE)
        return KillOutcome(pid, False, text or f"kill exited with code {result.exit_code}")

    def kill_many(self, pids: Iterable) -> BatchKillResult:
        """
        Kill every PID independently on a small worker pool. One failure never
        stops the others, and outcomes keep the order of ``pids``.
        """
        pids = list(pids)
        if not pids:
            return BatchKillResult.from_outcomes(())

        slots: list[KillOutcome | None] = [None] * len(pids)
        workers = min(self.settings.max_kill_workers, len(pids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="portkill-kill") as executor:
            futures = {executor.submit(self.kill_one, pid): index for index, pid in enumerate(pids)}
            for future in as_completed(futures):
                index = futures[future]
                try:
                    slots[index] = future.result()
                except Exception as e:
                    LOGGER.error("Unexpected error killing process %s", pids[index], exc_info=True)
                    slots[index] = KillOutcome(str(pids[index]), False, f"unexpected error: {e}")

        result = BatchKillResult.from_outcomes(slots)
        LOGGER.info(result.message)
        return result
