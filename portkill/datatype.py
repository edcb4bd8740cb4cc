from dataclasses import dataclass, field


@dataclass(frozen=True)
class PortRecord:
    port: str
    pid: str
    protocol: str
    local_address: str
    remote_address: str = ""
    state: str = ""
    process_name: str = ""
    command_line: str = ""


@dataclass(frozen=True)
class ProcessRecord:
    pid: str
    name: str
    user: str = ""
    cpu_usage: str = ""
    memory_usage: str = ""
    command_line: str = ""
    status: str = ""


@dataclass(frozen=True)
class CommandResult:
    command: str
    exit_code: int
    stdout_lines: tuple[str, ...] = ()
    raw_output: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class KillOutcome:
    pid: str
    success: bool
    message: str


@dataclass(frozen=True)
class BatchKillResult:
    outcomes: tuple[KillOutcome, ...] = ()
    total_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    overall_success: bool = False
    message: str = field(default="", compare=False)

    def __post_init__(self):
        if not (self.total_count == self.success_count + self.failed_count == len(self.outcomes)):
            raise ValueError(
                f"inconsistent batch totals: total={self.total_count} success={self.success_count} "
                f"failed={self.failed_count} outcomes={len(self.outcomes)}"
            )
        if self.overall_success != (self.success_count > 0):
            raise ValueError("overall_success must be true exactly when at least one kill succeeded")

    @classmethod
    def from_outcomes(cls, outcomes) -> "BatchKillResult":
        outcomes = tuple(outcomes)
        succeeded = sum(1 for o in outcomes if o.success)
        failed = len(outcomes) - succeeded
        return cls(
            outcomes=outcomes,
            total_count=len(outcomes),
            success_count=succeeded,
            failed_count=failed,
            overall_success=succeeded > 0,
            message=summarize(succeeded, failed),
        )


def summarize(succeeded: int, failed: int) -> str:
    if succeeded == 0 and failed > 0:
        return f"Failed to kill {failed} process(es)"
    if succeeded > 0 and failed == 0:
        return f"Successfully killed {succeeded} process(es)"
    if succeeded > 0 and failed > 0:
        return f"Killed {succeeded} process(es), failed to kill {failed} process(es)"
    return "No processes were processed"
