class PortkillError(Exception):
    """Base class for every error the engine raises on purpose."""


class ValidationError(PortkillError, ValueError):
    """Raised for malformed port, PID or keyword input, before anything is executed."""

    def __init__(self, message: str, value=None, field: str = ""):
        super().__init__(message)
        self.value = value
        self.field = field


class SystemCommandError(PortkillError):
    """Raised when a required OS utility could not be run at all."""

    def __init__(self, message: str, command: str = "", exit_code: int | None = None):
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
