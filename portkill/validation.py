"""
Checks for untrusted input coming from a GUI field, a CLI argument or a test.

Everything that reaches a command line goes through here first: ports and PIDs
must be plain ASCII digits, keywords must be free of the characters that mean
something to tasklist filters or a shell.
"""

import re

from .errors import ValidationError

MAX_PORT = 65535
MAX_PID = 2**32 - 1
MAX_KEYWORD_LENGTH = 255

_DIGITS = re.compile(r"[0-9]+")
_FORBIDDEN_KEYWORD_CHARS = re.compile(r'[<>:"|?*\'`$;&\\\x00-\x1f\x7f]')


def _as_text(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        raise ValidationError(f"Expected text, got {raw!r}", value=raw)
    return str(raw).strip()


def is_digits(text: str) -> bool:
    return bool(_DIGITS.fullmatch(text))


def validate_port(raw, required: bool = False) -> str | None:
    """
    Returns the canonical port string ("080" -> "80"), or None when the input
    is empty and a port is optional (meaning "all ports").
    """
    text = _as_text(raw)
    if not text:
        if required:
            raise ValidationError("A port number is required", value=raw, field="port")
        return None
    if not is_digits(text):
        raise ValidationError(f"Port number must be numeric: {text}", value=raw, field="port")
    number = int(text)
    if not 1 <= number <= MAX_PORT:
        raise ValidationError(f"Port number must be between 1 and {MAX_PORT}: {number}", value=raw, field="port")
    return str(number)


def validate_pid(raw) -> str:
    text = _as_text(raw)
    if not text:
        raise ValidationError("A PID is required", value=raw, field="pid")
    if not is_digits(text):
        raise ValidationError(f"Invalid PID format: {text}", value=raw, field="pid")
    number = int(text)
    if number > MAX_PID:
        raise ValidationError(f"PID out of range: {text}", value=raw, field="pid")
    return str(number)


def validate_pids(raws) -> list[str]:
    return [validate_pid(raw) for raw in raws]


def validate_keyword(raw) -> str | None:
    """
    Returns None for "list everything", a canonical PID string for numeric
    keywords, otherwise the stripped process-name keyword.
    """
    text = _as_text(raw)
    if not text:
        return None
    if is_digits(text):
        return validate_pid(text)
    if len(text) > MAX_KEYWORD_LENGTH:
        raise ValidationError("Process name is too long", value=raw, field="keyword")
    if text.startswith("-"):
        raise ValidationError(f"Process name must not start with '-': {text}", value=raw, field="keyword")
    if _FORBIDDEN_KEYWORD_CHARS.search(text):
        raise ValidationError(f"Invalid process name format: {text}", value=raw, field="keyword")
    return text
