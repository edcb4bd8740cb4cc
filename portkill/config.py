"""
Engine settings.

Defaults are overridden by a JSON file (``~/.portkill.json`` unless another
path is given or ``PORTKILL_CONFIG`` points elsewhere), which in turn is
overridden by ``PORTKILL_*`` environment variables. A missing or broken file
is not fatal, the defaults are used instead.
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ValidationError

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.portkill.json")
CONFIG_PATH_ENV = "PORTKILL_CONFIG"


@dataclass
class Settings:
    command_timeout_ms: int = 10_000
    kill_timeout_ms: int = 5_000
    max_kill_workers: int = 4
    # added on top of the built-in denylist, never replacing it
    protected_pids: tuple[int, ...] = ()
    protected_names: tuple[str, ...] = ()
    resolve_process_details: bool = True
    log_level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self):
        for name in ("command_timeout_ms", "kill_timeout_ms", "max_kill_workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{name} must be a positive integer, got {value!r}", value=value, field=name)
        self.protected_pids = _as_tuple(self.protected_pids, int, "protected_pids", "integers")
        self.protected_names = _as_tuple(self.protected_names, str, "protected_names", "names")
        if not isinstance(self.resolve_process_details, bool):
            raise ValidationError(
                f"resolve_process_details must be true or false, got {self.resolve_process_details!r}",
                value=self.resolve_process_details,
                field="resolve_process_details",
            )
        if self.log_file is not None and not isinstance(self.log_file, str):
            raise ValidationError(f"log_file must be a path, got {self.log_file!r}", value=self.log_file, field="log_file")
        self.log_level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValidationError(f"Unknown log level {self.log_level!r}", value=self.log_level, field="log_level")


def _as_tuple(values, convert, field: str, kind: str) -> tuple:
    # a lone string is iterable too, but never what was meant
    try:
        if isinstance(values, (str, bytes)):
            raise TypeError(field)
        return tuple(convert(v) for v in values)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a list of {kind}, got {values!r}", value=values, field=field) from None


_ENV_VARS = {
    "PORTKILL_TIMEOUT_MS": ("command_timeout_ms", int),
    "PORTKILL_KILL_TIMEOUT_MS": ("kill_timeout_ms", int),
    "PORTKILL_MAX_WORKERS": ("max_kill_workers", int),
    "PORTKILL_PROTECTED_PIDS": ("protected_pids", lambda v: tuple(p.strip() for p in v.split(",") if p.strip())),
    "PORTKILL_PROTECTED_NAMES": ("protected_names", lambda v: tuple(n.strip() for n in v.split(",") if n.strip())),
    "PORTKILL_RESOLVE_DETAILS": ("resolve_process_details", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "PORTKILL_LOG_LEVEL": ("log_level", str),
    "PORTKILL_LOG_FILE": ("log_file", str),
}


def _read_file(path: Path) -> dict:
    path = path.expanduser()
    if not path.exists():
        LOGGER.debug("Configuration file %s not found, using defaults", path)
        return {}
    try:
        with open(path, "r") as f:
            loaded = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        LOGGER.warning("Invalid configuration file %s, using defaults: %s", path, e)
        return {}
    if not isinstance(loaded, dict):
        LOGGER.warning("Configuration file %s does not hold a JSON object, using defaults", path)
        return {}
    LOGGER.debug("Configuration loaded from %s", path)
    return loaded


def _read_env(environ) -> dict:
    values = {}
    for var, (key, convert) in _ENV_VARS.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            values[key] = convert(raw)
        except ValueError:
            raise ValidationError(f"{var} has an invalid value: {raw!r}", value=raw, field=key) from None
    return values


def load_settings(path: str | os.PathLike | None = None, environ=None, **overrides) -> Settings:
    environ = os.environ if environ is None else environ
    if path is None:
        path = environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH

    known = {f.name for f in dataclasses.fields(Settings)}
    values = {}
    for key, value in _read_file(Path(path)).items():
        if key not in known:
            LOGGER.warning("Ignoring unknown configuration key %r", key)
            continue
        values[key] = value
    values.update(_read_env(environ))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
