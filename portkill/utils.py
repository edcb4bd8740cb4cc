import logging
import os
import subprocess
import sys

import psutil

LOGGER = logging.getLogger(__name__)

FORMATTER = logging.Formatter("[%(asctime)s %(levelname)-5s] %(message)s", datefmt="%H:%M:%S")
HANDLER_NAME = "portkill"


def configure_logging(level: str | int = logging.INFO, log_file: str | None = None) -> None:
    """Log to stderr (stdout carries the JSON output) and optionally to a file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.set_name(HANDLER_NAME)
    stream_handler.setFormatter(FORMATTER)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_file = os.path.expanduser(log_file)
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.set_name(HANDLER_NAME)
        file_handler.setFormatter(FORMATTER)
        root_logger.addHandler(file_handler)


def popen_kwargs() -> dict:
    """Platform specific Popen arguments for short-lived helper commands."""
    if sys.platform.startswith("win"):
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}
    # preexec_fn is not safe with the kill worker threads, a new session is
    return {"start_new_session": True}


def kill_process_tree(pid: int) -> None:
    """Kill ``pid`` and every descendant it spawned."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return
    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as e:
            LOGGER.warning("Could not kill process %s: %s", proc.pid, e)
