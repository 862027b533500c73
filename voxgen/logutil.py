import os
import threading
import logging

from voxgen import config

logger = logging.getLogger("voxgen")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

# Scopes that can be switched off from config.
_SCOPE_SWITCHES = {
    "WORLDGEN": "LOG_WORLDGEN",
    "WFC": "LOG_WFC",
}


def log(scope, msg, level="INFO"):
    switch = _SCOPE_SWITCHES.get(scope)
    if switch is not None and not getattr(config, switch, True):
        return
    lvl = _LEVELS.get(level, logging.INFO)
    if not logger.isEnabledFor(lvl):
        return
    pid = os.getpid()
    thread = threading.current_thread().name
    text = f"[{level} pid{pid} thr{thread} {scope}] {msg}"
    use_color = getattr(config, "LOG_COLOR", True) and os.getenv("NO_COLOR") is None
    if use_color and thread != "MainThread":
        # Generation worker thread.
        text = f"\x1b[32m{text}\x1b[0m"
    logger.log(lvl, text)
