from __future__ import annotations

import logging
import os as _os
import sys
from typing import Optional

DEBUG_PY_TRACE_ENV = "TYEXPR_DEBUG_PY_TRACE"
LOG_LEVEL_ENV = "TYEXPR_LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str) -> bool:
    raw = _os.environ.get(name)
    return raw is not None and raw.strip().lower() in _TRUTHY


def debug_py_trace_enabled() -> bool:
    """Whether the REPL should print Python tracebacks for reported errors."""
    return env_flag(DEBUG_PY_TRACE_ENV)


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        _os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        _os.environ.pop(DEBUG_PY_TRACE_ENV, None)


def log_level_from_env(default: int = logging.WARNING) -> int:
    raw = _os.environ.get(LOG_LEVEL_ENV)
    if not raw:
        return default

    raw = raw.strip()
    if raw.isdigit():
        return int(raw)

    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Attach a stderr handler to the ``tyexpr`` logger.

    Only applications (the REPL) call this; importing the library never
    touches logging configuration.
    """
    logger = logging.getLogger("tyexpr")
    logger.setLevel(level if level is not None else log_level_from_env())

    if not any(getattr(h, "_tyexpr_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        handler._tyexpr_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
