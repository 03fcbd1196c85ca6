"""Logging bridge that forwards plugin records into EDMC's logger."""
from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

LOGGER_NAME = "EDMC.OpSec"
LOG_TAG = "EDMC-OpSec"

EDMC_DEFAULT_LOG_LEVEL = logging.INFO
# EDMC stores the level name chosen in its settings dialog.
_LEVEL_NAME_MAP = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
    "TRACE_ALL": logging.DEBUG,
}


def _load_edmc_config_module() -> Optional[Any]:
    try:
        return importlib.import_module("config")
    except Exception:
        return None


def _resolve_edmc_logger() -> Optional[logging.Logger]:
    logger_obj = getattr(_load_edmc_config_module(), "logger", None)
    return logger_obj if isinstance(logger_obj, logging.Logger) else None


def _configured_level_name() -> Optional[str]:
    config_obj = getattr(_load_edmc_config_module(), "config", None)
    getter = getattr(config_obj, "get_str", None) or getattr(config_obj, "get", None)
    if not callable(getter):
        return None
    try:
        raw = getter("loglevel")
    except Exception:
        return None
    return raw.strip().upper() if isinstance(raw, str) else None


def resolve_edmc_log_level() -> int:
    """Return EDMC's configured log level, or INFO when running outside EDMC."""
    level = _LEVEL_NAME_MAP.get(_configured_level_name() or "")
    if level is not None:
        return level
    edmc_logger = _resolve_edmc_logger()
    for candidate in (edmc_logger, logging.getLogger()):
        if candidate is not None and candidate.getEffectiveLevel() != logging.NOTSET:
            return candidate.getEffectiveLevel()
    return EDMC_DEFAULT_LOG_LEVEL


class EDMCLogHandler(logging.Handler):
    """Forwards plugin records to EDMC's logger at EDMC's configured level."""

    def emit(self, record: logging.LogRecord) -> None:
        target_level = resolve_edmc_log_level()
        plugin_logger = logging.getLogger(LOGGER_NAME)
        if plugin_logger.level != target_level:
            plugin_logger.setLevel(target_level)
        if record.levelno < target_level:
            return
        message = self.format(record)
        edmc_logger = _resolve_edmc_logger() or logging.getLogger()
        if edmc_logger.isEnabledFor(record.levelno):
            edmc_logger.log(record.levelno, message)


def configure_plugin_logger() -> logging.Logger:
    """Attach the EDMC bridge to the plugin logger exactly once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_edmc_log_level())
    if not any(getattr(handler, "_edmc_handler", False) for handler in logger.handlers):
        handler = EDMCLogHandler()
        handler._edmc_handler = True  # type: ignore[attr-defined]
        formatter = logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(component: str) -> logging.Logger:
    """Child logger under the plugin logger, e.g. ``EDMC.OpSec.Config``."""
    return logging.getLogger(f"{LOGGER_NAME}.{component}")
