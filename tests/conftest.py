from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

import pytest

from opsec_plugin import logging_utils
from opsec_plugin.logging_utils import LOGGER_NAME


@pytest.fixture
def plugin_log(caplog, monkeypatch):
    """Capture records from the plugin logger even when the EDMC bridge disabled propagation."""
    monkeypatch.setattr(logging_utils, "resolve_edmc_log_level", lambda: logging.DEBUG)
    logger = logging.getLogger(LOGGER_NAME)
    previous_level = logger.level
    logger.addHandler(caplog.handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
        logger.setLevel(previous_level)


@pytest.fixture
def write_config(tmp_path) -> Callable[[Any], Path]:
    def _write(document: Any, *, raw: bool = False) -> Path:
        path = tmp_path / "opsec.json"
        path.write_text(document if raw else json.dumps(document), encoding="utf-8")
        return path

    return _write
