from __future__ import annotations

import json
import logging
from typing import Any

_LOGGER = logging.getLogger("pender")


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a stream handler to the "pender" logger. Applications own this call."""
    if _LOGGER.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(level)


def log_json(level: int, message: str, **fields: Any) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    payload = {"message": message, **fields}
    _LOGGER.log(level, json.dumps(payload, ensure_ascii=True))
