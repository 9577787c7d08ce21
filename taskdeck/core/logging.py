from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, TextIO

_HANDLER_NAME = "taskdeck"


def get_logger(name: str = "taskdeck") -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(
    *,
    level: str = "info",
    format_name: str = "json",
    stream: TextIO | None = None,
    log_dir: Path | None = None,
    filename: str = "taskdeck.log",
) -> None:
    """Attach a single handler to the ``taskdeck`` logger.

    The Textual UI owns the terminal, so without a stream or log directory the
    records are dropped rather than printed.
    """
    level_value = getattr(logging, level.strip().upper(), logging.INFO)
    if format_name == "json":
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    handler: logging.Handler
    if stream is not None:
        handler = logging.StreamHandler(stream)
    elif log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / filename, encoding="utf-8")
    else:
        handler = logging.NullHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    logger = get_logger()
    logger.setLevel(level_value)
    for existing in list(logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)


def log_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, sort_keys=True, default=str))
