from __future__ import annotations

import logging
from typing import Any, Dict

from . import constants

try:
    from systemd.journal import JournalHandler
except Exception:  # pragma: no cover
    JournalHandler = None

LOGGER_NAME = "fmount"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        if JournalHandler:
            handler = JournalHandler()
        else:
            handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def level_for_verbosity(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def _journal_handlers(logger: logging.Logger) -> bool:
    current = logger
    while current is not None:
        handlers = getattr(current, "handlers", [])
        try:
            iter(handlers)
        except TypeError:
            handlers = []
        if JournalHandler and any(isinstance(h, JournalHandler) for h in handlers):
            return True
        if not getattr(current, "propagate", False):
            break
        current = getattr(current, "parent", None)
    return False


def log_structured(
    logger: logging.Logger,
    message: str,
    extra_fields: Dict[str, Any],
    level: int = logging.INFO,
) -> None:
    # systemd.journal.JournalHandler accepts dict in extra; fallback to plain logging otherwise.
    if _journal_handlers(logger):
        logger.log(level, message, extra=extra_fields)
        return
    if extra_fields:
        fields = " ".join(f"{key}={value}" for key, value in extra_fields.items())
        logger.log(level, f"{message} {fields}")
        return
    logger.log(level, message)


def log_decision(logger: logging.Logger, predicate: str, device: str, result: Any, **inputs: Any) -> None:
    """Record a classifier decision together with the inputs it was based on."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    fields: Dict[str, Any] = {
        constants.LOG_KEY_EVENT: constants.EVENT_CLASSIFY,
        constants.LOG_KEY_PREDICATE: predicate,
        constants.LOG_KEY_DEVNODE: device,
        constants.LOG_KEY_RESULT: result,
    }
    fields.update({key.upper(): value for key, value in inputs.items()})
    log_structured(logger, f"{predicate}({device})={result}", fields, level=logging.DEBUG)
