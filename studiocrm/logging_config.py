"""
Studio CRM logging.

Every module logs through children of the 'studiocrm' logger, which writes to
logs/studiocrm.log (rotated at 5 MB, 3 backups). LOG_LEVEL picks the level;
anything unrecognised means INFO.

CLI commands are wrapped in @log_call. Click hands each command the session
StudioStore, so the CALL line shows the store as collection sizes and any
entity argument by its type and id:

    2026-10-19 14:32:01 | DEBUG    | CALL bookings_complete | args=(store(clients=2, bookings=1, galleries=2, packages=3, referrals=1), booking_id='1')
    2026-10-19 14:32:01 | INFO     | OK   bookings_complete | 0ms
    2026-10-19 14:32:01 | ERROR    | FAIL clients_edit | ValueError: Invalid client fields: {'colour'} | 0ms
"""

import functools
import logging
import logging.handlers
import os
import time
from dataclasses import is_dataclass
from pathlib import Path

from studiocrm.db.memory import StudioStore

_LOG_DIR = Path(__file__).parent.parent / "logs"
_LOG_FILE = _LOG_DIR / "studiocrm.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

# Longer argument reprs (notes, feature lists) are cut to keep lines readable
_MAX_ARG_CHARS = 60


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> logging.Logger:
    """
    Attach the rotating file handler to the studiocrm logger.
    The CLI group calls this on every invocation; only the first call adds a handler.
    """
    logger = logging.getLogger("studiocrm")
    if logger.handlers:
        return logger

    _LOG_DIR.mkdir(exist_ok=True)
    logger.setLevel(_resolve_level(os.environ.get("LOG_LEVEL", "INFO")))

    handler = logging.handlers.RotatingFileHandler(
        _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def describe_store(store: StudioStore) -> str:
    return (
        f"store(clients={len(store.clients)}, bookings={len(store.bookings)}, "
        f"galleries={len(store.galleries)}, packages={len(store.packages)}, "
        f"referrals={len(store.referrals)})"
    )


def _render(value) -> str:
    if isinstance(value, StudioStore):
        return describe_store(value)
    if is_dataclass(value) and not isinstance(value, type) and hasattr(value, "id"):
        return f"{type(value).__name__}(id={value.id!r})"
    text = repr(value)
    if len(text) > _MAX_ARG_CHARS:
        text = text[:_MAX_ARG_CHARS - 3] + "..."
    return text


def log_call(func):
    """
    Trace a CLI command: DEBUG CALL line on entry, INFO OK line with timing on
    success, ERROR FAIL line with the exception on failure (then re-raised).
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("studiocrm")
        name = func.__name__
        start = time.perf_counter()

        parts = [_render(a) for a in args] + [f"{k}={_render(v)}" for k, v in kwargs.items()]
        logger.debug(f"CALL {name} | args=({', '.join(parts) or '-'})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper
