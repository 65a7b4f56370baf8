# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

import logging
import sys
from enum import IntEnum

from cudabind.config import get_config

_TRACE = 5
logging.addLevelName(_TRACE, "TRACE")


class level_enum(IntEnum):
    trace = 0
    debug = 1
    info = 2
    warn = 3
    error = 4
    critical = 5
    off = 6


_STDLIB_LEVELS = {
    level_enum.trace: _TRACE,
    level_enum.debug: logging.DEBUG,
    level_enum.info: logging.INFO,
    level_enum.warn: logging.WARNING,
    level_enum.error: logging.ERROR,
    level_enum.critical: logging.CRITICAL,
    level_enum.off: logging.CRITICAL + 10,
}

_flush_level = level_enum.warn


class _FlushLevelMixin:
    """Flush the stream only for records at or above the flush level."""

    def emit(self, record):
        try:
            msg = self.format(record)
            self.stream.write(msg + self.terminator)
            if record.levelno >= _STDLIB_LEVELS[_flush_level]:
                self.flush()
        except Exception:
            self.handleError(record)


class _StreamHandler(_FlushLevelMixin, logging.StreamHandler):
    pass


class _FileHandler(_FlushLevelMixin, logging.FileHandler):
    pass


_FORMAT = "== cudabind [%(relativeCreated)d] %(levelname)5s -- %(message)s"


def _make_handler(config):
    # A file handler stays open for the life of the process; logging closes
    # it from its own atexit hook
    if config.log_file:
        handler = _FileHandler(config.log_file, encoding="utf-8")
    else:
        handler = _StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT))
    return handler


def make_logger():
    logger = logging.getLogger("cudabind")
    # is logging configured?
    if not logger.handlers:
        config = get_config()
        logger.setLevel(_STDLIB_LEVELS[level_enum[config.log_level]])
        logger.addHandler(_make_handler(config))
        logger.propagate = False
    return logger


def _check_level(level):
    if not isinstance(level, level_enum):
        raise TypeError(
            f"level must be a cudabind.level_enum, got {type(level).__name__}"
        )


def should_log(level: level_enum) -> bool:
    """Return True if a record at ``level`` would be emitted."""
    _check_level(level)
    if level is level_enum.off:
        return False
    return make_logger().isEnabledFor(_STDLIB_LEVELS[level])


def set_logging_level(level: level_enum) -> None:
    """Set the minimum level of records emitted by the cudabind logger."""
    _check_level(level)
    make_logger().setLevel(_STDLIB_LEVELS[level])


def get_logging_level() -> level_enum:
    stdlib_level = make_logger().level
    for level, value in _STDLIB_LEVELS.items():
        if value == stdlib_level:
            return level
    return level_enum.warn


def flush_logger() -> None:
    """Flush every handler attached to the cudabind logger."""
    for handler in make_logger().handlers:
        handler.flush()


def set_flush_level(level: level_enum) -> None:
    """Flush the log after every record at or above ``level``."""
    global _flush_level
    _check_level(level)
    _flush_level = level


def get_flush_level() -> level_enum:
    return _flush_level


__all__ = [
    "flush_logger",
    "get_flush_level",
    "get_logging_level",
    "level_enum",
    "make_logger",
    "set_flush_level",
    "set_logging_level",
    "should_log",
]
