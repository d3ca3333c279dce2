"""Project logging configuration utilities."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import IO, Final


_REGISTERED_LOGGERS: set[logging.Logger] = set()

LOG_LEVEL_ENV_VAR: Final[str] = "LAZYCOMMIT_LOG_LEVEL"
NO_COLOR_ENV_VAR: Final[str] = "NO_COLOR"

_DEFAULT_FORMAT: Final[str] = "%(message)s"
_RESET: Final[str] = "\033[0m"
_BOLD: Final[str] = "\033[1m"
_DIM: Final[str] = "\033[2m"


def _rgb_escape(red: int, green: int, blue: int) -> str:
    """Return the ANSI escape sequence for a 24-bit foreground color."""

    return f"\033[38;2;{red};{green};{blue}m"


@dataclass(frozen=True)
class _LevelStyle:
    """Styling information for a log level."""

    label: str
    color: str
    bold: bool = False
    dim: bool = False

    def render(self, message: str, logger_name: str, use_color: bool = True) -> str:
        """Prefix *message* with the level and logger name.

        ANSI styles are only added when *use_color* is set, so piped stderr
        stays free of escape sequences.
        """

        prefix = f"[{self.label}::{logger_name}]"
        if not use_color:
            return f"{prefix} {message}"

        modifiers: list[str] = []

        if self.bold:
            modifiers.append(_BOLD)
        if self.dim:
            modifiers.append(_DIM)

        modifiers.append(self.color)

        return f"{''.join(modifiers)}{prefix} {message}{_RESET}"


_LEVEL_STYLES: Final[dict[int, _LevelStyle]] = {
    logging.DEBUG: _LevelStyle("DEBUG", _rgb_escape(128, 128, 128), dim=True),
    logging.INFO: _LevelStyle("INFO", _rgb_escape(97, 175, 239)),
    logging.WARNING: _LevelStyle("WARNING", _rgb_escape(229, 192, 123), bold=True),
    logging.ERROR: _LevelStyle("ERROR", _rgb_escape(224, 108, 117), bold=True),
    logging.CRITICAL: _LevelStyle("CRITICAL", _rgb_escape(190, 80, 70), bold=True),
}


class _ColorFormatter(logging.Formatter):
    """Formatter that prefixes records with the level and logger name."""

    def __init__(self, fmt: str | None = None, *, use_color: bool = True) -> None:
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        style = _LEVEL_STYLES.get(record.levelno)
        if not style:
            return message

        return style.render(message, record.name, self.use_color)


def _colors_enabled(stream: IO[str]) -> bool:
    """Color only interactive terminals, and never when ``NO_COLOR`` is set."""

    if os.getenv(NO_COLOR_ENV_VAR):
        return False

    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _parse_level_from_env() -> int | None:
    """Return the log level defined in the environment, if any.

    Accepts level names (``debug``, ``WARNING``) as well as numeric levels.
    Unknown values are ignored.
    """

    level_name = os.getenv(LOG_LEVEL_ENV_VAR, "").strip()
    if not level_name:
        return None
    if level_name.isdigit():
        return int(level_name)

    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else None


def _effective_level() -> int:
    """Return the currently configured log level or NOTSET when undefined."""

    level = _parse_level_from_env()
    return level if level is not None else logging.NOTSET


def lazycommit_logger(name: str) -> logging.Logger:
    """Return a logger writing prefixed records to stderr.

    The handler is attached once per logger name; later calls only refresh the
    level from ``LAZYCOMMIT_LOG_LEVEL``.
    """

    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            _ColorFormatter(_DEFAULT_FORMAT, use_color=_colors_enabled(handler.stream))
        )
        handler.setLevel(logging.NOTSET)
        logger.addHandler(handler)

    env_level = _parse_level_from_env()
    if env_level is not None:
        logger.setLevel(env_level)
    _REGISTERED_LOGGERS.add(logger)

    return logger


def set_lazycommit_log_level(level_name: str) -> None:
    """Set the log level for every logger created by :func:`lazycommit_logger`."""

    os.environ[LOG_LEVEL_ENV_VAR] = level_name
    level = _effective_level()

    for logger in _REGISTERED_LOGGERS:
        logger.setLevel(level)
