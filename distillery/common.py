"""Shared constants, version information, the command registry and logging setup."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable

NAME = "distillery"
SUMMARY = "v1.0.0"
BRANCH = "dev"
VERSION = "1.0.0"
COMMIT = "dirty"

UNKNOWN = "unknown"
LATEST = "latest"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_MAIN_GROUP = "_main_"

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

log = logging.getLogger(NAME)


@dataclass(frozen=True)
class AppVersionInfo:
    """Build information about the application."""

    name: str
    version: str
    branch: str
    summary: str
    commit: str


APP_VERSION = AppVersionInfo(
    name=NAME, version=VERSION, branch=BRANCH, summary=SUMMARY, commit=COMMIT
)


@dataclass(frozen=True)
class Flag:
    """A command-line option; a boolean default makes it a switch."""

    name: str
    usage: str = ""
    default: str | bool = False
    aliases: tuple[str, ...] = ()
    env_vars: tuple[str, ...] = ()
    category: str = ""


@dataclass
class Command:
    """A sub-command of the application."""

    name: str
    usage: str = ""
    description: str = ""
    flags: list[Flag] = field(default_factory=list)
    action: Callable[..., Any] | None = None
    before: Callable[..., Any] | None = None


_commands: dict[str, list[Command]] = {}


def register_command(command: Command) -> None:
    """Register a command under the main group."""
    log.debug("Registering %s command...", command.name)
    _commands.setdefault(_MAIN_GROUP, []).append(command)


def get_commands() -> list[Command]:
    """Return all commands registered under the main group."""
    return list(_commands.get(_MAIN_GROUP, []))


def global_flags() -> list[Flag]:
    """Return the logging options shared by every command."""
    return [
        Flag(
            name="log-level",
            usage="Log Level",
            default="info",
            aliases=("l",),
            env_vars=("LOG_LEVEL",),
            category="Logging Options",
        ),
        Flag(
            name="log-caller",
            usage="log the caller (aka line number and file)",
            category="Logging Options",
        ),
        Flag(
            name="log-disable-color",
            usage="disable log coloring",
            category="Logging Options",
        ),
        Flag(
            name="log-full-timestamp",
            usage="force log output to always show full timestamp",
            category="Logging Options",
        ),
    ]


class _TextFormatter(logging.Formatter):
    _COLORS = {
        TRACE: "\x1b[37m",
        logging.DEBUG: "\x1b[37m",
        logging.INFO: "\x1b[36m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31m",
    }
    _RESET = "\x1b[0m"

    def __init__(self, *, color: bool, full_timestamp: bool, caller: bool) -> None:
        super().__init__()
        self._color = color
        self._full_timestamp = full_timestamp
        self._caller = caller
        self._start = time.time()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname[:4].upper()
        if self._color:
            level = f"{self._COLORS.get(record.levelno, '')}{level}{self._RESET}"
        if self._full_timestamp:
            stamp = self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z")
        else:
            stamp = f"{int(record.created - self._start):04d}"
        line = f"{level}[{stamp}] {record.getMessage()}"
        if self._caller:
            line += f" {record.filename}:{record.lineno}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_handler: logging.Handler | None = None


def configure_logging(
    level: str, caller: bool, disable_color: bool, full_timestamp: bool
) -> logging.Logger:
    """Set up the application logger; an unrecognised level leaves the level as it was."""
    global _handler

    stream = sys.stderr
    color = not disable_color and hasattr(stream, "isatty") and stream.isatty()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        _TextFormatter(color=color, full_timestamp=full_timestamp, caller=caller)
    )
    if _handler is not None:
        log.removeHandler(_handler)
    log.addHandler(handler)
    _handler = handler

    if level in _LEVELS:
        log.setLevel(_LEVELS[level])
    return log