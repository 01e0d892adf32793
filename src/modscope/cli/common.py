"""Options and session plumbing shared by every modscope command."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from typer import BadParameter

from modscope.exceptions import ModscopeError
from modscope.logging import configure_logging
from modscope.scope import SearchScope
from modscope.settings import Settings, level_from_name


class LogFormat(str, Enum):
    """Supported log output formats."""

    text = "text"
    ndjson = "ndjson"


def resolve_log_level(log_level: Optional[str], default_level: int) -> int:
    """Map ``--log-level`` to a level constant, falling back to ``default_level``."""

    if not log_level:
        return default_level
    try:
        return level_from_name(log_level)
    except (TypeError, ValueError) as exc:
        raise BadParameter(f"Invalid log level: {log_level}", param_hint="log_level") from exc


def resolve_logging(
    *,
    log_format: Optional[LogFormat],
    log_level: Optional[str],
    debug: bool,
    quiet: bool,
    settings: Settings,
) -> tuple[str, int]:
    """Return the effective ``(format, level)``.

    ``--quiet`` beats ``--debug``, which beats ``--log-level``, which beats
    the settings.
    """

    fmt = log_format.value if log_format is not None else settings.log_format
    if quiet:
        return fmt, logging.WARNING
    if debug:
        return fmt, logging.DEBUG
    return fmt, resolve_log_level(log_level, settings.log_level)


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


def resolve_scope(paths: List[Path], no_sys_path: bool, settings: Settings) -> SearchScope:
    """Build the search scope: ``--path`` entries, then settings, then sys.path."""

    search_path = (*paths, *settings.search_path)
    effective = settings.model_copy(
        update={
            "search_path": tuple(search_path),
            "include_sys_path": settings.include_sys_path and not no_sys_path,
        }
    )
    scope = SearchScope.from_settings(effective)
    if not scope.entries:
        raise BadParameter("Search scope is empty; pass --path or drop --no-sys-path.", param_hint="path")
    return scope


@dataclass
class CommandContext:
    settings: Settings
    scope: SearchScope


@contextmanager
def command_session(
    *,
    paths: List[Path],
    no_sys_path: bool,
    log_format: Optional[LogFormat],
    log_level: Optional[str],
    debug: bool,
    quiet: bool,
) -> Iterator[CommandContext]:
    """Load settings, attach logging and turn domain errors into exit code 1."""

    settings = Settings.load()
    fmt, level = resolve_logging(
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
        settings=settings,
    )
    scope = resolve_scope(paths, no_sys_path, settings)
    with configure_logging(log_format=fmt, log_level=level):
        try:
            yield CommandContext(settings=settings, scope=scope)
        except ModscopeError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=1) from exc


# ---------------------------------------------------------------------------
# Common reusable Typer options
# ---------------------------------------------------------------------------

PATH_OPTION = typer.Option(
    [],
    "--path",
    "-p",
    help="Search-scope entry (directory or zip archive). Repeatable; searched before sys.path.",
)

NO_SYS_PATH_OPTION = typer.Option(
    False,
    "--no-sys-path",
    help="Search only --path entries (and settings.search_path), not sys.path.",
)

LOG_FORMAT_OPTION = typer.Option(
    None,
    "--log-format",
    case_sensitive=False,
    help="Log output format.",
)

LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    case_sensitive=False,
    help="Log level (debug, info, warning, error, critical).",
)

DEBUG_OPTION = typer.Option(
    False,
    "--debug",
    help="Enable debug logging.",
)

QUIET_OPTION = typer.Option(
    False,
    "--quiet",
    help="Reduce output to warnings and errors.",
)


__all__ = [
    "CommandContext",
    "LogFormat",
    "command_session",
    "resolve_log_level",
    "resolve_logging",
    "resolve_scope",
    "DEBUG_OPTION",
    "LOG_FORMAT_OPTION",
    "LOG_LEVEL_OPTION",
    "NO_SYS_PATH_OPTION",
    "PATH_OPTION",
    "QUIET_OPTION",
]
