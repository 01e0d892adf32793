"""CLI entrypoint for :mod:`modscope`.

Exposes:

- `locate`   - print the zip archive that backs a module.
- `resource` - copy a resource from the search scope to stdout or a file.
- `bundle`   - build a zip archive from a list of modules.
- `method`   - resolve a public static method.
- `constant` - resolve a public static constant.
- `version`  - print the package version.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import List, Optional

import typer

from modscope import __version__
from modscope.builder import ArchiveBuilder
from modscope.locate import ArchiveFinder
from modscope.resolver import ReflectiveResolver
from modscope.resources import ResourceLocator

from .common import (
    DEBUG_OPTION,
    LOG_FORMAT_OPTION,
    LOG_LEVEL_OPTION,
    NO_SYS_PATH_OPTION,
    PATH_OPTION,
    QUIET_OPTION,
    LogFormat,
    command_session,
)

app = typer.Typer(
    help=(
        "modscope - module/resource resolution and archive packaging.\n\n"
        "```bash\n"
        "modscope locate some_pkg.mod --path vendor.zip\n"
        "modscope bundle out/app.zip app.main app.util\n"
        "modscope constant math pi\n"
        "```\n"
    ),
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


@app.command("locate")
def locate_command(
    target: str = typer.Argument(..., help="Dotted module name (imported from the scope if needed)."),
    paths: List[Path] = PATH_OPTION,
    no_sys_path: bool = NO_SYS_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Print the archive that supplies TARGET."""

    with command_session(
        paths=paths,
        no_sys_path=no_sys_path,
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
    ) as ctx:
        module = ReflectiveResolver(ctx.scope).load_target(target)
        archive = ArchiveFinder(ctx.scope).locate_archive(module)
        if archive is None:
            typer.echo(f"no archive: {target}", err=True)
            raise typer.Exit(code=1)
        typer.echo(str(archive))


@app.command("resource")
def resource_command(
    name: str = typer.Argument(..., help="Resource path, e.g. pkg/data.json."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
    paths: List[Path] = PATH_OPTION,
    no_sys_path: bool = NO_SYS_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Copy resource NAME from the search scope."""

    with command_session(
        paths=paths,
        no_sys_path=no_sys_path,
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
    ) as ctx:
        handle = ResourceLocator(ctx.scope).get_resource(name)
        if handle is None:
            typer.echo(f"resource not found: {name}", err=True)
            raise typer.Exit(code=1)
        with handle:
            if output is None:
                sink = sys.stdout.buffer
                shutil.copyfileobj(handle, sink)
                sink.flush()
            else:
                output.parent.mkdir(parents=True, exist_ok=True)
                with output.open("wb") as fh:
                    shutil.copyfileobj(handle, fh)


@app.command("bundle")
def bundle_command(
    output: Path = typer.Argument(..., help="Archive to write (parent directories are created)."),
    modules: List[str] = typer.Argument(..., help="Dotted module names to include."),
    paths: List[Path] = PATH_OPTION,
    no_sys_path: bool = NO_SYS_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Bundle MODULES into the zip archive OUTPUT."""

    with command_session(
        paths=paths,
        no_sys_path=no_sys_path,
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
    ) as ctx:
        result = ArchiveBuilder(ctx.settings).build(output, *modules, scope=ctx.scope)
        for entry in result.entries:
            typer.echo(entry)


@app.command("method")
def method_command(
    target: str = typer.Argument(..., help="Module or class, e.g. math or pkg.mod:Class."),
    name: str = typer.Argument(..., help="Method name."),
    paths: List[Path] = PATH_OPTION,
    no_sys_path: bool = NO_SYS_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Resolve the public static method NAME on TARGET."""

    with command_session(
        paths=paths,
        no_sys_path=no_sys_path,
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
    ) as ctx:
        ref = ReflectiveResolver(ctx.scope).resolve_method(target, name)
        typer.echo(f"{ref.target}#{ref.name} -> {ref.handle!r}")


@app.command("constant")
def constant_command(
    target: str = typer.Argument(..., help="Module or class, e.g. math or pkg.mod:Class."),
    name: str = typer.Argument(..., help="Constant name."),
    paths: List[Path] = PATH_OPTION,
    no_sys_path: bool = NO_SYS_PATH_OPTION,
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
    debug: bool = DEBUG_OPTION,
    quiet: bool = QUIET_OPTION,
) -> None:
    """Print repr() of the public static constant NAME on TARGET."""

    with command_session(
        paths=paths,
        no_sys_path=no_sys_path,
        log_format=log_format,
        log_level=log_level,
        debug=debug,
        quiet=quiet,
    ) as ctx:
        ref = ReflectiveResolver(ctx.scope).resolve_constant(target, name)
        typer.echo(repr(ref.value))


@app.command("version")
def version_command() -> None:
    """Print the package version."""
    typer.echo(__version__)


def main() -> None:
    """Entrypoint used by console scripts and `python -m modscope`."""
    app()


__all__ = ["app", "main"]
