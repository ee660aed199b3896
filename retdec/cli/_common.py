"""Common utilities and constants for CLI commands."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from retdec.client import (
    ConfigurationError,
    JobState,
    JobStatus,
    RetdecError,
    Service,
    Settings,
    WaitPolicy,
)

T = TypeVar("T")

# Console for rich output
console = Console()

LOG_FORMAT = "%(name)s: %(message)s"

SERVICES = {
    "decompiler": Service.DECOMPILER,
    "fileinfo": Service.FILEINFO,
}


def setup_logging(debug: bool = False) -> None:
    """Route library logging through rich.

    LOG_LEVEL sets the level; ``--debug`` forces DEBUG.
    """
    level = logging.DEBUG if debug else getattr(
        logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def parse_service(name: str) -> Service:
    """Map a CLI service name (decompiler/fileinfo) to a Service."""
    try:
        return SERVICES[name.lower()]
    except KeyError:
        raise typer.BadParameter(
            f"Unknown service {name!r}; expected one of: {', '.join(SERVICES)}"
        )


def build_settings(api_key: str | None, api_url: str | None) -> Settings:
    """Settings from the environment, overridden by CLI options."""
    return Settings.from_env(api_key=api_key, api_url=api_url)


def build_wait_policy(
    poll_interval: float, max_wait: float | None, backoff: float, max_interval: float | None
) -> WaitPolicy:
    try:
        return WaitPolicy(
            poll_interval=poll_interval,
            max_wait=max_wait,
            backoff_factor=backoff,
            max_interval=max_interval,
        )
    except ValueError as e:
        console.print(f"[red]Invalid wait options:[/red] {escape(str(e))}")
        raise typer.Exit(2)


def run_api_call(call: Callable[[], Awaitable[T]]) -> T:
    """Run an async client call, turning client errors into a clean exit."""
    try:
        return asyncio.run(call())
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(2)
    except RetdecError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def print_status(status: JobStatus) -> None:
    """on_status callback: one line per observed status."""
    if status.state is JobState.RUNNING:
        console.print(f"[dim]running... {status.progress}%[/dim]")
    else:
        console.print(f"[dim]{status.state.value}[/dim]")


def write_output(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    console.print(f"[green]Wrote[/green] {path} [dim]({len(content):,} bytes)[/dim]")
