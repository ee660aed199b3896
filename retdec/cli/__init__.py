"""
CLI interface for the RetDec API client.

Commands: decompile, fileinfo, status and fetch.

Usage:
    python -m retdec.cli <command>
    retdec <command>
"""

from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv

# Load .env from the working directory (RETDEC_API_KEY, RETDEC_API_URL)
load_dotenv(Path.cwd() / ".env")

import typer

from .decompile import decompile
from .fileinfo import fileinfo
from .jobs import job_fetch, job_status

from ._common import setup_logging

# Create main app
app = typer.Typer(
    name="retdec",
    help="Decompile and analyze binaries with the RetDec web service",
)


@app.callback()
def main_callback(
    debug: Annotated[
        bool, typer.Option("--debug", help="Log HTTP requests and poll progress")
    ] = False,
):
    setup_logging(debug)


# Register standalone commands
app.command("decompile")(decompile)
app.command("fileinfo")(fileinfo)
app.command("status")(job_status)
app.command("fetch")(job_fetch)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
