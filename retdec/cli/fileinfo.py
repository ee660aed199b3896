"""Fileinfo command - analyze a binary with the RetDec fileinfo service."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape

from ._common import (
    build_settings,
    build_wait_policy,
    console,
    print_status,
    run_api_call,
    write_output,
)


def fileinfo(
    input_file: Annotated[Path, typer.Argument(help="File to analyze")],
    output_format: Annotated[
        Optional[str], typer.Option("--format", help="Report format: plain or json")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Ask for a more detailed report")
    ] = False,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Write the report here instead of stdout")
    ] = None,
    poll_interval: Annotated[
        float, typer.Option("--poll-interval", help="Seconds between status checks")
    ] = 1.0,
    max_wait: Annotated[
        Optional[float], typer.Option("--max-wait", help="Give up after this many seconds")
    ] = None,
    api_key: Annotated[
        Optional[str], typer.Option("--api-key", help="RetDec API key (default: $RETDEC_API_KEY)")
    ] = None,
    api_url: Annotated[
        Optional[str], typer.Option("--api-url", help="RetDec API URL (default: $RETDEC_API_URL)")
    ] = None,
):
    """Analyze a file and print the fileinfo report."""
    from retdec.client import AnalysisArguments, InputFile, RetdecAPIClient

    try:
        args = AnalysisArguments(
            input_file=InputFile.from_path(input_file),
            output_format=output_format,
            verbose=verbose or None,
        )
    except ValueError as e:
        console.print(f"[red]Invalid arguments:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    policy = build_wait_policy(poll_interval, max_wait, 1.0, None)
    settings = build_settings(api_key, api_url)

    async def run():
        async with RetdecAPIClient(settings) as client:
            analysis = await client.start_analysis(args)
            console.print(f"[green]Started analysis:[/green] {analysis.id}")
            await analysis.wait_until_finished(policy, on_status=print_status)
            return await analysis.get_output()

    report = run_api_call(run)

    if output is not None:
        write_output(output, report.encode())
    else:
        print(report)
