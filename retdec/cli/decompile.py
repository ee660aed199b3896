"""Decompile command - run a file through the RetDec decompiler."""

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


def decompile(
    input_file: Annotated[Path, typer.Argument(help="Binary (or C file in c mode) to decompile")],
    mode: Annotated[
        str, typer.Option("--mode", "-m", help="Decompilation mode: bin, raw or c")
    ] = "bin",
    architecture: Annotated[
        Optional[str], typer.Option("--arch", "-a", help="Target architecture (required in raw mode)")
    ] = None,
    language: Annotated[
        Optional[str], typer.Option("--language", "-l", help="Output language: c or py")
    ] = None,
    optimizations: Annotated[
        Optional[str],
        typer.Option("--optimizations", help="none, limited, normal or aggressive"),
    ] = None,
    functions: Annotated[
        Optional[list[str]], typer.Option("--function", "-f", help="Only decompile this function (repeatable)")
    ] = None,
    archive: Annotated[
        bool, typer.Option("--archive", help="Also download a ZIP archive of all outputs")
    ] = False,
    output_dir: Annotated[
        Optional[Path], typer.Option("--output-dir", "-o", help="Where to write outputs (default: next to input)")
    ] = None,
    no_wait: Annotated[
        bool, typer.Option("--no-wait", help="Print the job id and exit without waiting")
    ] = False,
    poll_interval: Annotated[
        float, typer.Option("--poll-interval", help="Seconds between status checks")
    ] = 1.0,
    max_wait: Annotated[
        Optional[float], typer.Option("--max-wait", help="Give up after this many seconds")
    ] = None,
    backoff: Annotated[
        float, typer.Option("--backoff", help="Multiply the poll interval by this after each check")
    ] = 1.0,
    max_interval: Annotated[
        Optional[float], typer.Option("--max-interval", help="Upper bound for the poll interval")
    ] = None,
    api_key: Annotated[
        Optional[str], typer.Option("--api-key", help="RetDec API key (default: $RETDEC_API_KEY)")
    ] = None,
    api_url: Annotated[
        Optional[str], typer.Option("--api-url", help="RetDec API URL (default: $RETDEC_API_URL)")
    ] = None,
):
    """Decompile a file and write the decompiled code and disassembly."""
    from retdec.client import (
        DecompilationArguments,
        InputFile,
        RetdecAPIClient,
    )

    try:
        args = DecompilationArguments(
            input_file=InputFile.from_path(input_file),
            mode=mode,
            architecture=architecture,
            target_language=language,
            optimizations=optimizations,
            generate_archive=archive or None,
            selected_functions=functions or None,
        )
    except ValueError as e:
        console.print(f"[red]Invalid arguments:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    policy = build_wait_policy(poll_interval, max_wait, backoff, max_interval)
    settings = build_settings(api_key, api_url)
    out_dir = output_dir or input_file.parent
    suffix = ".py" if language == "py" else ".c"

    async def run():
        async with RetdecAPIClient(settings) as client:
            decompilation = await client.start_decompilation(args)
            console.print(f"[green]Started decompilation:[/green] {decompilation.id}")
            if no_wait:
                return decompilation.id, {}

            await decompilation.wait_until_finished(policy, on_status=print_status)
            outputs = {
                out_dir / f"{input_file.stem}{suffix}": (await decompilation.get_output_hll_code()).encode(),
                out_dir / f"{input_file.stem}.dsm": (await decompilation.get_output_dsm_code()).encode(),
            }
            if archive:
                outputs[out_dir / f"{input_file.stem}.zip"] = await decompilation.get_output_archive()
            return decompilation.id, outputs

    job_id, outputs = run_api_call(run)

    if no_wait:
        console.print(f"[dim]Check progress with: retdec status decompiler {job_id}[/dim]")
        return

    for path, content in outputs.items():
        write_output(path, content)
