"""Job commands - inspect existing jobs and download their outputs."""

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape

from ._common import build_settings, console, parse_service, run_api_call, write_output


def job_status(
    service: Annotated[str, typer.Argument(help="decompiler or fileinfo")],
    job_id: Annotated[str, typer.Argument(help="Job id printed when the job was started")],
    output_json: Annotated[
        bool, typer.Option("--json", help="Output as JSON")
    ] = False,
    api_key: Annotated[
        Optional[str], typer.Option("--api-key", help="RetDec API key (default: $RETDEC_API_KEY)")
    ] = None,
    api_url: Annotated[
        Optional[str], typer.Option("--api-url", help="RetDec API URL (default: $RETDEC_API_URL)")
    ] = None,
):
    """Show the current status of a job."""
    from retdec.client import RetdecAPIClient

    svc = parse_service(service)
    settings = build_settings(api_key, api_url)

    async def get():
        async with RetdecAPIClient(settings) as client:
            return await client.get_job(svc, job_id).refresh_status()

    status = run_api_call(get)

    if output_json:
        print(json.dumps({"id": job_id, **status.model_dump(mode="json")}, indent=2))
        return

    color = {"succeeded": "green", "failed": "red"}.get(status.state.value, "yellow")
    console.print(f"Job {job_id}: [{color}]{status.state.value}[/{color}]")
    if status.state.value == "running":
        console.print(f"Progress: {status.progress}%")
    if status.message:
        console.print(f"Message: {escape(status.message)}")


def job_fetch(
    service: Annotated[str, typer.Argument(help="decompiler or fileinfo")],
    job_id: Annotated[str, typer.Argument(help="Job id printed when the job was started")],
    name: Annotated[str, typer.Argument(help="Output name (e.g. hll, dsm, archive, output)")],
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Write to this file instead of stdout")
    ] = None,
    api_key: Annotated[
        Optional[str], typer.Option("--api-key", help="RetDec API key (default: $RETDEC_API_KEY)")
    ] = None,
    api_url: Annotated[
        Optional[str], typer.Option("--api-url", help="RetDec API URL (default: $RETDEC_API_URL)")
    ] = None,
):
    """Download a named output of a finished job."""
    from retdec.client import RetdecAPIClient

    svc = parse_service(service)
    settings = build_settings(api_key, api_url)

    async def fetch():
        async with RetdecAPIClient(settings) as client:
            job = client.get_job(svc, job_id)
            await job.refresh_status()
            return await job.artifact(name)

    artifact = run_api_call(fetch)

    if output is not None:
        write_output(output, artifact.content)
    elif artifact.content_type.startswith(("text/", "application/json")):
        print(artifact.text(), end="")
    else:
        sys.stdout.buffer.write(artifact.content)
