"""Example usage of the RetDec API client.

This demonstrates common workflows: decompiling a binary, analyzing a file,
waiting with a deadline and backoff, and cancelling a wait.

Usage:
    RETDEC_API_KEY=... python examples/client_usage.py path/to/file.exe
"""

import asyncio
import sys

from retdec.client import (
    AnalysisArguments,
    DecompilationArguments,
    InputFile,
    JobTimedOutError,
    PollState,
    RetdecAPIClient,
    Settings,
    WaitPolicy,
)


async def example_decompile(client: RetdecAPIClient, path: str):
    """Example: Decompile a binary and print the C code."""
    print("=" * 60)
    print("Example 1: Decompilation")
    print("=" * 60)

    decompilation = await client.start_decompilation(
        DecompilationArguments(input_file=InputFile.from_path(path))
    )
    print(f"Started decompilation: {decompilation.id}")

    await decompilation.wait_until_finished(
        on_status=lambda s: print(f"  {s.state.value} {s.progress}%")
    )
    print(await decompilation.get_output_hll_code())


async def example_fileinfo(client: RetdecAPIClient, path: str):
    """Example: Analyze a file, giving up after two minutes."""
    print("=" * 60)
    print("Example 2: File analysis with a deadline")
    print("=" * 60)

    analysis = await client.start_analysis(
        AnalysisArguments(input_file=InputFile.from_path(path), output_format="json")
    )
    policy = WaitPolicy(poll_interval=0.5, backoff_factor=1.5, max_interval=5, max_wait=120)
    try:
        await analysis.wait_until_finished(policy)
    except JobTimedOutError as e:
        print(f"Gave up: {e}")
        return
    print(await analysis.get_output())


async def example_cancel(client: RetdecAPIClient, path: str):
    """Example: Stop waiting from another task."""
    print("=" * 60)
    print("Example 3: Cancelling a wait")
    print("=" * 60)

    decompilation = await client.start_decompilation(
        DecompilationArguments(input_file=InputFile.from_path(path))
    )
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(3, cancel.set)

    state = await decompilation.wait_until_finished(cancel_event=cancel)
    if state is PollState.CANCELLED:
        print(f"Stopped waiting; job {decompilation.id} keeps running remotely")
    else:
        print(f"Finished before the cancel: {decompilation.status.state.value}")


async def main():
    """Run all examples."""
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    path = sys.argv[1]

    async with RetdecAPIClient(Settings.from_env()) as client:
        await example_decompile(client, path)
        await example_fileinfo(client, path)
        await example_cancel(client, path)


if __name__ == "__main__":
    asyncio.run(main())
