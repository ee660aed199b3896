"""RetDec API Client.

This module provides an async Python client for the RetDec decompilation
and file-analysis web services: submitting jobs, waiting for them to finish,
and downloading their outputs.

Example:
    Decompile a binary:

    >>> from retdec.client import (
    ...     DecompilationArguments, InputFile, RetdecAPIClient, Settings,
    ... )
    >>>
    >>> settings = Settings(api_key="MY-API-KEY")
    >>> async with RetdecAPIClient(settings) as client:
    ...     decompilation = await client.start_decompilation(
    ...         DecompilationArguments(input_file=InputFile.from_path("file.exe"))
    ...     )
    ...     await decompilation.wait_until_finished()
    ...     print(await decompilation.get_output_hll_code())

    Analyze a file with a deadline:

    >>> async with RetdecAPIClient(Settings.from_env()) as client:
    ...     analysis = await client.start_analysis(
    ...         AnalysisArguments(input_file=InputFile.from_path("file.exe"))
    ...     )
    ...     await analysis.wait_until_finished(WaitPolicy(max_wait=120))
    ...     print(await analysis.get_output())
"""

from .api import RetdecAPIClient
from .errors import (
    APIError,
    ConfigurationError,
    InvalidArgumentError,
    JobFailedError,
    JobTimedOutError,
    MalformedResponseError,
    NotReadyError,
    RemoteError,
    RetdecError,
    TransportError,
    UnknownArtifactError,
)
from .jobs import Analysis, Decompilation, Job
from .models import (
    AnalysisArguments,
    Artifact,
    DecompilationArguments,
    InputFile,
    JobState,
    JobStatus,
    Service,
    Settings,
    SubmissionRequest,
    WaitPolicy,
)
from .polling import PollController, PollState

__all__ = [
    # API Client
    "RetdecAPIClient",
    # Jobs
    "Job",
    "Decompilation",
    "Analysis",
    "PollController",
    "PollState",
    # Models - Request
    "Settings",
    "InputFile",
    "SubmissionRequest",
    "DecompilationArguments",
    "AnalysisArguments",
    "WaitPolicy",
    # Models - Response
    "Service",
    "JobState",
    "JobStatus",
    "Artifact",
    # Errors
    "RetdecError",
    "ConfigurationError",
    "InvalidArgumentError",
    "APIError",
    "RemoteError",
    "MalformedResponseError",
    "TransportError",
    "NotReadyError",
    "UnknownArtifactError",
    "JobFailedError",
    "JobTimedOutError",
]
