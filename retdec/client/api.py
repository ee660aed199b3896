"""Async HTTP client for the RetDec REST API."""

import logging
from typing import Any

import httpx

from . import codec
from .errors import ConfigurationError, InvalidArgumentError, TransportError
from .jobs import Analysis, Decompilation, Job
from .models import (
    AnalysisArguments,
    Artifact,
    DecompilationArguments,
    JobStatus,
    Service,
    Settings,
    SubmissionRequest,
)

logger = logging.getLogger(__name__)

USER_AGENT = "retdec-python-client/0.1"

_JOB_CLASSES: dict[Service, type[Job]] = {
    Service.DECOMPILER: Decompilation,
    Service.FILEINFO: Analysis,
}


class RetdecAPIClient:
    """Async HTTP client for the RetDec REST API.

    Every request carries the API key (HTTP basic auth, key as user name) and
    is sent exactly once; retrying is left to the caller or to the poll loop
    of a job.

    Args:
        settings: API key, URL and timeout
        transport: Optional httpx transport (used by tests)

    Raises:
        ConfigurationError: If ``settings`` has no API key
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not settings.api_key:
            raise ConfigurationError(
                "No API key given; pass one in Settings or set RETDEC_API_KEY"
            )
        self.settings = settings
        self._timeout = httpx.Timeout(settings.timeout)
        self._client = httpx.AsyncClient(
            auth=httpx.BasicAuth(settings.api_key, ""),
            timeout=self._timeout,
            transport=transport,
            follow_redirects=True,
        )

    @property
    def api_url(self) -> str:
        return self.settings.api_url.rstrip("/")

    async def __aenter__(self) -> "RetdecAPIClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Send one request, wrapping network failures as TransportError."""
        request.headers["User-Agent"] = USER_AGENT
        request.extensions["timeout"] = self._timeout.as_dict()
        try:
            return await self._client.send(request)
        except httpx.RequestError as e:
            error_msg = f"{request.method} {request.url} failed: {type(e).__name__}: {e}"
            logger.warning(error_msg)
            raise TransportError(error_msg) from e

    # Jobs

    async def submit(self, request: SubmissionRequest) -> Job:
        """Start a new remote job.

        Args:
            request: Decompilation or analysis parameters

        Returns:
            Handle for the started job

        Raises:
            InvalidArgumentError: If the request fails local validation;
                nothing is sent in that case
            APIError: If the service rejects the submission
        """
        http_request = codec.encode_submission(self.api_url, request)
        logger.info(f"Starting {request.service.name.lower()} job for {request.input_file.name}")
        response = await self._send(http_request)
        job_id = codec.decode_submission(response)
        logger.info(f"Started job: {job_id}")
        return self.get_job(request.service, job_id)

    async def start_decompilation(self, args: DecompilationArguments) -> Decompilation:
        """Start a new decompilation with the given arguments."""
        if not isinstance(args, DecompilationArguments):
            raise InvalidArgumentError("expected DecompilationArguments")
        return await self.submit(args)

    async def start_analysis(self, args: AnalysisArguments) -> Analysis:
        """Start a new file analysis with the given arguments."""
        if not isinstance(args, AnalysisArguments):
            raise InvalidArgumentError("expected AnalysisArguments")
        return await self.submit(args)

    def get_job(self, service: Service, job_id: str) -> Job:
        """Handle for an already started job.

        No request is made; the handle starts out as queued until refreshed.
        """
        if not job_id:
            raise InvalidArgumentError("job id must not be empty")
        return _JOB_CLASSES[service](self, job_id)

    async def fetch_status(self, service: Service, job_id: str) -> JobStatus:
        """Query the current status of a job.

        Raises:
            APIError: If the query fails or the response is malformed
        """
        logger.debug(f"Fetching status: {service.value}/{job_id}")
        response = await self._send(codec.encode_status_request(self.api_url, service, job_id))
        return codec.decode_status(response)

    async def fetch_artifact(self, service: Service, job_id: str, name: str) -> Artifact:
        """Download a named output of a job.

        Raises:
            UnknownArtifactError: If the job has no such output
            APIError: If the download fails
        """
        logger.info(f"Fetching artifact {name!r} of job {job_id}")
        response = await self._send(
            codec.encode_artifact_request(self.api_url, service, job_id, name)
        )
        return codec.decode_artifact(response, name)
