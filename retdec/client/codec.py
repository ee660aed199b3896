"""Request encoding and response decoding for the RetDec API.

Pure transforms between the pydantic models and ``httpx`` requests/responses.
Nothing here sends requests or retries; reading the input file is the only
I/O performed.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import (
    InvalidArgumentError,
    MalformedResponseError,
    RemoteError,
    UnknownArtifactError,
)
from .models import (
    Artifact,
    DecompilationArguments,
    ErrorResponse,
    JobStatus,
    Service,
    StatusResponse,
    SubmissionRequest,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def job_url(api_url: str, service: Service, job_id: str) -> str:
    """URL of a single job resource."""
    return f"{api_url.rstrip('/')}/{service.value}/{job_id}"


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def validate_submission(request: SubmissionRequest) -> bytes:
    """Check required parameters and read the input file.

    Returns:
        Contents of the input file

    Raises:
        InvalidArgumentError: If a required parameter is missing or the input
            file cannot be read
    """
    if request.input_file is None:
        raise InvalidArgumentError("no input file given")
    if (
        isinstance(request, DecompilationArguments)
        and request.mode == "raw"
        and not request.architecture
    ):
        raise InvalidArgumentError("raw mode requires an architecture")
    try:
        return request.input_file.read()
    except OSError as e:
        raise InvalidArgumentError(
            f"cannot read input file {request.input_file.name!r}: {e}"
        ) from e


def encode_submission(api_url: str, request: SubmissionRequest) -> httpx.Request:
    """Build the multipart POST that starts a job.

    The input file is sent as the ``input`` part, every other set parameter as
    a form field.
    """
    content = validate_submission(request)
    fields = request.model_dump(exclude={"input_file"}, exclude_none=True, by_alias=True)
    data = {name: _form_value(value) for name, value in fields.items()}
    return httpx.Request(
        "POST",
        f"{api_url.rstrip('/')}/{request.service.value}",
        data=data,
        files={"input": (request.input_file.name, content)},
    )


def encode_status_request(api_url: str, service: Service, job_id: str) -> httpx.Request:
    return httpx.Request("GET", f"{job_url(api_url, service, job_id)}/status")


def encode_artifact_request(
    api_url: str, service: Service, job_id: str, name: str
) -> httpx.Request:
    return httpx.Request("GET", f"{job_url(api_url, service, job_id)}/outputs/{name}")


def decode_error(response: httpx.Response) -> RemoteError:
    """Turn a non-2xx response into a RemoteError.

    Bodies that are not ``{"code", "message"}`` fall back to the HTTP status
    code and raw text.
    """
    try:
        body = ErrorResponse.model_validate_json(response.content)
        return RemoteError(body.code, body.message)
    except ValidationError:
        message = response.text.strip() or response.reason_phrase
        return RemoteError(response.status_code, message)


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    error = decode_error(response)
    logger.error(str(error))
    raise error


def decode_json(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """Validate a JSON response against ``model``.

    Raises:
        RemoteError: If the response is not 2xx
        MalformedResponseError: If a 2xx body does not match the schema
    """
    _raise_for_status(response)
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise MalformedResponseError(
            f"{response.request.url} returned invalid JSON response"
        ) from e


def decode_submission(response: httpx.Response) -> str:
    """Extract the job id from a submission response."""
    return decode_json(response, SubmissionResponse).id


def decode_status(response: httpx.Response) -> JobStatus:
    """Map the wire status onto a JobStatus."""
    body = decode_json(response, StatusResponse)
    if body.status == "queued":
        return JobStatus.queued()
    if body.status == "running":
        progress = int(round(body.progress or 0))
        return JobStatus.running(min(max(progress, 0), 100))
    if body.status == "success":
        return JobStatus.succeeded()
    return JobStatus.failed(body.message or "unknown error")


def decode_artifact(response: httpx.Response, name: str) -> Artifact:
    """Wrap a raw output body as an Artifact.

    Raises:
        UnknownArtifactError: If the service has no output called ``name``
        RemoteError: For any other non-2xx response
    """
    if response.status_code == httpx.codes.NOT_FOUND:
        raise UnknownArtifactError(name)
    _raise_for_status(response)
    return Artifact(
        name=name,
        content=response.content,
        content_type=response.headers.get("content-type", "application/octet-stream"),
    )
