"""Pydantic models for RetDec API requests and responses."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_API_URL = "https://retdec.com/service/api"


class Service(str, Enum):
    """Remote job collections, relative to the API URL."""

    DECOMPILER = "decompiler/decompilations"
    FILEINFO = "fileinfo/analyses"


@dataclass(frozen=True)
class InputFile:
    """A file payload to upload.

    Either wraps a path that is read lazily when the request is encoded, or
    in-memory content with a name.
    """

    name: str
    path: Optional[Path] = None
    content: Optional[bytes] = None

    @classmethod
    def from_path(cls, path: str | os.PathLike) -> "InputFile":
        path = Path(path)
        return cls(name=path.name, path=path)

    @classmethod
    def from_content(cls, content: bytes, name: str) -> "InputFile":
        return cls(name=name, content=content)

    def read(self) -> bytes:
        """Return the file contents.

        Raises:
            OSError: If the underlying path cannot be read
        """
        if self.content is not None:
            return self.content
        if self.path is None:
            raise OSError(f"No content or path for input file {self.name!r}")
        return self.path.read_bytes()


class Settings(BaseModel):
    """Connection settings for a RetDec client.

    Passed explicitly to each client so that several clients with different
    credentials can coexist in one process.
    """

    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=30.0, gt=0)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from RETDEC_API_KEY / RETDEC_API_URL, then overrides."""
        values: dict = {}
        if os.environ.get("RETDEC_API_KEY"):
            values["api_key"] = os.environ["RETDEC_API_KEY"]
        if os.environ.get("RETDEC_API_URL"):
            values["api_url"] = os.environ["RETDEC_API_URL"]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class SubmissionRequest(BaseModel):
    """Base for job submission parameters."""

    service: ClassVar[Service]

    input_file: InputFile | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class DecompilationArguments(SubmissionRequest):
    """Parameters for starting a decompilation."""

    service: ClassVar[Service] = Service.DECOMPILER

    mode: Literal["bin", "raw", "c"] = "bin"
    architecture: str | None = None
    target_language: Literal["c", "py"] | None = None
    optimizations: Literal["none", "limited", "normal", "aggressive"] | None = Field(
        default=None, serialization_alias="decomp_optimizations"
    )
    generate_archive: bool | None = None
    selected_functions: list[str] | None = Field(
        default=None, serialization_alias="sel_decomp_funcs"
    )


class AnalysisArguments(SubmissionRequest):
    """Parameters for starting a file analysis."""

    service: ClassVar[Service] = Service.FILEINFO

    output_format: Literal["plain", "json"] | None = None
    verbose: bool | None = None


class JobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobStatus(BaseModel):
    """Last known status of a remote job."""

    state: JobState
    progress: int = Field(default=0, ge=0, le=100)
    message: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def queued(cls) -> "JobStatus":
        return cls(state=JobState.QUEUED)

    @classmethod
    def running(cls, progress: int = 0) -> "JobStatus":
        return cls(state=JobState.RUNNING, progress=progress)

    @classmethod
    def succeeded(cls) -> "JobStatus":
        return cls(state=JobState.SUCCEEDED, progress=100)

    @classmethod
    def failed(cls, message: str) -> "JobStatus":
        return cls(state=JobState.FAILED, message=message)

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)


class Artifact(BaseModel):
    """A named output payload of a finished job."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the payload as text."""
        return self.content.decode(encoding, errors="replace")


class WaitPolicy(BaseModel):
    """How often to poll a job and for how long."""

    poll_interval: float = Field(default=1.0, gt=0)
    max_wait: float | None = Field(default=None, gt=0)
    backoff_factor: float = Field(default=1.0, ge=1.0)
    max_interval: float | None = Field(default=None, gt=0)
    max_transient_retries: int = Field(default=3, ge=0)

    model_config = {"frozen": True}

    def _capped(self, interval: float) -> float:
        if self.max_interval is not None:
            return min(interval, self.max_interval)
        return interval

    def first_interval(self) -> float:
        """Interval before the second poll; ``max_interval`` applies here too."""
        return self._capped(self.poll_interval)

    def next_interval(self, interval: float) -> float:
        """Interval to use after another non-terminal observation."""
        return self._capped(interval * self.backoff_factor)


# Wire schemas


class SubmissionResponse(BaseModel):
    """Response to a job submission."""

    id: str = Field(min_length=1)

    model_config = {"extra": "allow"}


class StatusResponse(BaseModel):
    """Response to a status query."""

    status: Literal["queued", "running", "success", "error"]
    progress: float | None = None
    message: str | None = None

    model_config = {"extra": "allow"}


class ErrorResponse(BaseModel):
    """Structured error body returned by the service."""

    code: int
    message: str

    model_config = {"extra": "allow"}
