"""Exceptions raised by the RetDec API client.

Every failure has its own class so callers can tell a retryable transport
problem from a job that definitively failed or from misuse of the API.
"""


class RetdecError(Exception):
    """Base exception for all RetDec client errors."""

    pass


class ConfigurationError(RetdecError):
    """Client settings are missing or invalid (e.g. no API key)."""

    pass


class InvalidArgumentError(RetdecError, ValueError):
    """Local input was rejected before anything was sent over the wire."""

    pass


class APIError(RetdecError):
    """Base exception for failures talking to the RetDec service."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class RemoteError(APIError):
    """The service rejected the call with a structured error body."""

    def __init__(self, code: int, message: str):
        super().__init__(f"API request failed: {code} - {message}")
        self.code = code
        self.message = message

    @property
    def is_transient(self) -> bool:
        """Server-side (5xx) failures may succeed when retried."""
        return self.code >= 500


class MalformedResponseError(APIError):
    """A successful response did not match the expected schema."""

    pass


class TransportError(APIError):
    """Network or I/O failure below the HTTP layer."""

    pass


class NotReadyError(RetdecError):
    """Artifacts were requested before the job succeeded."""

    pass


class UnknownArtifactError(RetdecError):
    """The service has no output with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown artifact: {name}")
        self.name = name


class JobFailedError(RetdecError):
    """The remote job finished with an error."""

    def __init__(self, message: str):
        super().__init__(f"Job failed: {message}")
        self.message = message


class JobTimedOutError(RetdecError):
    """The job did not finish within the wait policy's deadline."""

    def __init__(self, job_id: str, max_wait: float):
        super().__init__(f"Job {job_id} did not finish within {max_wait:.1f}s")
        self.job_id = job_id
        self.max_wait = max_wait
