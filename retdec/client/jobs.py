"""Handles for submitted RetDec jobs.

A handle caches the last status it saw and every artifact it downloaded, so
repeated calls are cheap and never re-fetch the same output.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, ClassVar

from .errors import JobFailedError, JobTimedOutError, NotReadyError
from .models import Artifact, JobState, JobStatus, Service, WaitPolicy
from .polling import PollController, PollState

if TYPE_CHECKING:
    from .api import RetdecAPIClient

logger = logging.getLogger(__name__)


class Job:
    """A remote job started through :class:`RetdecAPIClient`.

    Once a terminal status (succeeded or failed) has been observed it never
    changes again. Status and the artifact cache are guarded by a lock, so a
    handle may be shared between tasks. The lock is held during a download,
    so concurrent fetches of different artifacts run one after the other.

    Args:
        client: Client used for status and artifact requests
        job_id: Id assigned by the service
    """

    service: ClassVar[Service]

    def __init__(self, client: "RetdecAPIClient", job_id: str):
        self._client = client
        self._id = job_id
        self._status = JobStatus.queued()
        self._artifacts: dict[str, Artifact] = {}
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, state={self._status.state.value})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def status(self) -> JobStatus:
        """Last observed status (no request is made)."""
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    @property
    def has_succeeded(self) -> bool:
        return self._status.state is JobState.SUCCEEDED

    @property
    def has_failed(self) -> bool:
        return self._status.state is JobState.FAILED

    def _observe(self, status: JobStatus) -> JobStatus:
        if self._status.is_terminal:
            if status != self._status:
                logger.warning(
                    f"Ignoring status {status.state.value} for finished job {self._id}"
                )
            return self._status
        if status != self._status:
            logger.debug(f"Job {self._id}: {status.state.value} ({status.progress}%)")
        self._status = status
        return status

    async def refresh_status(self) -> JobStatus:
        """Query the service for the current status and cache it.

        Once the job is finished the cached status is returned without a
        request.
        """
        async with self._lock:
            if self._status.is_terminal:
                return self._status
            status = await self._client.fetch_status(self.service, self._id)
            return self._observe(status)

    async def artifact(self, name: str) -> Artifact:
        """Get a named output of the job, downloading it on first use.

        Raises:
            JobFailedError: If the job failed
            NotReadyError: If the job has not succeeded (yet)
            UnknownArtifactError: If the service has no such output
        """
        async with self._lock:
            if self._status.state is JobState.FAILED:
                raise JobFailedError(self._status.message or "")
            cached = self._artifacts.get(name)
            if cached is not None:
                return cached
            if self._status.state is not JobState.SUCCEEDED:
                raise NotReadyError(
                    f"Job {self._id} is {self._status.state.value}; "
                    f"artifact {name!r} is not available yet"
                )
            artifact = await self._client.fetch_artifact(self.service, self._id, name)
            self._artifacts[name] = artifact
            return artifact

    async def wait_until_finished(
        self,
        policy: WaitPolicy | None = None,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[JobStatus], None] | None = None,
    ) -> PollState:
        """Poll the job until it finishes.

        Args:
            policy: Poll interval, backoff and deadline
            cancel_event: Set it to stop waiting at the next poll boundary
            on_status: Called with every observed status

        Returns:
            PollState.SUCCEEDED, or PollState.CANCELLED if cancelled

        Raises:
            JobFailedError: If the job failed
            JobTimedOutError: If the deadline passed first
            APIError: If polling kept failing
        """
        policy = policy or WaitPolicy()
        controller = PollController(
            self, policy, cancel_event=cancel_event, on_status=on_status
        )
        state = await controller.run()
        if state is PollState.FAILED:
            raise JobFailedError(self._status.message or "")
        if state is PollState.TIMED_OUT:
            raise JobTimedOutError(self._id, policy.max_wait)
        return state


class Decompilation(Job):
    """A decompilation started via ``RetdecAPIClient.start_decompilation``."""

    service: ClassVar[Service] = Service.DECOMPILER

    async def get_output_hll_code(self) -> str:
        """Decompiled code in the target high-level language."""
        return (await self.artifact("hll")).text()

    async def get_output_dsm_code(self) -> str:
        """Disassembled code."""
        return (await self.artifact("dsm")).text()

    async def get_output_archive(self) -> bytes:
        """ZIP archive with all outputs (needs ``generate_archive``)."""
        return (await self.artifact("archive")).content


class Analysis(Job):
    """A file analysis started via ``RetdecAPIClient.start_analysis``."""

    service: ClassVar[Service] = Service.FILEINFO

    async def get_output(self) -> str:
        """Analysis report (plain text or JSON, per ``output_format``)."""
        return (await self.artifact("output")).text()
