"""Poll loop that waits for a remote job to finish.

The controller is a small state machine: it starts in ``POLLING`` and ends in
exactly one of ``SUCCEEDED``, ``FAILED``, ``TIMED_OUT`` or ``CANCELLED``. The
wait between polls is an ``asyncio`` wait on the cancel event, so setting the
event wakes the loop immediately instead of after the full interval.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

from .errors import APIError, RemoteError, TransportError
from .models import JobState, JobStatus, WaitPolicy

if TYPE_CHECKING:
    from .jobs import Job

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


def is_transient(error: APIError) -> bool:
    """Network failures and 5xx responses may succeed on a later poll."""
    if isinstance(error, TransportError):
        return True
    return isinstance(error, RemoteError) and error.is_transient


class PollController:
    """Drive ``job.refresh_status()`` until the job reaches a terminal state.

    Args:
        job: Job to poll
        policy: Interval, backoff, cap, deadline and transient retry bound
        cancel_event: When set, the loop stops at the next poll boundary
        on_status: Called with every successfully observed status
        clock: Monotonic clock in seconds
        sleep: Coroutine used to wait between polls (defaults to a wait on
            ``cancel_event``)
    """

    def __init__(
        self,
        job: "Job",
        policy: WaitPolicy | None = None,
        cancel_event: asyncio.Event | None = None,
        on_status: Callable[[JobStatus], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.job = job
        self.policy = policy or WaitPolicy()
        self.cancel_event = cancel_event or asyncio.Event()
        self.on_status = on_status
        self.state = PollState.POLLING
        self.polls = 0
        self._clock = clock
        self._sleep = sleep or self._wait_for_cancel

    async def _wait_for_cancel(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def _finish(self, state: PollState) -> PollState:
        self.state = state
        logger.info(f"Job {self.job.id}: stopped polling ({state.value}) after {self.polls} polls")
        return state

    async def run(self) -> PollState:
        """Poll until a terminal state is reached.

        Returns:
            The final state

        Raises:
            APIError: If polling failed with a non-transient error, or
                transient errors exceeded ``policy.max_transient_retries``.
                The controller stays in ``POLLING``; treat the job as failed.
        """
        if self.state is not PollState.POLLING:
            return self.state

        policy = self.policy
        start = self._clock()
        interval = policy.first_interval()
        failures = 0

        while True:
            if self.cancel_event.is_set():
                return self._finish(PollState.CANCELLED)
            # the last sleep may have ended past the deadline
            if policy.max_wait is not None and self._clock() - start >= policy.max_wait:
                return self._finish(PollState.TIMED_OUT)

            self.polls += 1
            try:
                status = await self.job.refresh_status()
            except APIError as e:
                if not is_transient(e):
                    raise
                failures += 1
                if failures > policy.max_transient_retries:
                    e.attempts = failures
                    logger.error(
                        f"Job {self.job.id}: giving up after {failures} failed polls: {e}"
                    )
                    raise
                logger.warning(
                    f"Job {self.job.id}: poll failed ({failures}/{policy.max_transient_retries}), "
                    f"retrying in {interval:.1f}s: {e}"
                )
            else:
                failures = 0
                if self.on_status is not None:
                    self.on_status(status)
                if status.state is JobState.SUCCEEDED:
                    return self._finish(PollState.SUCCEEDED)
                if status.state is JobState.FAILED:
                    return self._finish(PollState.FAILED)

            elapsed = self._clock() - start
            delay = interval
            if policy.max_wait is not None:
                remaining = policy.max_wait - elapsed
                if remaining <= 0:
                    return self._finish(PollState.TIMED_OUT)
                delay = min(delay, remaining)

            await self._sleep(delay)
            interval = policy.next_interval(interval)
