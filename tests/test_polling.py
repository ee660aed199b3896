"""Tests for the poll loop controller.

A FakeClock replaces the monotonic clock and the sleep between polls, so the
schedule can be checked exactly without waiting.
"""

import asyncio

import pytest

from retdec.client import (
    Decompilation,
    InvalidArgumentError,
    JobStatus,
    MalformedResponseError,
    PollController,
    PollState,
    RemoteError,
    TransportError,
    WaitPolicy,
)

from .conftest import FakeClient, FakeClock


class LateClock(FakeClock):
    """FakeClock whose sleeps overrun the requested delay, like real timers."""

    def __init__(self, lateness: float):
        super().__init__()
        self.lateness = lateness

    async def sleep(self, delay: float) -> None:
        await super().sleep(delay)
        self.now += self.lateness


def make_controller(statuses, clock, **policy):
    client = FakeClient(statuses)
    job = Decompilation(client, "ID")
    controller = PollController(
        job, WaitPolicy(**policy), clock=clock, sleep=clock.sleep
    )
    return client, controller


class TestTerminalStates:
    @pytest.mark.asyncio
    async def test_succeeds_after_four_polls_without_trailing_sleep(self, clock):
        client, controller = make_controller(
            [
                JobStatus.queued(),
                JobStatus.queued(),
                JobStatus.running(50),
                JobStatus.succeeded(),
            ],
            clock,
            poll_interval=1.0,
        )

        state = await controller.run()

        assert state is PollState.SUCCEEDED
        assert controller.state is PollState.SUCCEEDED
        assert client.status_calls == 4
        assert controller.polls == 4
        assert clock.sleeps == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_failed(self, clock):
        _, controller = make_controller(
            [JobStatus.running(10), JobStatus.failed("bad input")], clock
        )

        assert await controller.run() is PollState.FAILED
        assert controller.job.status.message == "bad input"

    @pytest.mark.asyncio
    async def test_run_after_finish_does_not_poll_again(self, clock):
        client, controller = make_controller([JobStatus.succeeded()], clock)

        await controller.run()
        await controller.run()

        assert client.status_calls == 1


class TestDeadline:
    @pytest.mark.asyncio
    async def test_times_out_after_at_most_three_polls(self, clock):
        client, controller = make_controller(
            [JobStatus.running(10)], clock, poll_interval=1.0, max_wait=2.0
        )

        state = await controller.run()

        assert state is PollState.TIMED_OUT
        assert client.status_calls <= 3
        assert clock.now <= 2.0

    @pytest.mark.asyncio
    async def test_sleep_never_overshoots_deadline(self, clock):
        client, controller = make_controller(
            [JobStatus.queued()], clock, poll_interval=2.0, max_wait=3.0
        )

        assert await controller.run() is PollState.TIMED_OUT

        assert clock.sleeps == [2.0, 1.0]
        assert clock.now == 3.0
        assert client.status_calls == 2
        assert controller.polls == 2

    @pytest.mark.asyncio
    async def test_late_wakeup_does_not_poll_past_deadline(self):
        """Each sleep overruns by 1ms; no poll may land after max_wait."""
        late = LateClock(0.001)
        poll_times = []
        client = FakeClient([JobStatus.running(10)])
        controller = PollController(
            Decompilation(client, "ID"),
            WaitPolicy(poll_interval=1.0, max_wait=2.5),
            on_status=lambda status: poll_times.append(late.now),
            clock=late,
            sleep=late.sleep,
        )

        assert await controller.run() is PollState.TIMED_OUT

        assert client.status_calls == 3
        assert all(t < 2.5 for t in poll_times)
        assert late.now > 2.5

    @pytest.mark.asyncio
    async def test_no_deadline_polls_until_terminal(self, clock):
        statuses = [JobStatus.running(i) for i in range(50)] + [JobStatus.succeeded()]
        client, controller = make_controller(statuses, clock, poll_interval=10.0)

        assert await controller.run() is PollState.SUCCEEDED
        assert client.status_calls == 51

    @pytest.mark.asyncio
    async def test_real_sleep_times_out(self):
        """Without a fake clock the loop still stops near the deadline."""
        client = FakeClient([JobStatus.running(10)])
        controller = PollController(
            Decompilation(client, "ID"), WaitPolicy(poll_interval=0.01, max_wait=0.05)
        )

        state = await asyncio.wait_for(controller.run(), timeout=2)

        assert state is PollState.TIMED_OUT


class TestBackoff:
    @pytest.mark.asyncio
    async def test_interval_grows_by_factor(self, clock):
        _, controller = make_controller(
            [JobStatus.queued()] * 4 + [JobStatus.succeeded()],
            clock,
            poll_interval=1.0,
            backoff_factor=2.0,
        )

        await controller.run()

        assert clock.sleeps == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_interval_is_capped(self, clock):
        _, controller = make_controller(
            [JobStatus.queued()] * 4 + [JobStatus.succeeded()],
            clock,
            poll_interval=1.0,
            backoff_factor=3.0,
            max_interval=5.0,
        )

        await controller.run()

        assert clock.sleeps == [1.0, 3.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_cap_applies_to_first_interval(self, clock):
        _, controller = make_controller(
            [JobStatus.queued()] * 2 + [JobStatus.succeeded()],
            clock,
            poll_interval=5.0,
            max_interval=2.0,
        )

        await controller.run()

        assert clock.sleeps == [2.0, 2.0]

    def test_first_interval(self):
        assert WaitPolicy(poll_interval=5.0, max_interval=2.0).first_interval() == 2.0
        assert WaitPolicy(poll_interval=5.0).first_interval() == 5.0

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            WaitPolicy(poll_interval=0)
        with pytest.raises(ValueError):
            WaitPolicy(backoff_factor=0.5)


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start_makes_no_request(self, clock):
        client, controller = make_controller([JobStatus.queued()], clock)
        controller.cancel_event.set()

        assert await controller.run() is PollState.CANCELLED
        assert client.status_calls == 0

    @pytest.mark.asyncio
    async def test_cancel_stops_at_next_poll_boundary(self, clock):
        client, controller = make_controller([JobStatus.queued()], clock)

        async def sleep_then_cancel(delay):
            await clock.sleep(delay)
            if len(clock.sleeps) == 2:
                controller.cancel_event.set()

        controller._sleep = sleep_then_cancel

        assert await controller.run() is PollState.CANCELLED
        assert client.status_calls == 2

    @pytest.mark.asyncio
    async def test_cancel_wakes_default_sleep_promptly(self):
        client = FakeClient([JobStatus.running(10)])
        cancel = asyncio.Event()
        controller = PollController(
            Decompilation(client, "ID"), WaitPolicy(poll_interval=60), cancel_event=cancel
        )

        task = asyncio.create_task(controller.run())
        await asyncio.sleep(0.05)
        cancel.set()
        state = await asyncio.wait_for(task, timeout=1)

        assert state is PollState.CANCELLED
        assert client.status_calls == 1


class TestTransientErrors:
    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, clock):
        client, controller = make_controller(
            [TransportError("reset"), JobStatus.running(10), JobStatus.succeeded()],
            clock,
            poll_interval=1.0,
            backoff_factor=2.0,
        )

        assert await controller.run() is PollState.SUCCEEDED
        assert client.status_calls == 3
        assert clock.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, clock):
        client, controller = make_controller(
            [RemoteError(503, "unavailable"), JobStatus.succeeded()], clock
        )

        assert await controller.run() is PollState.SUCCEEDED
        assert client.status_calls == 2

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self, clock):
        client, controller = make_controller(
            [TransportError("down")], clock, max_transient_retries=2
        )

        with pytest.raises(TransportError) as exc_info:
            await controller.run()

        assert client.status_calls == 3
        assert exc_info.value.attempts == 3
        assert controller.state is PollState.POLLING

    @pytest.mark.asyncio
    async def test_successful_poll_resets_retry_count(self, clock):
        down = TransportError("down")
        client, controller = make_controller(
            [down, down, JobStatus.queued(), down, down, JobStatus.succeeded()],
            clock,
            max_transient_retries=2,
        )

        assert await controller.run() is PollState.SUCCEEDED
        assert client.status_calls == 6

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, clock):
        client, controller = make_controller([RemoteError(403, "forbidden")], clock)

        with pytest.raises(RemoteError):
            await controller.run()
        assert client.status_calls == 1

    @pytest.mark.asyncio
    async def test_malformed_response_is_not_retried(self, clock):
        client, controller = make_controller(
            [MalformedResponseError("bad body"), JobStatus.succeeded()], clock
        )

        with pytest.raises(MalformedResponseError):
            await controller.run()
        assert client.status_calls == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_local_errors_propagate(self, clock):
        client, controller = make_controller([InvalidArgumentError("nope")], clock)

        with pytest.raises(InvalidArgumentError):
            await controller.run()
