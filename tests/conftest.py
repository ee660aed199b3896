"""Shared fixtures for the RetDec client tests.

This module provides:
- settings: client settings pointing at a fake API URL
- api_mock: respx router intercepting requests to that URL
- client: RetdecAPIClient bound to the mocked API
- FakeClient: scripted stand-in for job/poll tests that don't need HTTP
"""

import httpx
import pytest
import respx

from retdec.client import (
    Artifact,
    JobStatus,
    RetdecAPIClient,
    Service,
    Settings,
)

API_URL = "https://retdec.test/service/api"


@pytest.fixture
def settings():
    """Settings with a dummy key and a fixed API URL."""
    return Settings(api_key="test", api_url=API_URL)


@pytest.fixture
def api_mock():
    """Intercept all requests to API_URL.

    Unrouted requests raise, so a test sees exactly the calls it expects.
    """
    with respx.mock(base_url=API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def client(settings, api_mock):
    """Create an API client against the mocked API."""
    async with RetdecAPIClient(settings) as c:
        yield c


def status_response(status: str, **extra) -> httpx.Response:
    return httpx.Response(200, json={"status": status, **extra})


class FakeClient:
    """Scripted replacement for RetdecAPIClient.

    ``statuses`` are returned (or raised, if an exception) one per
    fetch_status call; the last one repeats. ``artifacts`` maps names to
    payloads; missing names raise UnknownArtifactError.
    """

    def __init__(self, statuses=None, artifacts=None):
        self.statuses = list(statuses or [JobStatus.queued()])
        self.artifacts = dict(artifacts or {})
        self.status_calls = 0
        self.artifact_calls: list[str] = []

    async def fetch_status(self, service: Service, job_id: str) -> JobStatus:
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        result = self.statuses[index]
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_artifact(self, service: Service, job_id: str, name: str) -> Artifact:
        from retdec.client import UnknownArtifactError

        self.artifact_calls.append(name)
        if name not in self.artifacts:
            raise UnknownArtifactError(name)
        return Artifact(name=name, content=self.artifacts[name], content_type="text/plain")


class FakeClock:
    """Manual clock; ``sleep`` advances it instead of waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def clock():
    return FakeClock()
