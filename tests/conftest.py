"""Shared fixtures for provisioner tests."""

from __future__ import annotations

from typing import Optional

import pytest


class _RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep() -> _RecordingSleep:
    """Stand-in for asyncio.sleep that returns immediately and records delays."""

    return _RecordingSleep()


class _StubCredentials:
    """google-auth Credentials stand-in; ``refresh`` may be made to fail."""

    def __init__(self, *, valid: bool = True, refresh_error: Optional[Exception] = None) -> None:
        self.valid = valid
        self.token = "stub-token" if valid else None
        self.refresh_calls = 0
        self._refresh_error = refresh_error

    def refresh(self, request) -> None:
        self.refresh_calls += 1
        if self._refresh_error is not None:
            raise self._refresh_error
        self.valid = True
        self.token = "refreshed-token"


class _StubResponse:
    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body


class _StubRequest:
    def __init__(self, outcome) -> None:
        self._outcome = outcome

    async def __aenter__(self) -> _StubResponse:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        status, body = self._outcome
        return _StubResponse(status, body)

    async def __aexit__(self, *exc_info) -> bool:
        return False


class _StubSession:
    """aiohttp.ClientSession stand-in replaying (status, body) pairs or raising errors."""

    def __init__(self, *outcomes) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[dict] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs) -> _StubRequest:
        self.requests.append({"method": method, "url": url, **kwargs})
        return _StubRequest(self._outcomes.pop(0))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_credentials():
    return _StubCredentials


@pytest.fixture
def stub_session():
    return _StubSession
