"""
Shared test fixtures for the PVOutput client tests.

Cleans every ``PVOUTPUT_*`` environment variable before each test and
provides a recording ``httpx.MockTransport`` for client tests.

CHANGELOG:
- 2026-10-10: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

# All PVOutputSettings environment variable names, used for cleanup.
_ALL_PVOUTPUT_ENV_VARS = (
    "PVOUTPUT_API_KEY",
    "PVOUTPUT_SYSTEM_ID",
    "PVOUTPUT_BASE_URL",
    "PVOUTPUT_DONATING",
)


@pytest.fixture(autouse=True)
def _clean_pvoutput_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all PVOutput env vars and isolate from .env files before each test."""
    for var in _ALL_PVOUTPUT_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables."""
    env = {
        "PVOUTPUT_API_KEY": "test-api-key",
        "PVOUTPUT_SYSTEM_ID": "4242",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


class RecordingTransport:
    """Builds an ``httpx.MockTransport`` that records every request.

    The reply is a fixed status code and body.
    """

    def __init__(self, status_code: int = 200, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture()
def recorder() -> Callable[..., RecordingTransport]:
    """Factory for :class:`RecordingTransport` instances."""
    return RecordingTransport
