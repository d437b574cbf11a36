import sys
from pathlib import Path
from typing import Any, List

import httpx
import pytest
import pytest_asyncio

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zimcert_client.config.settings import ClientSettings  # noqa: E402
from zimcert_client.utils.http.client_manager import DEFAULT_HEADERS  # noqa: E402
from zimcert_client.utils.http.resilient_client import ResilientApiClient  # noqa: E402

TEST_BASE_URL = "https://certs.test/api"


def pytest_configure(config):
    # Register the asyncio marker so pytest doesn't warn when it's used.
    config.addinivalue_line(
        "markers", "asyncio: mark test to run in an asyncio event loop"
    )
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment.

    Clears every variable the client settings read and points the
    client at a test backend. Running from a temporary directory keeps
    a stray ``.env`` file out of the settings.
    """
    for var in (
        "ZIMCERT_API_URL",
        "VITE_API_URL",
        "ZIMCERT_ACCESS_TOKEN",
        "ZIMCERT_SESSION_FILE",
        "ZIMCERT_SESSION_ENCRYPTION_KEY",
        "ZIMCERT_ORG_ID",
        "MAX_RETRIES",
        "REQUEST_TIMEOUT",
        "RETRY_BASE_DELAY",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ZIMCERT_API_URL", TEST_BASE_URL)
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    yield


@pytest.fixture
def settings():
    """Settings with the default retry policy (3 retries, 1s base delay)."""
    return ClientSettings()


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


def build_response(status_code: int, body: Any = None, headers=None) -> httpx.Response:
    """Fresh response; bytes and str bodies are sent raw, anything else as JSON."""
    if body is None:
        return httpx.Response(status_code, headers=headers)
    if isinstance(body, (bytes, str)):
        return httpx.Response(status_code, content=body, headers=headers)
    return httpx.Response(status_code, json=body, headers=headers)


class ScriptedBackend:
    """MockTransport handler answering with a scripted sequence.

    Each outcome is a ``(status, body[, headers])`` tuple, a bare
    status code, an exception to raise, or a callable taking the
    request. The last outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return build_response(outcome)
        if isinstance(outcome, tuple):
            return build_response(*outcome)
        return outcome(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def backend_factory():
    return ScriptedBackend


@pytest_asyncio.fixture
async def make_client(settings, sleep_recorder):
    """Factory building a ResilientApiClient over an httpx.MockTransport."""
    created = []

    def _make(handler, *, client_settings=None, **kwargs):
        http_client = httpx.AsyncClient(
            base_url=(client_settings or settings).api_base_url,
            headers=DEFAULT_HEADERS,
            transport=httpx.MockTransport(handler),
        )
        kwargs.setdefault("sleep", sleep_recorder)
        client = ResilientApiClient(
            client_settings or settings,
            http_client=http_client,
            owns_client=True,
            **kwargs,
        )
        created.append(client)
        return client

    yield _make

    for client in created:
        await client.aclose()


# Rely on pytest-asyncio for async test handling; no custom hook needed.
