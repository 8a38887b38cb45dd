"""
Global test configuration and shared fixtures.
"""

from collections.abc import Callable
from contextlib import suppress
import io
import logging
import os

from PIL import Image
import pytest

from eznote.config import FrozenConfig, resolve_config
from eznote.core.types import Credential
from eznote.notifications import RecordingNotifier
from eznote.services.settings import InMemorySettingsStore, SettingsKeys
from tests.fakes import FakeCredentialProvider, FakeDocumentService, FakeObjectStorage


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv
    to permit .env loading for that specific test.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(ImportError):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_eznote_env(request, monkeypatch):
    """Ensure a clean EZNOTE_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("EZNOTE_"):
            monkeypatch.delenv(key, raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked HTTP",
        "allow_dotenv: Permit .env loading for this test",
        "allow_env_pollution: Keep EZNOTE_* variables from the outer environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def frozen_config() -> FrozenConfig:
    """Default configuration with no repaint delay so tests stay fast."""
    return resolve_config({"repaint_delay_seconds": 0}).to_frozen()


@pytest.fixture
def credential() -> Credential:
    return Credential("test-token-abc123")


@pytest.fixture
def settings() -> InMemorySettingsStore:
    return InMemorySettingsStore(
        {
            SettingsKeys.ACCESS_TOKEN: "test-token-abc123",
            SettingsKeys.SELECTED_DOC_ID: "doc-1",
            SettingsKeys.SELECTED_DOC_NAME: "Research notes",
        }
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def provider(credential) -> FakeCredentialProvider:
    return FakeCredentialProvider(credential)


@pytest.fixture
def docs() -> FakeDocumentService:
    return FakeDocumentService()


@pytest.fixture
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """Build PNG rasters of a given size, optionally painted in two halves."""

    def _make(width: int, height: int, color=(200, 30, 30)) -> bytes:
        img = Image.new("RGB", (width, height), color)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    return _make
