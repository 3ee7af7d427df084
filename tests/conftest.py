"""Shared pytest fixtures for WhiskGen tests."""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from whiskgen.core.config import WhiskGenConfig
from whiskgen.core.credentials import CredentialStore, Credentials
from whiskgen.core.queue import JobQueue
from whiskgen.ui.models import UIState


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> WhiskGenConfig:
    """Create a test configuration with temporary directories.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        WhiskGenConfig instance for testing
    """
    return WhiskGenConfig(
        _env_file=None,
        upload_url="https://whisk.test/upload",
        generate_url="https://whisk.test/generate",
        recipe_url="https://whisk.test/recipe",
        request_timeout=5.0,
        data_dir=str(temp_dir / "data"),
        downloads_dir=str(temp_dir / "downloads"),
    )


@pytest.fixture
def credentials() -> Credentials:
    """Fully configured credentials."""
    return Credentials(
        bearer_token="test-bearer",
        session_token="test-session",
        workflow_id="wf-123",
    )


@pytest.fixture
def credential_store(temp_dir: Path) -> CredentialStore:
    """Credential store writing into the temporary directory."""
    return CredentialStore(temp_dir / "data" / "credentials.json")


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_file(temp_dir: Path, png_bytes: bytes) -> Path:
    """A tiny PNG written to disk (what the Gradio image input hands over)."""
    path = temp_dir / "subject.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def encoded_png(png_bytes: bytes) -> str:
    """Bare base64 of the tiny PNG, as the remote service returns images."""
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def mock_client(encoded_png: str) -> MagicMock:
    """Remote client double whose calls all succeed."""
    client = MagicMock()
    client.upload_reference_image = AsyncMock(return_value="media-42")
    client.generate_text_only = AsyncMock(return_value=encoded_png)
    client.generate_with_reference = AsyncMock(return_value=encoded_png)
    return client


@pytest.fixture
def job_queue(mock_client: MagicMock) -> JobQueue:
    """Job queue driving the mock client."""
    return JobQueue(mock_client)


@pytest.fixture
def initialized_state(job_queue: JobQueue, credential_store: CredentialStore) -> UIState:
    """UIState with a queue and credential store already attached."""
    state = UIState()
    state.job_queue = job_queue
    state.credential_store = credential_store
    return state
