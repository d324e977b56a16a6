"""Shared fixtures for movie_uploader unit tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from movie_uploader.api_client import MovieApiClient
from movie_uploader.config_manager.config import _ENV_MAP
from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.models import CompletionResult, UploadStatus
from movie_uploader.upload.chunk_source import BytesChunkSource

TEST_UPLOAD_ID = "upload-1"
TEST_MOVIE_ID = "movie-1"


@pytest.fixture(autouse=True)
def clean_upload_env(monkeypatch, tmp_path):
    """Keep the developer's environment and config file out of every test."""
    for env_var in _ENV_MAP.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setenv("MOVIE_UPLOAD_CONFIG", str(tmp_path / "absent.yaml"))


@pytest.fixture
def fast_config() -> UploadConfig:
    """Config with 4-byte chunks and no backoff or polling delays."""
    return UploadConfig(
        base_url="http://movies.test",
        chunk_size=4,
        max_concurrent_chunks=3,
        chunk_retries=2,
        retry_delay=0,
        monitor_interval=0,
        monitor_error_delay=0,
    )


@pytest.fixture
def video_source() -> BytesChunkSource:
    """A 10-byte "video", i.e. three chunks of 4, 4 and 2 bytes."""
    return BytesChunkSource(b"0123456789", name="movie.mp4", content_type="video/mp4")


def _make_status(missing: list[int] | None = None, total: int = 3) -> UploadStatus:
    missing = missing or []
    return UploadStatus(
        upload_id=TEST_UPLOAD_ID,
        total_chunks=total,
        uploaded_chunks=total - len(missing),
        progress_percentage=round((total - len(missing)) / total * 100),
        missing_chunks=missing,
    )


@pytest.fixture
def mock_api() -> AsyncMock:
    """MovieApiClient double that accepts every request."""
    api = AsyncMock(spec=MovieApiClient)
    api.initiate_upload.return_value = TEST_UPLOAD_ID
    api.upload_chunk.return_value = None
    api.get_upload_status.return_value = _make_status()
    api.complete_upload.return_value = CompletionResult(
        movie_id=TEST_MOVIE_ID, status="PROCESSING"
    )
    api.cancel_upload.return_value = None
    return api


def _make_response(
    status: int = 200, json_body=None, text: str = ""
) -> tuple[MagicMock, MagicMock]:
    """Build an aiohttp-style response and the async context manager around it."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_body)
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=None)
    return response, context


@pytest.fixture
def make_status():
    """Factory for server upload status snapshots."""
    return _make_status


@pytest.fixture
def make_response():
    """Factory for mocked aiohttp responses."""
    return _make_response
