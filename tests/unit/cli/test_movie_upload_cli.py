from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from movie_uploader import __version__
from movie_uploader.cli.app import app
from movie_uploader.exceptions import ChunkUploadError, StatusQueryError
from movie_uploader.models import (
    CompletionResult,
    ExistingMovieTarget,
    MonitorResult,
    NewMovieMetadata,
    ProcessingStatus,
    UploadResult,
    UploadStatus,
)

runner = CliRunner()
ENV = {"TERM": "dumb", "NO_COLOR": "1", "RICH_DISABLE": "1"}


def invoke(args: list[str]):
    return runner.invoke(app, args, color=False, env=ENV)


@pytest.fixture
def movie_file(tmp_path: Path) -> Path:
    path = tmp_path / "trailer.mp4"
    path.write_bytes(b"\x00" * 32)
    return path


class FakeUploader:
    """Stand-in for MovieUploader that records how it was used."""

    instances: list["FakeUploader"] = []

    def __init__(self, config=None, observer=None, client_session=None):
        self.config = config
        self.observer = observer
        self.session = MagicMock(upload_id=None)
        self.upload = AsyncMock(
            return_value=UploadResult(
                upload_id="upload-1",
                completion=CompletionResult(movie_id="movie-1", status="PROCESSING"),
            )
        )
        FakeUploader.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


@pytest.fixture
def fake_uploader():
    FakeUploader.instances = []
    with patch("movie_uploader.cli.app.MovieUploader", FakeUploader):
        yield FakeUploader


def test_movie_upload_cli_version() -> None:
    result = invoke(["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_movie_upload_cli_help_includes_subcommands() -> None:
    result = invoke(["--help"])

    assert result.exit_code == 0
    for command in ("upload", "status", "cancel", "monitor"):
        assert command in result.output


def test_upload_new_movie(movie_file: Path, fake_uploader) -> None:
    result = invoke([
        "upload",
        str(movie_file),
        "--title",
        " Trailer ",
        "--chunk-size",
        "1M",
        "--concurrency",
        "5",
    ])

    assert result.exit_code == 0, result.output
    assert "Upload upload-1 completed: movie movie-1 (PROCESSING)" in result.output
    uploader = fake_uploader.instances[0]
    assert uploader.config.chunk_size == 1024 * 1024
    assert uploader.config.max_concurrent_chunks == 5
    source, metadata = uploader.upload.await_args.args
    assert source.name == "trailer.mp4"
    assert metadata == NewMovieMetadata(title="Trailer")
    assert uploader.upload.await_args.kwargs["monitor"] is False


def test_upload_existing_movie(movie_file: Path, fake_uploader) -> None:
    result = invoke(["upload", str(movie_file), "--movie-id", "movie-9"])

    assert result.exit_code == 0, result.output
    _, metadata = fake_uploader.instances[0].upload.await_args.args
    assert metadata == ExistingMovieTarget(movie_id="movie-9")


@pytest.mark.parametrize(
    "extra_args",
    [[], ["--title", "A", "--movie-id", "movie-9"]],
)
def test_upload_requires_exactly_one_target(
    movie_file: Path, fake_uploader, extra_args
) -> None:
    result = invoke(["upload", str(movie_file), *extra_args])

    assert result.exit_code == 2
    assert fake_uploader.instances == []


def test_upload_missing_file(tmp_path: Path, fake_uploader) -> None:
    result = invoke(["upload", str(tmp_path / "missing.mp4"), "--title", "A"])

    assert result.exit_code == 2
    assert fake_uploader.instances == []


def test_upload_failure_exits_non_zero(movie_file: Path, fake_uploader) -> None:
    class FailingUploader(FakeUploader):
        async def __aenter__(self):
            self.upload.side_effect = ChunkUploadError(1, "HTTP 500")
            self.session.upload_id = "upload-1"
            return self

    with patch("movie_uploader.cli.app.MovieUploader", FailingUploader):
        result = invoke(["upload", str(movie_file), "--title", "A"])

    assert result.exit_code == 1
    assert "Upload failed: HTTP 500" in result.output
    assert "Upload upload-1 left open" in result.output


def test_upload_invalid_config(movie_file: Path, fake_uploader) -> None:
    result = invoke(["upload", str(movie_file), "--title", "A", "--concurrency", "0"])

    assert result.exit_code == 1
    assert "Invalid upload configuration" in result.output


def test_status_command_prints_table() -> None:
    api = MagicMock()
    api.get_upload_status = AsyncMock(
        return_value=UploadStatus(
            upload_id="upload-1",
            total_chunks=3,
            uploaded_chunks=2,
            progress_percentage=66.67,
            missing_chunks=[2],
        )
    )

    with patch("movie_uploader.cli.app.MovieApiClient", return_value=api):
        result = invoke(["status", "upload-1", "--base-url", "http://movies.test"])

    assert result.exit_code == 0, result.output
    assert "Upload upload-1" in result.output
    assert "Missing chunks" in result.output
    api.get_upload_status.assert_awaited_once_with("upload-1")


def test_status_command_failure() -> None:
    api = MagicMock()
    api.get_upload_status = AsyncMock(side_effect=StatusQueryError("HTTP 404"))

    with patch("movie_uploader.cli.app.MovieApiClient", return_value=api):
        result = invoke(["status", "upload-1"])

    assert result.exit_code == 1
    assert "Status query failed: HTTP 404" in result.output


def test_cancel_command() -> None:
    api = MagicMock()
    api.cancel_upload = AsyncMock(return_value=None)

    with patch("movie_uploader.cli.app.MovieApiClient", return_value=api):
        result = invoke(["cancel", "upload-1"])

    assert result.exit_code == 0, result.output
    assert "Upload upload-1 cancelled" in result.output
    api.cancel_upload.assert_awaited_once_with("upload-1")


def test_monitor_command_reports_timeout() -> None:
    status_monitor = MagicMock()
    status_monitor.monitor = AsyncMock(
        return_value=MonitorResult(
            timed_out=True, attempts=2, last_status=ProcessingStatus.PROCESSING
        )
    )

    with patch("movie_uploader.cli.app.MovieApiClient"), patch(
        "movie_uploader.cli.app.StatusMonitor", return_value=status_monitor
    ) as monitor_cls:
        result = invoke(["monitor", "movie-1", "--max-attempts", "2"])

    assert result.exit_code == 0, result.output
    assert "still not ready after 2 checks" in result.output
    assert monitor_cls.call_args.kwargs["max_attempts"] == 2
