"""Movie upload CLI entry point."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional, TypeVar

import aiohttp
import typer
from rich.console import Console
from rich.table import Table

from movie_uploader import __version__
from movie_uploader.api_client import MovieApiClient
from movie_uploader.config_manager.config import load_config
from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.exceptions import MovieUploadError
from movie_uploader.models import (
    ExistingMovieTarget,
    MonitorResult,
    MovieInfo,
    NewMovieMetadata,
    ProcessingStatus,
    UploadMetadata,
    UploadStatus,
)
from movie_uploader.upload.chunk_source import FileChunkSource
from movie_uploader.upload.observer import TqdmProgressObserver
from movie_uploader.upload.status_monitor import StatusMonitor
from movie_uploader.upload.uploader import MovieUploader

app = typer.Typer(add_completion=False, help="Chunked movie upload client.")
console = Console()

T = TypeVar("T")


def _version_callback(value: bool) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _resolve_config(**overrides: object) -> UploadConfig:
    try:
        return load_config(**overrides)
    except MovieUploadError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _build_metadata(
    title: Optional[str], description: Optional[str], movie_id: Optional[str]
) -> UploadMetadata:
    if bool(title) == bool(movie_id):
        raise typer.BadParameter("Pass exactly one of --title or --movie-id")
    if movie_id:
        return ExistingMovieTarget(movie_id=movie_id)
    assert title is not None
    if description and description.strip():
        return NewMovieMetadata(title=title.strip(), description=description.strip())
    return NewMovieMetadata(title=title.strip())


def _print_upload_status(status: UploadStatus) -> None:
    table = Table(title=f"Upload {status.upload_id}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Total chunks", str(status.total_chunks))
    table.add_row("Uploaded chunks", str(status.uploaded_chunks))
    table.add_row("Progress", f"{status.progress_percentage:g}%")
    missing = ", ".join(str(n) for n in status.missing_chunks) or "-"
    table.add_row("Missing chunks", missing)
    console.print(table)


def _print_movie(movie: MovieInfo) -> None:
    table = Table(title=f"Movie {movie.movie_id}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Title", movie.title or "-")
    table.add_row("Description", movie.description or "-")
    table.add_row("Status", movie.status.value)
    qualities = ", ".join(sorted(movie.qualities)) if movie.qualities else "-"
    table.add_row("Qualities", qualities)
    console.print(table)


def _print_monitor_result(movie_id: str, result: MonitorResult) -> None:
    if result.movie is not None:
        _print_movie(result.movie)
        return
    last = result.last_status.value if result.last_status else "unknown"
    console.print(
        f"Movie {movie_id} still not ready after {result.attempts} checks "
        f"(last status: {last}). Check again later."
    )


def _on_status(status: ProcessingStatus, attempt: int) -> None:
    console.print(f"Attempt {attempt}: processing status {status.value}")


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show the movie-upload version and exit.",
        callback=_version_callback,
        is_eager=True,
        is_flag=True,
    ),
) -> None:
    """Handle global CLI option for --version."""
    return None


@app.command("upload")
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    title: Optional[str] = typer.Option(None, help="Title of a new movie."),
    description: Optional[str] = typer.Option(None, help="Description of a new movie."),
    movie_id: Optional[str] = typer.Option(
        None, "--movie-id", help="Attach the upload to an existing movie."
    ),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Media type; guessed from the extension."
    ),
    monitor: bool = typer.Option(
        False, "--monitor", help="Wait for server-side processing to finish."
    ),
    chunk_size: Optional[str] = typer.Option(
        None, "--chunk-size", help="Chunk size, e.g. 5M or 524288."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", help="Chunks uploaded concurrently."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Service URL."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Upload a video file in chunks and finalize it as a movie."""
    _configure_logging(verbose)
    metadata = _build_metadata(title, description, movie_id)
    config = _resolve_config(
        base_url=base_url, chunk_size=chunk_size, max_concurrent_chunks=concurrency
    )
    source = FileChunkSource(path, content_type=content_type)
    observer = TqdmProgressObserver()

    async def run() -> None:
        async with MovieUploader(config=config, observer=observer) as uploader:
            try:
                result = await uploader.upload(
                    source, metadata, monitor=monitor, on_status=_on_status
                )
            except MovieUploadError:
                observer.close()
                if uploader.session.upload_id is not None:
                    console.print(
                        f"Upload {uploader.session.upload_id} left open; "
                        "cancel it with `movie-upload cancel`."
                    )
                raise
            observer.close()
            console.print(
                f"Upload {result.upload_id} completed: movie "
                f"{result.completion.movie_id} ({result.completion.status})"
            )
            if result.monitor is not None:
                _print_monitor_result(result.completion.movie_id, result.monitor)

    try:
        asyncio.run(run())
    except MovieUploadError as e:
        typer.echo(f"Upload failed: {e}", err=True)
        raise typer.Exit(code=1)


async def _with_client(
    config: UploadConfig, action: Callable[[MovieApiClient], Awaitable[T]]
) -> T:
    async with aiohttp.ClientSession(
        headers={"User-Agent": config.user_agent}
    ) as client_session:
        return await action(MovieApiClient(client_session, config))


@app.command("status")
def status(
    upload_id: str = typer.Argument(..., help="Upload session id."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Service URL."),
) -> None:
    """Show the server-side status of an upload session."""
    config = _resolve_config(base_url=base_url)
    try:
        result = asyncio.run(
            _with_client(config, lambda api: api.get_upload_status(upload_id))
        )
    except MovieUploadError as e:
        typer.echo(f"Status query failed: {e}", err=True)
        raise typer.Exit(code=1)
    _print_upload_status(result)


@app.command("cancel")
def cancel(
    upload_id: str = typer.Argument(..., help="Upload session id."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Service URL."),
) -> None:
    """Delete an upload session on the server."""
    config = _resolve_config(base_url=base_url)
    try:
        asyncio.run(_with_client(config, lambda api: api.cancel_upload(upload_id)))
    except MovieUploadError as e:
        typer.echo(f"Cancel failed: {e}", err=True)
        raise typer.Exit(code=1)
    console.print(f"Upload {upload_id} cancelled")


@app.command("monitor")
def monitor(
    movie_id: str = typer.Argument(..., help="Movie id returned on completion."),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", min=1),
    interval: Optional[float] = typer.Option(None, "--interval", min=0),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Service URL."),
) -> None:
    """Poll a movie's processing status until it is ready or failed."""
    config = _resolve_config(
        base_url=base_url, monitor_max_attempts=max_attempts, monitor_interval=interval
    )

    async def action(api: MovieApiClient) -> MonitorResult:
        status_monitor = StatusMonitor(
            api,
            max_attempts=config.monitor_max_attempts,
            interval=config.monitor_interval,
            error_delay=config.monitor_error_delay,
        )
        return await status_monitor.monitor(movie_id, on_status=_on_status)

    try:
        result = asyncio.run(_with_client(config, action))
    except MovieUploadError as e:
        typer.echo(f"Monitoring failed: {e}", err=True)
        raise typer.Exit(code=1)
    _print_monitor_result(movie_id, result)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
