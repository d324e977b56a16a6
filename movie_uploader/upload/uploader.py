"""High level upload flow: initiate, send chunks, reconcile, complete, monitor."""

import logging

import aiohttp

from movie_uploader.api_client import MovieApiClient
from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.models import UploadMetadata, UploadResult
from movie_uploader.upload.chunk_source import ChunkSource
from movie_uploader.upload.observer import UploadObserver
from movie_uploader.upload.status_monitor import StatusCallback, StatusMonitor
from movie_uploader.upload.upload_session import UploadSession

logger = logging.getLogger(__name__)


class MovieUploader:
    """Drive a complete chunked upload against the movie service.

    Use as an async context manager. When no ``client_session`` is given the
    uploader creates one and closes it on exit.
    """

    def __init__(
        self,
        config: UploadConfig | None = None,
        observer: UploadObserver | None = None,
        client_session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            config: Upload configuration; defaults are used when omitted.
            observer: Receives chunk and progress notifications.
            client_session: Shared aiohttp session for HTTP requests.
        """
        self.config = config or UploadConfig()
        self._observer = observer
        self._client_session = client_session
        self._owns_session = False
        self._session: UploadSession | None = None
        self._monitor: StatusMonitor | None = None
        self._api: MovieApiClient | None = None

    async def __aenter__(self) -> "MovieUploader":
        if self._client_session is None:
            self._client_session = aiohttp.ClientSession(
                headers={"User-Agent": self.config.user_agent}
            )
            self._owns_session = True
        self._api = MovieApiClient(self._client_session, self.config)
        self._session = UploadSession(self._api, self.config, self._observer)
        self._monitor = StatusMonitor(
            self._api,
            max_attempts=self.config.monitor_max_attempts,
            interval=self.config.monitor_interval,
            error_delay=self.config.monitor_error_delay,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this uploader created it."""
        if self._owns_session and self._client_session is not None:
            await self._client_session.close()
            self._client_session = None
            self._owns_session = False

    def _require_open(self) -> None:
        if self._session is None:
            raise RuntimeError("MovieUploader must be used as an async context")

    @property
    def api_client(self) -> MovieApiClient:
        self._require_open()
        assert self._api is not None
        return self._api

    @property
    def session(self) -> UploadSession:
        """The reusable upload session."""
        self._require_open()
        assert self._session is not None
        return self._session

    @property
    def status_monitor(self) -> StatusMonitor:
        self._require_open()
        assert self._monitor is not None
        return self._monitor

    async def upload(
        self,
        source: ChunkSource,
        metadata: UploadMetadata,
        monitor: bool = False,
        retry_missing: bool = True,
        on_status: StatusCallback | None = None,
    ) -> UploadResult:
        """Upload ``source`` and finalize it as a movie.

        Args:
            source: The file to upload.
            metadata: New movie details or an existing movie target.
            monitor: Poll processing status after completion.
            retry_missing: Re-send chunks the server reports missing once
                before completing.
            on_status: Status callback forwarded to the monitor.

        Returns:
            The upload id, completion result and, if requested, the monitor
            result.

        Raises:
            MovieUploadError: Any typed failure of the underlying steps. The
                session is left as it was so the caller may inspect or cancel.
        """
        session = self.session
        upload_id = await session.initiate(source, metadata)
        await session.upload_all_chunks(source)

        if retry_missing:
            await session.upload_missing_chunks(source)

        completion = await session.complete()

        monitor_result = None
        if monitor:
            monitor_result = await self.status_monitor.monitor(
                completion.movie_id, on_status=on_status
            )

        return UploadResult(
            upload_id=upload_id, completion=completion, monitor=monitor_result
        )

    async def cancel(self) -> None:
        """Cancel the active upload, if any."""
        await self.session.cancel()
