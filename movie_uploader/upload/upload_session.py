"""Upload session lifecycle for chunked movie uploads.

An ``UploadSession`` represents at most one server-side upload at a time. It
can be reused for sequential uploads: ``initiate`` from a terminal state
resets every session-scoped field.

State transitions:
- UNINITIATED + initiate -> ACTIVE
- ACTIVE + complete -> COMPLETED
- ACTIVE + cancel -> CANCELLED
- initiate/complete rejected by the server -> FAILED
- COMPLETED | CANCELLED | FAILED + initiate -> ACTIVE
"""

import logging
from collections.abc import Iterable

from movie_uploader.api_client import MovieApiClient
from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.const import (
    EXTENSION_MIME_TYPES,
    FALLBACK_MIME_TYPE,
    GENERIC_MIME_TYPES,
    SUPPORTED_MIME_TYPES,
)
from movie_uploader.exceptions import (
    CancellationError,
    ChunkUploadError,
    CompletionError,
    IncompleteUpload,
    InvalidSessionState,
    NotInitiated,
    SessionInitiationError,
    UnsupportedMediaType,
)
from movie_uploader.models import (
    CompletionResult,
    UploadMetadata,
    UploadState,
    UploadStatus,
)
from movie_uploader.upload.cancellation import CancellationToken
from movie_uploader.upload.checksum import calculate_checksum
from movie_uploader.upload.chunk_dispatcher import (
    ChunkDispatcher,
    chunk_count,
    chunk_range,
)
from movie_uploader.upload.chunk_source import ChunkSource
from movie_uploader.upload.observer import UploadObserver, notify_safely
from movie_uploader.upload.retry_policy import RetryPolicy
from movie_uploader.utils.formatting import format_file_size

logger = logging.getLogger(__name__)


def detect_mime_type(filename: str) -> str:
    """Guess a video media type from the file extension."""
    extension = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    return EXTENSION_MIME_TYPES.get(extension, FALLBACK_MIME_TYPE)


def resolve_mime_type(filename: str, declared: str | None) -> str:
    """Return the declared media type, or a guess when it is uninformative."""
    declared = (declared or "").strip().lower()
    if declared in GENERIC_MIME_TYPES:
        return detect_mime_type(filename)
    return declared


def validate_mime_type(mime_type: str) -> None:
    """Raise ``UnsupportedMediaType`` unless ``mime_type`` is accepted."""
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedMediaType(mime_type, SUPPORTED_MIME_TYPES)


class UploadSession:
    """Client side of one chunked upload transaction."""

    def __init__(
        self,
        api_client: MovieApiClient,
        config: UploadConfig | None = None,
        observer: UploadObserver | None = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            api_client: Client for the movie service endpoints.
            config: Chunking, concurrency and retry settings.
            observer: Receives chunk and progress notifications.
        """
        self._api = api_client
        self._config = config or UploadConfig()
        self._observer = observer or UploadObserver()
        self._dispatcher = ChunkDispatcher(
            RetryPolicy(
                max_retries=self._config.chunk_retries,
                initial_delay=self._config.retry_delay,
                max_delay=self._config.retry_max_delay,
            ),
            max_concurrent_chunks=self._config.max_concurrent_chunks,
        )

        self._state = UploadState.UNINITIATED
        self._upload_id: str | None = None
        self._filename: str | None = None
        self._mime_type: str | None = None
        self._file_size = 0
        self._total_chunks = 0
        self._acknowledged_chunks: set[int] = set()
        self._cancel_token = CancellationToken()

    @property
    def state(self) -> UploadState:
        """Current lifecycle state."""
        return self._state

    @property
    def upload_id(self) -> str | None:
        """Server-issued upload id; None before initiate and after cancel."""
        return self._upload_id

    @property
    def chunk_size(self) -> int:
        return self._config.chunk_size

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def total_chunks(self) -> int:
        return self._total_chunks

    @property
    def mime_type(self) -> str | None:
        return self._mime_type

    @property
    def acknowledged_chunks(self) -> frozenset[int]:
        """Snapshot of the chunk indices acknowledged by the server."""
        return frozenset(self._acknowledged_chunks)

    @property
    def uploaded_chunks_count(self) -> int:
        return len(self._acknowledged_chunks)

    @property
    def progress(self) -> int:
        """Acknowledged share of chunks, as a rounded percentage."""
        return self._percentage(len(self._acknowledged_chunks))

    def _percentage(self, count: int) -> int:
        if self._total_chunks == 0:
            return 0
        # Integer half-up rounding of count / total * 100.
        return (200 * count + self._total_chunks) // (2 * self._total_chunks)

    def _require_active(self) -> str:
        if self._state is not UploadState.ACTIVE or self._upload_id is None:
            raise NotInitiated("Upload not initiated. Call initiate() first.")
        return self._upload_id

    async def initiate(self, source: ChunkSource, metadata: UploadMetadata) -> str:
        """Open a server-side upload session for ``source``.

        Args:
            source: The file to upload.
            metadata: Either new movie details or an existing movie target.

        Returns:
            The server-issued upload id.

        Raises:
            InvalidSessionState: If a session is already active.
            UnsupportedMediaType: If the file is not an accepted video type.
            SessionInitiationError: If the server does not open the session.
        """
        if self._state is UploadState.ACTIVE:
            raise InvalidSessionState(
                f"Upload {self._upload_id} is still active; complete or cancel it"
            )

        mime_type = resolve_mime_type(source.name, source.content_type)
        validate_mime_type(mime_type)

        self._upload_id = None
        self._filename = source.name
        self._mime_type = mime_type
        self._file_size = source.size
        self._total_chunks = chunk_count(self._file_size, self.chunk_size)
        self._acknowledged_chunks = set()
        self._cancel_token = CancellationToken()

        payload = {
            "filename": source.name,
            "mimeType": mime_type,
            "totalSize": self._file_size,
            "chunkSize": self.chunk_size,
            **metadata.to_payload(),
        }

        logger.info(f"Starting chunk upload session for {source.name}")
        logger.info(f"File size: {format_file_size(self._file_size)}")
        logger.info(f"Chunk size: {format_file_size(self.chunk_size)}")
        logger.info(f"Total chunks: {self._total_chunks}")

        try:
            upload_id = await self._api.initiate_upload(payload)
        except SessionInitiationError:
            self._state = UploadState.FAILED
            raise

        self._upload_id = upload_id
        self._state = UploadState.ACTIVE
        logger.info(f"Upload session: {upload_id}")
        notify_safely(self._observer.on_session_started, upload_id, self._total_chunks)
        return upload_id

    async def _upload_chunk(
        self, source: ChunkSource, chunk_number: int, token: CancellationToken
    ) -> None:
        token.raise_if_cancelled()
        upload_id = self._require_active()

        byte_range = chunk_range(chunk_number, self._file_size, self.chunk_size)
        try:
            data = await source.read_range(byte_range.start, byte_range.end)
        except OSError as e:
            raise ChunkUploadError(
                chunk_number,
                f"Failed to read chunk {chunk_number} of {source.name}: {e}",
            ) from e
        if len(data) != byte_range.size:
            raise ChunkUploadError(
                chunk_number,
                f"Chunk {chunk_number} of {source.name} is {len(data)} bytes, "
                f"expected {byte_range.size}; the file changed after initiate",
            )
        checksum = calculate_checksum(data)
        await self._api.upload_chunk(upload_id, chunk_number, data, checksum)

        if token is not self._cancel_token:
            # Session was re-initiated while this chunk was in flight.
            return
        self._record_acknowledgement(chunk_number)

    def _record_acknowledgement(self, chunk_number: int) -> None:
        # No await between mutation and percentage: progress never regresses.
        self._acknowledged_chunks.add(chunk_number)
        progress = self._percentage(len(self._acknowledged_chunks))

        notify_safely(self._observer.on_chunk_uploaded, chunk_number, progress)
        notify_safely(self._observer.on_progress, progress)

    def _on_chunk_retry(
        self, chunk_number: int, error: Exception, attempt: int, delay: float
    ) -> None:
        notify_safely(
            self._observer.on_chunk_retry, chunk_number, error, attempt, delay
        )

    async def upload_chunks(
        self, source: ChunkSource, chunk_numbers: Iterable[int]
    ) -> None:
        """Upload the given chunk indices with retries and bounded concurrency.

        Raises:
            NotInitiated: If no session is active.
            InvalidSessionState: If ``source`` does not match the initiated file
                or a chunk index is outside ``[0, total_chunks)``.
            ChunkUploadError: If a chunk still fails after its retries.
            UploadCancelled: If the session is cancelled meanwhile.
        """
        self._require_active()
        if source.size != self._file_size:
            raise InvalidSessionState(
                f"Source is {source.size} bytes but the session was initiated "
                f"for {self._file_size} bytes"
            )

        chunk_numbers = list(chunk_numbers)
        invalid = sorted({n for n in chunk_numbers if not 0 <= n < self._total_chunks})
        if invalid:
            raise InvalidSessionState(
                f"Chunk indices {invalid} outside 0..{self._total_chunks - 1}"
            )

        token = self._cancel_token
        await self._dispatcher.dispatch(
            chunk_numbers,
            lambda chunk_number: self._upload_chunk(source, chunk_number, token),
            on_retry=self._on_chunk_retry,
            cancel_token=token,
        )

    async def upload_all_chunks(self, source: ChunkSource) -> None:
        """Upload every chunk of ``source``.

        Does not finalize the upload; call ``complete`` afterwards. On failure
        the session stays ACTIVE and keeps the chunks acknowledged so far.
        """
        await self.upload_chunks(source, range(self._total_chunks))

    async def upload_missing_chunks(self, source: ChunkSource) -> UploadStatus:
        """Re-upload the chunks the server reports as missing.

        Returns:
            The server status after the re-upload.
        """
        status = await self.check_status()
        if status.missing_chunks:
            logger.info(f"Re-uploading missing chunks: {status.missing_chunks}")
            await self.upload_chunks(source, status.missing_chunks)
            status = await self.check_status()
        return status

    async def check_status(self) -> UploadStatus:
        """Return the server's status for this upload.

        Raises:
            NotInitiated: If no session is active.
            StatusQueryError: If the status cannot be read.
        """
        upload_id = self._require_active()
        return await self._api.get_upload_status(upload_id)

    async def complete(self) -> CompletionResult:
        """Finalize the upload once the server holds every chunk.

        Raises:
            NotInitiated: If no session is active.
            IncompleteUpload: If the server still reports missing chunks; no
                completion request is sent.
            CompletionError: If the server refuses to finalize.
        """
        upload_id = self._require_active()

        status = await self.check_status()
        if status.missing_chunks:
            raise IncompleteUpload(status.missing_chunks)

        try:
            result = await self._api.complete_upload(upload_id)
        except CompletionError:
            self._state = UploadState.FAILED
            raise

        self._state = UploadState.COMPLETED
        logger.info(f"Upload completed: movie {result.movie_id} ({result.status})")
        return result

    async def cancel(self) -> None:
        """Cancel the active upload; a no-op when no session is active.

        Pending retry backoffs are interrupted and no further chunks are
        dispatched. Requests already in flight are not aborted.

        Raises:
            CancellationError: If the server session could not be deleted. The
                session is locally cancelled regardless.
        """
        if self._state is not UploadState.ACTIVE or self._upload_id is None:
            return

        upload_id = self._upload_id
        self._cancel_token.cancel()
        self._upload_id = None
        self._state = UploadState.CANCELLED

        try:
            await self._api.cancel_upload(upload_id)
        except CancellationError as e:
            logger.warning(f"Failed to delete upload session {upload_id}: {e}")
            raise
        logger.info(f"Upload {upload_id} cancelled")
