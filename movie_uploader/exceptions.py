"""Exception classes for the chunked upload workflow."""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "ApiRequestError",
    "CancellationError",
    "ChunkUploadError",
    "CompletionError",
    "ConfigError",
    "IncompleteUpload",
    "InvalidSessionState",
    "MovieUploadError",
    "NotInitiated",
    "ProcessingFailed",
    "SessionInitiationError",
    "StatusQueryError",
    "UnsupportedMediaType",
    "UploadCancelled",
]


class MovieUploadError(Exception):
    """Base error for the movie upload workflow."""


class ConfigError(MovieUploadError):
    """Raised when upload configuration cannot be loaded or is invalid."""


class UnsupportedMediaType(MovieUploadError):
    """Raised when a file's media type is not an accepted video container."""

    def __init__(self, mime_type: str, supported: Sequence[str]):
        """Initialize UnsupportedMediaType.

        Args:
            mime_type: The resolved media type of the rejected file.
            supported: The media types the service accepts.
        """
        super().__init__(
            f"Unsupported file type: {mime_type}. "
            f"Supported types: {', '.join(supported)}"
        )
        self.mime_type = mime_type
        self.supported = tuple(supported)


class NotInitiated(MovieUploadError):
    """Raised when an operation needs an active upload session."""


class InvalidSessionState(MovieUploadError):
    """Raised when a session operation is not valid in the current state."""


class UploadCancelled(MovieUploadError):
    """Raised when work is interrupted because the upload was cancelled."""


class ApiRequestError(MovieUploadError):
    """Raised when a request to the movie service fails."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        detail: str | None = None,
    ):
        """Initialize ApiRequestError.

        Args:
            message: Human readable description of the failed operation.
            status: HTTP status code, if the server answered.
            detail: Error detail extracted from the response body.
        """
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = status
        self.detail = detail


class SessionInitiationError(ApiRequestError):
    """Raised when the server does not open an upload session."""


class ChunkUploadError(ApiRequestError):
    """Raised when a single chunk is not accepted by the server."""

    def __init__(
        self,
        chunk_number: int,
        message: str,
        status: int | None = None,
        detail: str | None = None,
    ):
        """Initialize ChunkUploadError.

        Args:
            chunk_number: Index of the chunk that failed.
            message: Human readable description of the failure.
            status: HTTP status code, if the server answered.
            detail: Error detail extracted from the response body.
        """
        super().__init__(message, status=status, detail=detail)
        self.chunk_number = chunk_number


class StatusQueryError(ApiRequestError):
    """Raised when a status resource cannot be read."""


class CompletionError(ApiRequestError):
    """Raised when the server refuses to finalize an upload."""


class CancellationError(ApiRequestError):
    """Raised when the server session could not be deleted."""


class IncompleteUpload(MovieUploadError):
    """Raised when the server still reports missing chunks before completion."""

    def __init__(self, missing_chunks: Sequence[int]):
        """Initialize IncompleteUpload.

        Args:
            missing_chunks: Chunk indices the server has not acknowledged.
        """
        super().__init__(
            f"Missing chunks: {', '.join(str(n) for n in missing_chunks)}"
        )
        self.missing_chunks = list(missing_chunks)


class ProcessingFailed(MovieUploadError):
    """Raised when the server reports that movie processing failed."""

    def __init__(self, movie_id: str):
        """Initialize ProcessingFailed.

        Args:
            movie_id: Identifier of the movie whose processing failed.
        """
        super().__init__(f"Processing failed for movie {movie_id}")
        self.movie_id = movie_id
