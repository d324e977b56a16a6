"""Chunked upload engine."""

from movie_uploader.upload.cancellation import CancellationToken, cancellable_sleep
from movie_uploader.upload.checksum import calculate_checksum
from movie_uploader.upload.chunk_dispatcher import (
    ChunkDispatcher,
    chunk_count,
    chunk_range,
    chunk_ranges,
)
from movie_uploader.upload.chunk_source import (
    BytesChunkSource,
    ChunkSource,
    FileChunkSource,
)
from movie_uploader.upload.observer import (
    LoggingObserver,
    TqdmProgressObserver,
    UploadObserver,
)
from movie_uploader.upload.retry_policy import RetryPolicy
from movie_uploader.upload.status_monitor import StatusMonitor
from movie_uploader.upload.upload_session import UploadSession
from movie_uploader.upload.uploader import MovieUploader

__all__ = [
    "BytesChunkSource",
    "CancellationToken",
    "ChunkDispatcher",
    "ChunkSource",
    "FileChunkSource",
    "LoggingObserver",
    "MovieUploader",
    "RetryPolicy",
    "StatusMonitor",
    "TqdmProgressObserver",
    "UploadObserver",
    "UploadSession",
    "calculate_checksum",
    "cancellable_sleep",
    "chunk_count",
    "chunk_range",
    "chunk_ranges",
]
