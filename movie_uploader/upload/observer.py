"""Observers notified of chunk upload progress.

Observers are advisory: the session calls them through ``notify_safely`` so a
failing observer never affects the transfer.
"""

import logging
from collections.abc import Callable
from typing import Any

from tqdm import tqdm

logger = logging.getLogger(__name__)


class UploadObserver:
    """No-op base observer; override the hooks you need."""

    def on_session_started(self, upload_id: str, total_chunks: int) -> None:
        """Called once the server has opened the upload session."""

    def on_chunk_uploaded(self, chunk_number: int, progress: int) -> None:
        """Called after the server acknowledged ``chunk_number``."""

    def on_chunk_retry(
        self, chunk_number: int, error: Exception, attempt: int, delay: float
    ) -> None:
        """Called before a failed chunk is retried after ``delay`` seconds."""

    def on_progress(self, progress: int) -> None:
        """Called with the overall percentage after each acknowledged chunk."""


class LoggingObserver(UploadObserver):
    """Observer that writes progress to the module logger."""

    def on_session_started(self, upload_id: str, total_chunks: int) -> None:
        logger.info(f"Upload {upload_id}: {total_chunks} chunks to send")

    def on_chunk_uploaded(self, chunk_number: int, progress: int) -> None:
        logger.info(f"Chunk {chunk_number} uploaded ({progress}%)")

    def on_chunk_retry(
        self, chunk_number: int, error: Exception, attempt: int, delay: float
    ) -> None:
        logger.warning(
            f"Chunk {chunk_number} attempt {attempt} failed, "
            f"retrying in {delay:.2f}s: {error}"
        )


class TqdmProgressObserver(UploadObserver):
    """Observer rendering a tqdm bar counting acknowledged chunks."""

    def __init__(self, desc: str = "Uploading chunks", disable: bool = False):
        """Initialize the observer.

        Args:
            desc: Progress bar label.
            disable: Hide the bar, e.g. when output is not a terminal.
        """
        self._desc = desc
        self._disable = disable
        self._bar: tqdm | None = None

    def on_session_started(self, upload_id: str, total_chunks: int) -> None:
        self.close()
        self._bar = tqdm(total=total_chunks, desc=self._desc, disable=self._disable)

    def on_chunk_uploaded(self, chunk_number: int, progress: int) -> None:
        if self._bar is not None:
            self._bar.update(1)
            self._bar.set_postfix(progress=f"{progress}%")

    def on_chunk_retry(
        self, chunk_number: int, error: Exception, attempt: int, delay: float
    ) -> None:
        if self._bar is not None:
            self._bar.write(f"Chunk {chunk_number} failed ({error}), retrying")

    def close(self) -> None:
        """Close the progress bar if open."""
        if self._bar is not None:
            self._bar.close()
            self._bar = None


def notify_safely(hook: Callable[..., Any], *args: Any) -> None:
    """Invoke an observer hook, logging and discarding any error it raises."""
    try:
        hook(*args)
    except Exception:
        logger.exception(f"Upload observer {hook!r} raised; ignoring")
