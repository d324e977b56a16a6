"""Chunk partitioning and batched, bounded-concurrency chunk dispatch."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence

from movie_uploader.models import ChunkRange
from movie_uploader.upload.cancellation import CancellationToken
from movie_uploader.upload.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

ChunkOperation = Callable[[int], Awaitable[None]]
ChunkRetryCallback = Callable[[int, Exception, int, float], None]


def chunk_count(file_size: int, chunk_size: int) -> int:
    """Return ``ceil(file_size / chunk_size)``."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    return -(-file_size // chunk_size)


def chunk_range(index: int, file_size: int, chunk_size: int) -> ChunkRange:
    """Return the byte range of chunk ``index``.

    Raises:
        IndexError: If ``index`` is outside ``[0, chunk_count)``.
    """
    if not 0 <= index < chunk_count(file_size, chunk_size):
        raise IndexError(f"Chunk index {index} out of range")
    start = index * chunk_size
    end = min(start + chunk_size, file_size)
    return ChunkRange(index=index, start=start, end=end)


def chunk_ranges(file_size: int, chunk_size: int) -> list[ChunkRange]:
    """Return every chunk range; together they cover ``[0, file_size)``."""
    return [
        chunk_range(index, file_size, chunk_size)
        for index in range(chunk_count(file_size, chunk_size))
    ]


def iter_batches(
    chunk_numbers: Sequence[int], batch_size: int
) -> Iterator[list[int]]:
    """Yield ``chunk_numbers`` in order, in consecutive batches of ``batch_size``."""
    for cursor in range(0, len(chunk_numbers), batch_size):
        yield list(chunk_numbers[cursor : cursor + batch_size])


class ChunkDispatcher:
    """Upload every chunk index in batches of at most ``max_concurrent_chunks``.

    Each batch runs concurrently and acts as a barrier: the next batch starts
    only once every member has succeeded or exhausted its retries. If any
    member failed, the lowest-index failure is raised and no further batches
    are dispatched. Work already acknowledged is not rolled back.
    """

    def __init__(
        self, retry_policy: RetryPolicy, max_concurrent_chunks: int = 3
    ) -> None:
        """Initialize the dispatcher.

        Args:
            retry_policy: Policy applied to every chunk upload.
            max_concurrent_chunks: Batch size, i.e. maximum chunks in flight.
        """
        if max_concurrent_chunks < 1:
            raise ValueError(
                f"max_concurrent_chunks must be >= 1, got {max_concurrent_chunks}"
            )
        self.retry_policy = retry_policy
        self.max_concurrent_chunks = max_concurrent_chunks

    async def _run_chunk(
        self,
        chunk_number: int,
        upload_chunk: ChunkOperation,
        on_retry: ChunkRetryCallback | None,
        cancel_token: CancellationToken | None,
    ) -> None:
        def report_retry(attempt: int, error: Exception, delay: float) -> None:
            if on_retry is not None:
                on_retry(chunk_number, error, attempt, delay)

        await self.retry_policy.execute(
            lambda: upload_chunk(chunk_number),
            on_retry=report_retry,
            cancel_token=cancel_token,
        )

    async def dispatch(
        self,
        chunk_numbers: Iterable[int],
        upload_chunk: ChunkOperation,
        on_retry: ChunkRetryCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Upload the given chunk indices batch by batch, each index once.

        Args:
            chunk_numbers: Chunk indices to upload, e.g. ``range(total_chunks)``.
            upload_chunk: Coroutine function uploading one chunk by index.
            on_retry: Called as ``on_retry(chunk_number, error, attempt, delay)``
                before each retry of a chunk.
            cancel_token: Stops dispatch between batches and interrupts
                backoff sleeps.

        Raises:
            Exception: The first chunk failure of the aborted batch.
            UploadCancelled: If ``cancel_token`` was cancelled, even when a
                chunk of the same batch also failed.
        """
        chunk_numbers = list(dict.fromkeys(chunk_numbers))
        for batch in iter_batches(chunk_numbers, self.max_concurrent_chunks):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            logger.debug(f"Dispatching chunks {batch[0]}-{batch[-1]}")
            results = await asyncio.gather(
                *(
                    self._run_chunk(n, upload_chunk, on_retry, cancel_token)
                    for n in batch
                ),
                return_exceptions=True,
            )

            failures = [
                (chunk_number, result)
                for chunk_number, result in zip(batch, results)
                if isinstance(result, BaseException)
            ]
            if failures:
                for chunk_number, error in failures:
                    logger.error(f"Chunk {chunk_number} failed: {error}")
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                raise failures[0][1]

        logger.info(f"Uploaded {len(chunk_numbers)} chunks successfully")
