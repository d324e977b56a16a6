"""Cancellation token and interruptible sleep used by retries and polling."""

import asyncio

from movie_uploader.exceptions import UploadCancelled


class CancellationToken:
    """One-shot signal shared between an upload session and its waiters."""

    def __init__(self) -> None:
        """Create an unset token."""
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether ``cancel`` has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Set the token, waking every pending ``cancellable_sleep``."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ``UploadCancelled`` if the token is set."""
        if self._event.is_set():
            raise UploadCancelled("Upload was cancelled")

    async def wait(self) -> None:
        """Block until the token is set."""
        await self._event.wait()


async def cancellable_sleep(
    seconds: float, token: CancellationToken | None = None
) -> None:
    """Sleep for ``seconds`` unless ``token`` is cancelled first.

    Raises:
        UploadCancelled: If the token is, or becomes, cancelled.
    """
    if token is None:
        await asyncio.sleep(seconds)
        return

    token.raise_if_cancelled()
    try:
        await asyncio.wait_for(token.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise UploadCancelled("Upload was cancelled")
