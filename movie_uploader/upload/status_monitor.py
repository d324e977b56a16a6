"""Polling of a movie's processing status after upload completion."""

import logging
from collections.abc import Callable

from movie_uploader.api_client import MovieApiClient
from movie_uploader.exceptions import ProcessingFailed, StatusQueryError
from movie_uploader.models import MonitorResult, ProcessingStatus
from movie_uploader.upload.cancellation import CancellationToken, cancellable_sleep

logger = logging.getLogger(__name__)

StatusCallback = Callable[[ProcessingStatus, int], None]


class StatusMonitor:
    """Poll a movie until it is READY, FAILED, or the attempt budget runs out.

    A failed poll is not fatal: it uses up one attempt and is followed by a
    short ``error_delay`` wait instead of the regular ``interval``.
    """

    def __init__(
        self,
        api_client: MovieApiClient,
        max_attempts: int = 30,
        interval: float = 10.0,
        error_delay: float = 5.0,
    ) -> None:
        """Initialize the monitor.

        Args:
            api_client: Client for the movie service endpoints.
            max_attempts: Default number of polls.
            interval: Seconds between polls while processing is ongoing.
            error_delay: Seconds to wait after a failed poll.
        """
        self._api = api_client
        self.max_attempts = max_attempts
        self.interval = interval
        self.error_delay = error_delay

    async def monitor(
        self,
        movie_id: str,
        max_attempts: int | None = None,
        interval: float | None = None,
        on_status: StatusCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> MonitorResult:
        """Poll ``movie_id`` until its processing reaches a terminal status.

        Args:
            movie_id: Movie returned by upload completion.
            max_attempts: Overrides the default number of polls.
            interval: Overrides the default poll interval.
            on_status: Called as ``on_status(status, attempt)`` after every
                successful poll. Errors raised by it are logged and ignored.
            cancel_token: Interrupts the waits between polls.

        Returns:
            A ``MonitorResult`` holding the movie when READY, or
            ``timed_out=True`` when no terminal status was observed.

        Raises:
            ProcessingFailed: If the server reports FAILED.
            StatusQueryError: If the READY movie cannot be fetched.
            UploadCancelled: If ``cancel_token`` is cancelled while waiting.
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        wait = self.interval if interval is None else interval
        last_status: ProcessingStatus | None = None

        for attempt in range(1, attempts + 1):
            try:
                movie_status = await self._api.get_movie_status(movie_id)
            except StatusQueryError as e:
                logger.warning(
                    f"Status check {attempt}/{attempts} for movie {movie_id} "
                    f"failed: {e}"
                )
                if attempt < attempts:
                    await cancellable_sleep(self.error_delay, cancel_token)
                continue

            last_status = movie_status.status
            logger.info(
                f"Movie {movie_id} status: {last_status.value} "
                f"(attempt {attempt}/{attempts})"
            )
            if on_status is not None:
                try:
                    on_status(last_status, attempt)
                except Exception:
                    logger.exception("Status callback raised; ignoring")

            if last_status is ProcessingStatus.READY:
                movie = await self._api.get_movie(movie_id)
                return MonitorResult(
                    timed_out=False,
                    attempts=attempt,
                    movie=movie,
                    last_status=last_status,
                )
            if last_status is ProcessingStatus.FAILED:
                raise ProcessingFailed(movie_id)

            if attempt < attempts:
                await cancellable_sleep(wait, cancel_token)

        logger.warning(
            f"Movie {movie_id} not processed after {attempts} attempts; "
            "status unknown"
        )
        return MonitorResult(
            timed_out=True, attempts=attempts, last_status=last_status
        )
