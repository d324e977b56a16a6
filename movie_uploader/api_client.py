"""Async HTTP client for the movie service chunk-upload endpoints.

All endpoints live under ``{base_url}/api/movies`` and wrap their payload in a
``{"data": ...}`` envelope, which this client removes before validation.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from functools import partial
from typing import Any

import aiohttp
from pydantic import ValidationError

from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.const import API_PREFIX
from movie_uploader.exceptions import (
    ApiRequestError,
    CancellationError,
    ChunkUploadError,
    CompletionError,
    SessionInitiationError,
    StatusQueryError,
)
from movie_uploader.models import (
    CompletionResult,
    MovieInfo,
    MovieStatus,
    UploadStatus,
)
from movie_uploader.utils.http_errors import extract_error_detail

logger = logging.getLogger(__name__)

ErrorFactory = Callable[..., ApiRequestError]


def _unwrap(payload: Any) -> Any:
    """Strip the service's ``{"data": ...}`` envelope if present."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class MovieApiClient:
    """Thin wrapper over the ``/api/movies`` endpoint family.

    Every failure, whether a transport error or an error status, is raised as
    the ``ApiRequestError`` subclass matching the operation.
    """

    def __init__(
        self, client_session: aiohttp.ClientSession, config: UploadConfig
    ) -> None:
        """Initialize the API client.

        Args:
            client_session: aiohttp ClientSession for HTTP requests.
            config: Upload configuration providing base URL and timeouts.
        """
        self._session = client_session
        self._config = config
        self._api_url = f"{config.base_url}{API_PREFIX}"
        self._headers = {"User-Agent": config.user_agent}

    @property
    def api_url(self) -> str:
        """Absolute URL of the movie API root."""
        return self._api_url

    async def _request(
        self,
        method: str,
        path: str,
        error: ErrorFactory,
        action: str,
        expect_body: bool = True,
        **kwargs: Any,
    ) -> Any:
        """Send a request and return the unwrapped JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the API root.
            error: Factory for the exception raised on failure.
            action: Short description used in error messages.
            expect_body: Whether to parse a JSON body from the response.
            **kwargs: Extra arguments for ``ClientSession.request``.

        Returns:
            The unwrapped JSON payload, or None when no body is expected.
        """
        url = f"{self._api_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        logger.debug("%s %s", method, url)
        try:
            async with self._session.request(
                method, url, headers=self._headers, timeout=timeout, **kwargs
            ) as response:
                if response.status >= 400:
                    detail = await extract_error_detail(response)
                    raise error(
                        f"Failed to {action} (HTTP {response.status})",
                        status=response.status,
                        detail=detail,
                    )
                if not expect_body:
                    return None
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise error(
                        f"Failed to {action}: invalid JSON response",
                        status=response.status,
                    ) from e
                return _unwrap(payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error(f"Failed to {action}: {str(e) or type(e).__name__}") from e

    async def initiate_upload(self, payload: dict[str, Any]) -> str:
        """Open an upload session and return the server-issued upload id."""
        data = await self._request(
            "POST",
            "/chunk-upload/initiate",
            SessionInitiationError,
            "initiate upload",
            json=payload,
        )
        upload_id = data.get("uploadId") if isinstance(data, dict) else None
        if not upload_id:
            raise SessionInitiationError(
                "Failed to initiate upload: response carried no uploadId"
            )
        return str(upload_id)

    async def upload_chunk(
        self, upload_id: str, chunk_number: int, data: bytes, checksum: str
    ) -> None:
        """Upload one chunk as a multipart body with its checksum."""
        form = aiohttp.FormData()
        form.add_field(
            "chunk",
            data,
            filename=f"chunk_{chunk_number}",
            content_type="application/octet-stream",
        )
        form.add_field(
            "data",
            json.dumps({
                "uploadId": upload_id,
                "chunkNumber": chunk_number,
                "chunkSize": len(data),
                "checksum": checksum,
            }),
            content_type="application/json",
        )
        await self._request(
            "POST",
            f"/chunk-upload/{upload_id}/chunks/{chunk_number}",
            partial(ChunkUploadError, chunk_number),
            f"upload chunk {chunk_number}",
            expect_body=False,
            data=form,
        )

    async def get_upload_status(self, upload_id: str) -> UploadStatus:
        """Return the server's view of an upload session."""
        data = await self._request(
            "GET",
            f"/chunk-upload/{upload_id}/status",
            StatusQueryError,
            "query upload status",
        )
        return self._validate(UploadStatus, data, StatusQueryError, "upload status")

    async def complete_upload(self, upload_id: str) -> CompletionResult:
        """Finalize an upload session."""
        data = await self._request(
            "POST",
            f"/chunk-upload/{upload_id}/complete",
            CompletionError,
            "complete upload",
        )
        return self._validate(
            CompletionResult, data, CompletionError, "completion result"
        )

    async def cancel_upload(self, upload_id: str) -> None:
        """Delete an upload session on the server."""
        await self._request(
            "DELETE",
            f"/chunk-upload/{upload_id}",
            CancellationError,
            "cancel upload",
            expect_body=False,
        )

    async def get_movie_status(self, movie_id: str) -> MovieStatus:
        """Return the processing status of a movie."""
        data = await self._request(
            "GET",
            f"/{movie_id}/status",
            StatusQueryError,
            "query movie status",
        )
        return self._validate(MovieStatus, data, StatusQueryError, "movie status")

    async def get_movie(self, movie_id: str) -> MovieInfo:
        """Return the full movie resource."""
        data = await self._request(
            "GET",
            f"/{movie_id}",
            StatusQueryError,
            "fetch movie",
        )
        return self._validate(MovieInfo, data, StatusQueryError, "movie")

    @staticmethod
    def _validate(model: Any, data: Any, error: ErrorFactory, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise error(f"Malformed {what} response: {e}") from e
