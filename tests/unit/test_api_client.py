"""Tests for MovieApiClient request building and error mapping."""

import asyncio
import json
from unittest.mock import MagicMock

import aiohttp
import pytest

from movie_uploader.api_client import MovieApiClient
from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.exceptions import (
    CancellationError,
    ChunkUploadError,
    CompletionError,
    SessionInitiationError,
    StatusQueryError,
)
from movie_uploader.models import ProcessingStatus

API_ROOT = "http://movies.test/api/movies"


@pytest.fixture
def client_session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(client_session, fast_config) -> MovieApiClient:
    return MovieApiClient(client_session, fast_config)


def respond(client_session, make_response, status=200, json_body=None, text=""):
    response, context = make_response(status, json_body, text)
    client_session.request.return_value = context
    return response


def sent_request(client_session):
    call = client_session.request.call_args
    return call.args[0], call.args[1], call.kwargs


class TestInitiateUpload:
    @pytest.mark.asyncio
    async def test_posts_payload_and_unwraps_envelope(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, json_body={"data": {"uploadId": "u1"}})

        upload_id = await client.initiate_upload({"filename": "movie.mp4"})

        assert upload_id == "u1"
        method, url, kwargs = sent_request(client_session)
        assert method == "POST"
        assert url == f"{API_ROOT}/chunk-upload/initiate"
        assert kwargs["json"] == {"filename": "movie.mp4"}
        assert kwargs["headers"]["User-Agent"] == "Movie-Service-Client/1.0.0"
        assert isinstance(kwargs["timeout"], aiohttp.ClientTimeout)

    @pytest.mark.asyncio
    async def test_payload_without_envelope(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, json_body={"uploadId": "u2"})

        assert await client.initiate_upload({}) == "u2"

    @pytest.mark.asyncio
    async def test_missing_upload_id(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, json_body={"data": {}})

        with pytest.raises(SessionInitiationError, match="no uploadId"):
            await client.initiate_upload({})

    @pytest.mark.asyncio
    async def test_error_status_carries_detail(
        self, client, client_session, make_response
    ) -> None:
        respond(
            client_session,
            make_response,
            status=400,
            text=json.dumps({"message": "Title is required"}),
        )

        with pytest.raises(SessionInitiationError) as exc_info:
            await client.initiate_upload({})

        assert exc_info.value.status == 400
        assert exc_info.value.detail == "Title is required"
        assert "Title is required" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_plain_text_error_detail(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, status=502, text="Bad Gateway")

        with pytest.raises(SessionInitiationError) as exc_info:
            await client.initiate_upload({})

        assert exc_info.value.detail == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_invalid_json_body(
        self, client, client_session, make_response
    ) -> None:
        response = respond(client_session, make_response)
        response.json.side_effect = json.JSONDecodeError("Expecting value", "", 0)

        with pytest.raises(SessionInitiationError, match="invalid JSON"):
            await client.initiate_upload({})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()],
    )
    async def test_transport_errors_are_typed(
        self, client, client_session, error
    ) -> None:
        client_session.request.side_effect = error

        with pytest.raises(SessionInitiationError) as exc_info:
            await client.initiate_upload({})

        assert exc_info.value.status is None
        assert exc_info.value.__cause__ is error


class TestUploadChunk:
    @pytest.mark.asyncio
    async def test_sends_multipart_form(
        self, client, client_session, make_response
    ) -> None:
        response = respond(client_session, make_response)

        await client.upload_chunk("u1", 2, b"chunk-bytes", "abc123")

        method, url, kwargs = sent_request(client_session)
        assert method == "POST"
        assert url == f"{API_ROOT}/chunk-upload/u1/chunks/2"
        assert isinstance(kwargs["data"], aiohttp.FormData)
        response.json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_reports_chunk_number(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, status=422, text="checksum mismatch")

        with pytest.raises(ChunkUploadError) as exc_info:
            await client.upload_chunk("u1", 5, b"x", "abc")

        assert exc_info.value.chunk_number == 5
        assert exc_info.value.status == 422
        assert exc_info.value.detail == "checksum mismatch"


class TestStatusAndCompletion:
    @pytest.mark.asyncio
    async def test_get_upload_status(
        self, client, client_session, make_response
    ) -> None:
        respond(
            client_session,
            make_response,
            json_body={
                "data": {
                    "uploadId": "u1",
                    "totalChunks": 3,
                    "uploadedChunks": 2,
                    "progressPercentage": 66.67,
                    "missingChunks": [1],
                }
            },
        )

        status = await client.get_upload_status("u1")

        assert status.upload_id == "u1"
        assert status.missing_chunks == [1]
        assert not status.is_complete
        method, url, _ = sent_request(client_session)
        assert (method, url) == ("GET", f"{API_ROOT}/chunk-upload/u1/status")

    @pytest.mark.asyncio
    async def test_malformed_status(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, json_body={"data": {"uploadId": "u1"}})

        with pytest.raises(StatusQueryError, match="Malformed upload status"):
            await client.get_upload_status("u1")

    @pytest.mark.asyncio
    async def test_complete_upload(
        self, client, client_session, make_response
    ) -> None:
        respond(
            client_session,
            make_response,
            json_body={"data": {"movieId": "m1", "status": "PROCESSING"}},
        )

        result = await client.complete_upload("u1")

        assert result.movie_id == "m1"
        assert result.status == "PROCESSING"
        method, url, _ = sent_request(client_session)
        assert (method, url) == ("POST", f"{API_ROOT}/chunk-upload/u1/complete")

    @pytest.mark.asyncio
    async def test_complete_upload_failure(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, status=409, text="")

        with pytest.raises(CompletionError) as exc_info:
            await client.complete_upload("u1")

        assert exc_info.value.status == 409
        assert exc_info.value.detail is None

    @pytest.mark.asyncio
    async def test_cancel_upload(self, client, client_session, make_response) -> None:
        respond(client_session, make_response, status=204)

        assert await client.cancel_upload("u1") is None
        method, url, _ = sent_request(client_session)
        assert (method, url) == ("DELETE", f"{API_ROOT}/chunk-upload/u1")

    @pytest.mark.asyncio
    async def test_cancel_upload_failure(
        self, client, client_session, make_response
    ) -> None:
        respond(client_session, make_response, status=404, text="Not Found")

        with pytest.raises(CancellationError):
            await client.cancel_upload("u1")


class TestMovieEndpoints:
    @pytest.mark.asyncio
    async def test_movie_status_accepts_lowercase(
        self, client, client_session, make_response
    ) -> None:
        respond(
            client_session,
            make_response,
            json_body={"data": {"movieId": "m1", "status": "processing"}},
        )

        status = await client.get_movie_status("m1")

        assert status.status is ProcessingStatus.PROCESSING
        method, url, _ = sent_request(client_session)
        assert (method, url) == ("GET", f"{API_ROOT}/m1/status")

    @pytest.mark.asyncio
    async def test_get_movie(self, client, client_session, make_response) -> None:
        respond(
            client_session,
            make_response,
            json_body={
                "data": {
                    "movieId": "m1",
                    "title": "Sintel",
                    "description": "Dragon",
                    "status": "READY",
                    "qualities": {"1080p": "/v/1080p.m3u8"},
                }
            },
        )

        movie = await client.get_movie("m1")

        assert movie.title == "Sintel"
        assert movie.status is ProcessingStatus.READY
        assert movie.qualities == {"1080p": "/v/1080p.m3u8"}

    def test_api_url_strips_trailing_slash(self, client_session) -> None:
        config = UploadConfig(base_url="http://movies.test/")
        assert MovieApiClient(client_session, config).api_url == API_ROOT


class TestProcessingStatus:
    def test_lowercase_values_parse(self) -> None:
        assert ProcessingStatus("ready") is ProcessingStatus.READY
        assert ProcessingStatus("Failed") is ProcessingStatus.FAILED

    def test_unknown_value(self) -> None:
        with pytest.raises(ValueError):
            ProcessingStatus("archived")
