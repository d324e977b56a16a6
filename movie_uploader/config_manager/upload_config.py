"""Pydantic model for movie upload client configuration."""

from pydantic import BaseModel, Field, field_validator

from movie_uploader.config_manager.helpers import parse_bytes
from movie_uploader.const import (
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_RETRIES,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_CONCURRENT_CHUNKS,
    DEFAULT_MONITOR_ERROR_DELAY_SECONDS,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    DEFAULT_MONITOR_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_RETRY_DELAY_SECONDS,
    USER_AGENT,
)


class UploadConfig(BaseModel):
    """Configuration options for chunked uploads and status monitoring.

    Attributes:
        base_url: root URL of the movie service, without the API prefix.
        chunk_size: size of each uploaded chunk, in bytes.
        max_concurrent_chunks: chunks uploaded concurrently per batch.
        chunk_retries: retries per chunk after the first attempt.
        retry_delay: initial backoff delay before a chunk retry, in seconds.
        retry_max_delay: upper bound for the backoff delay; None disables it.
        request_timeout: total timeout of a single HTTP request, in seconds.
        monitor_max_attempts: default number of processing status polls.
        monitor_interval: seconds between processing status polls.
        monitor_error_delay: seconds to wait after a failed status poll.
        user_agent: User-Agent header sent with every request.
    """

    base_url: str = DEFAULT_BASE_URL
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    max_concurrent_chunks: int = Field(default=DEFAULT_MAX_CONCURRENT_CHUNKS, ge=1)
    chunk_retries: int = Field(default=DEFAULT_CHUNK_RETRIES, ge=0)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0)
    retry_max_delay: float | None = Field(default=None, ge=0)
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)
    monitor_max_attempts: int = Field(default=DEFAULT_MONITOR_MAX_ATTEMPTS, ge=1)
    monitor_interval: float = Field(default=DEFAULT_MONITOR_INTERVAL_SECONDS, ge=0)
    monitor_error_delay: float = Field(
        default=DEFAULT_MONITOR_ERROR_DELAY_SECONDS, ge=0
    )
    user_agent: str = USER_AGENT

    @field_validator("chunk_size", mode="before")
    @classmethod
    def _parse_chunk_size(cls, value: int | str) -> int:
        return parse_bytes(value)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
