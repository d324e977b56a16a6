"""Models exchanged with the movie service and returned by the upload engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from movie_uploader.const import DEFAULT_DESCRIPTION


class UploadState(str, Enum):
    """Lifecycle states for an upload session.

    State transitions:
    - UNINITIATED + initiate -> ACTIVE
    - ACTIVE + complete -> COMPLETED
    - ACTIVE + cancel -> CANCELLED
    - initiate/complete server failure -> FAILED
    - COMPLETED | CANCELLED | FAILED + initiate -> ACTIVE (full reset)
    """

    UNINITIATED = "uninitiated"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ProcessingStatus(str, Enum):
    """Server-side processing states of an uploaded movie."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"

    @classmethod
    def _missing_(cls, value: object) -> "ProcessingStatus | None":
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None


class _WireModel(BaseModel):
    """Base for camelCase wire payloads exposed with snake_case attributes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UploadStatus(_WireModel):
    """Server snapshot of an upload session, used for reconciliation."""

    upload_id: str = Field(alias="uploadId")
    total_chunks: int = Field(alias="totalChunks")
    uploaded_chunks: int = Field(alias="uploadedChunks")
    progress_percentage: float = Field(default=0.0, alias="progressPercentage")
    missing_chunks: list[int] = Field(default_factory=list, alias="missingChunks")

    @property
    def is_complete(self) -> bool:
        """Whether the server holds every chunk."""
        return not self.missing_chunks


class CompletionResult(_WireModel):
    """Result of finalizing an upload."""

    movie_id: str = Field(alias="movieId")
    status: str


class MovieStatus(_WireModel):
    """Processing status of a movie."""

    movie_id: str = Field(alias="movieId")
    status: ProcessingStatus
    qualities: dict[str, Any] | None = None


class MovieInfo(_WireModel):
    """Full movie resource."""

    movie_id: str = Field(alias="movieId")
    title: str | None = None
    description: str | None = None
    status: ProcessingStatus
    qualities: dict[str, Any] | None = None


class NewMovieMetadata(BaseModel):
    """Metadata for an upload that creates a new movie."""

    kind: Literal["new"] = "new"
    title: str
    description: str = DEFAULT_DESCRIPTION

    def to_payload(self) -> dict[str, str]:
        """Return the initiate request fields for this variant."""
        return {"movieTitle": self.title, "movieDescription": self.description}


class ExistingMovieTarget(BaseModel):
    """Metadata for an upload attached to a movie that already exists."""

    kind: Literal["existing"] = "existing"
    movie_id: str

    def to_payload(self) -> dict[str, str]:
        """Return the initiate request fields for this variant."""
        return {"movieId": self.movie_id}


UploadMetadata = Union[NewMovieMetadata, ExistingMovieTarget]


@dataclass(frozen=True)
class ChunkRange:
    """Byte range ``[start, end)`` of one chunk."""

    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Number of bytes in the chunk."""
        return self.end - self.start


@dataclass
class MonitorResult:
    """Outcome of monitoring a movie's processing status.

    ``timed_out`` is True when the attempt budget ran out before a terminal
    status was observed; ``movie`` is then None and ``last_status`` holds the
    last status seen, if any poll succeeded.
    """

    timed_out: bool
    attempts: int
    movie: MovieInfo | None = None
    last_status: ProcessingStatus | None = None


@dataclass
class UploadResult:
    """Outcome of a full upload run."""

    upload_id: str
    completion: CompletionResult
    monitor: MonitorResult | None = None
