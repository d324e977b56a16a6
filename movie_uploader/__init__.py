from .exceptions import *  # noqa: F403
from .config_manager import UploadConfig, load_config
from .models import (
    CompletionResult,
    ExistingMovieTarget,
    MonitorResult,
    MovieInfo,
    NewMovieMetadata,
    ProcessingStatus,
    UploadResult,
    UploadState,
    UploadStatus,
)
from .upload import (
    BytesChunkSource,
    FileChunkSource,
    MovieUploader,
    StatusMonitor,
    UploadObserver,
    UploadSession,
)

__version__ = "0.1.0"

__all__ = [
    "BytesChunkSource",
    "CompletionResult",
    "ExistingMovieTarget",
    "FileChunkSource",
    "MonitorResult",
    "MovieInfo",
    "MovieUploader",
    "NewMovieMetadata",
    "ProcessingStatus",
    "StatusMonitor",
    "UploadConfig",
    "UploadObserver",
    "UploadResult",
    "UploadSession",
    "UploadState",
    "UploadStatus",
    "load_config",
]
