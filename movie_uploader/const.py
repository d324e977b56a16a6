"""Constants for the movie upload client."""

from pathlib import Path

DEFAULT_BASE_URL = "http://localhost:8080"
API_PREFIX = "/api/movies"
USER_AGENT = "Movie-Service-Client/1.0.0"

BYTES_PER_MIB = 1024 * 1024
DEFAULT_CHUNK_SIZE = 5 * BYTES_PER_MIB  # (5mb)
DEFAULT_MAX_CONCURRENT_CHUNKS = 3
DEFAULT_CHUNK_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0

DEFAULT_MONITOR_MAX_ATTEMPTS = 30
DEFAULT_MONITOR_INTERVAL_SECONDS = 10.0
DEFAULT_MONITOR_ERROR_DELAY_SECONDS = 5.0

# Config file locations
CONFIG_DIR = Path.home() / ".movie_uploader"
CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "MOVIE_UPLOAD_CONFIG"

SUPPORTED_MIME_TYPES = (
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/x-msvideo",
    "video/x-matroska",
)

EXTENSION_MIME_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
}

# Declared types that carry no information and fall back to the extension.
GENERIC_MIME_TYPES = {"", "application/octet-stream"}
FALLBACK_MIME_TYPE = "video/mp4"

DEFAULT_DESCRIPTION = "No description provided"
