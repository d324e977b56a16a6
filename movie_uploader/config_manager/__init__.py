"""Configuration resolution for the movie upload client."""

from movie_uploader.config_manager.config import ConfigManager, load_config
from movie_uploader.config_manager.upload_config import UploadConfig

__all__ = ["ConfigManager", "UploadConfig", "load_config"]
