"""Configuration management for fbdict.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the FBDICT_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (FBDICT_* prefix)
2. .env file in the project root
3. Default values defined in FBDictConfig

Example .env file:
    FBDICT_STORAGE_ROOT=/var/lib/fbdict
    FBDICT_PHOTOS_DIRECTORY_NAME=saved-photos
    FBDICT_MAX_SAVED_PHOTOS=120
    FBDICT_LOG_LEVEL=DEBUG

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Containers constructed without an explicit root resolve their directory
names against ``config.storage_root``.

Usage Example
-------------
    from fbdict.core.config import config

    print(config.storage_root)
    print(config.max_saved_photos)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FBDictConfig(BaseSettings):
    """Main configuration for fbdict.

    Attributes
    ----------
    storage_root : Path
        Application-private directory under which every container keeps its
        own backing directory. Created on initialization.
    photos_directory_name : str
        Directory name of the saved-photos gallery container.
    max_saved_photos : int
        Capacity cap enforced by the photo-saving flow (not by the container).
    log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        Level used by ``configure_logging`` when none is given explicitly.

    Examples
    --------
        >>> custom_config = FBDictConfig(storage_root="/tmp/fbdict", max_saved_photos=10)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FBDICT_",
        case_sensitive=False,
    )

    storage_root: Path = Field(
        default=Path("storage"),
        description="Application-private root for container directories",
    )
    photos_directory_name: str = Field(
        default="saved-photos",
        min_length=1,
        description="Directory name of the saved-photos gallery",
    )
    max_saved_photos: int = Field(
        default=120,
        ge=1,
        description="Maximum number of photos the gallery accepts",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Default logging level",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the storage root.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.storage_root.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (FBDICT_* prefix) and .env file.
config = FBDictConfig()
