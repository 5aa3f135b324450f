"""
Application settings.

Values come from the environment (prefix DELIVERY_) or a local .env file,
e.g. DELIVERY_LOG_LEVEL=DEBUG or DELIVERY_SOUND_OUTPUT_DIR=/tmp/alerts.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


class Settings(BaseSettings):
    # Application
    app_name: str = "delivery-notifications"
    log_level: str = "INFO"

    # Directory and preference fixtures
    data_dir: Path = Path(__file__).parent.parent / "data"

    # Notification store
    notification_capacity: int = 10

    # Image pipeline
    image_target_width: int = 600
    image_target_height: int = 427
    image_target_kb: int = 150
    image_max_kb: int = 1024

    # Sound alert; without an output directory there is no audio device
    sound_output_dir: Optional[Path] = None
    sound_sample_rate: int = 22050

    model_config = SettingsConfigDict(env_prefix="DELIVERY_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Get the process settings (read once)."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for an entry point."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
