"""Application settings loaded from environment variables."""

import os
import zoneinfo
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Cadence configuration. All values come from environment variables."""

    # Database (last execution records)
    database_path: Path = Field(default=Path("data/cadence.db"))

    # Scheduler (IANA zone for the daily hour window)
    scheduler_timezone: str = Field(default="UTC")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_timezone(self) -> zoneinfo.ZoneInfo:
        """Resolve SCHEDULER_TIMEZONE into a ZoneInfo."""
        return zoneinfo.ZoneInfo(self.scheduler_timezone.strip() or "UTC")


settings = Settings()
