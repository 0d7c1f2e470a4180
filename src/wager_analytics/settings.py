"""Process-level settings for wager-analytics."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wager_analytics.runtime_config import RuntimeConfig, load_runtime_config


class Settings(BaseSettings):
    """Environment overrides layered on top of the runtime TOML config."""

    model_config = SettingsConfigDict(
        env_prefix="WAGER_ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    config_path: str = ""
    calendar_timezone: str = Field(
        default="",
        validation_alias=AliasChoices("WAGER_ANALYTICS_CALENDAR_TIMEZONE", "WAGER_ANALYTICS_TZ"),
    )
    log_level: str = ""

    def runtime_config(self, config_path: Path | None = None) -> RuntimeConfig:
        """Load runtime config (explicit path, then env path, then default) with env overrides."""
        resolved_path = config_path
        if resolved_path is None and self.config_path.strip():
            resolved_path = Path(self.config_path.strip()).expanduser()
        return load_runtime_config(resolved_path).with_overrides(
            calendar_timezone=self.calendar_timezone,
            log_level=self.log_level,
        )
