import re

from pydantic import field_validator
from pydantic_settings import BaseSettings

_SCHEDULE_RE = re.compile(r"^\d{1,2}:\d{2}$")


class Settings(BaseSettings):
    race_site_url: str = "https://www.procyclingstats.com"
    scraper_api_key: str = ""
    scraper_api_url: str = "https://app.scrapingbee.com/api/v1/"
    fetch_timeout: float = 20.0
    fetch_retries: int = 1
    refresh_schedule: str = "07:00"
    default_timezone: str = "Europe/Amsterdam"
    cron_secret: str = ""
    environment: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///data/sportcal.db"
    events_window_days: int = 90

    @field_validator("scraper_api_key", "cron_secret", mode="before")
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        return (v or "").strip()

    @field_validator("race_site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("refresh_schedule", mode="before")
    @classmethod
    def default_bad_schedule(cls, v: str) -> str:
        if not v or not _SCHEDULE_RE.match(v.strip()):
            return "07:00"
        return v.strip()

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
