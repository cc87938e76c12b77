from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./examsync.db"
    hall_api_base_url: str = "http://localhost:8080/api/external-app"
    hall_api_token: str = ""
    hall_api_timeout_seconds: float = 30.0
    exam_halls_sync_cron: str = "0 2 * * *"
    participants_sync_cron: str = "0 3 * * *"
    participants_window_days: int = 3
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
