"""Application configuration loaded from environment variables."""
import os
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database path
    data_path: str = os.getenv("DATA_PATH", os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
    database_name: str = "peptide_tracker.db"

    @property
    def database_path(self) -> str:
        if self.database_name == ":memory:":
            return self.database_name
        return os.path.join(self.data_path, self.database_name)

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8082
    log_level: str = "INFO"

    # Header set by the identity proxy with the external user id
    auth_header: str = "X-User-Id"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Analytics defaults
    default_analytics_days: int = 30
    trend_weeks: int = 6

    class Config:
        env_prefix = "PEPTIDE_"


@lru_cache
def get_settings() -> Settings:
    return Settings()
