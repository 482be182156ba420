"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Trello (destination board list for feedback cards)
    trello_api_key: str = ""
    trello_api_token: str = ""
    trello_list_id: str = ""

    # Older clients framed the body without the trailing "--" on the closing
    # boundary; keep them byte-compatible when set.
    trello_legacy_closing_boundary: bool = False
    # Map non-2xx Trello responses to upload failures
    trello_check_status: bool = False

    # Outbound HTTP
    http_timeout: float = 15.0

    # Submission outcome tracking
    outcome_ttl_seconds: float = 3600
    outcome_max_entries: int = 1000

    # Upload limits
    max_screenshot_bytes: int = 10 * 1024 * 1024

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def trello_configured(self) -> bool:
        return bool(self.trello_api_key and self.trello_api_token and self.trello_list_id)


@lru_cache
def get_settings() -> Settings:
    return Settings()
