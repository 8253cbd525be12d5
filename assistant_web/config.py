"""assistant-web configuration — loaded from environment / .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ASSISTANT_WEB_", extra="ignore")

    env: str = "development"
    log_level: str = "INFO"
    secret_key: str = "change-me"
    token_ttl: int = 7 * 24 * 3600  # seconds
    database_url: str = "sqlite+aiosqlite:///./assistant_web.db"

    # Saved conversation transcripts (relative to project root)
    log_dir: Path = Path("userdata/logs")

    # Built-in login collaborator: user name -> password
    users: dict[str, str] = {}

    # Device icons are served by Thingpedia
    thingpedia_url: str = "https://thingpedia.stanford.edu/thingpedia"

    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def is_development(self) -> bool:
        return self.env == "development"


settings = Settings()
