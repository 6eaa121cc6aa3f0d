"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..providers import DEFAULT_USER_AGENT
from ..reddit.auth import RedditCredentials

# Project root, so .env is found regardless of the working directory
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Reddit API
    reddit_client_id: str = Field(default="", description="Reddit application id")
    reddit_client_secret: str = Field(default="", description="Reddit application secret")
    reddit_username: str = Field(default="", description="Reddit username (password grant)")
    reddit_password: str = Field(default="", description="Reddit password (password grant)")
    reddit_user_agent: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent sent to Reddit"
    )

    # Mastodon
    mastodon_instance: str = Field(
        default="mastodon.social", description="Mastodon instance domain"
    )
    mastodon_user_agent: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent sent to Mastodon"
    )

    # HTTP
    http_timeout: float = Field(default=15.0, gt=0, description="Per-request timeout in seconds")
    default_limit: int = Field(default=20, ge=1, le=100, description="Posts per search")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator(
        "reddit_client_id",
        "reddit_client_secret",
        "reddit_username",
        "reddit_password",
        mode="before",
    )
    @classmethod
    def _strip(cls, value):
        return (value or "").strip() if isinstance(value, (str, type(None))) else value

    @field_validator("reddit_user_agent", "mastodon_user_agent", mode="before")
    @classmethod
    def _default_user_agent(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_USER_AGENT
        return value.strip() if isinstance(value, str) else value

    @field_validator("mastodon_instance", mode="before")
    @classmethod
    def _default_instance(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "mastodon.social"
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    def reddit_credentials(self) -> RedditCredentials:
        return RedditCredentials(
            client_id=self.reddit_client_id,
            client_secret=self.reddit_client_secret,
            username=self.reddit_username,
            password=self.reddit_password,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
