"""Configuration management for the ShareFare client."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ShareFare API
    api_base_url: str = Field(
        default="https://sharefare-be.onrender.com",
        validation_alias=AliasChoices("api_base_url", "sharefare_api_url"),
    )
    request_timeout: float = 30.0  # seconds

    # Session probe bound
    session_timeout_ms: int = Field(default=5000, gt=0)

    # Local storage
    database_path: Path = Path.home() / ".sharefare" / "sharefare.db"
    encryption_key: str | None = None  # Fernet key; generated on first use if unset

    def __init__(self, **kwargs):
        """Initialize settings and create the storage directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def key_path(self) -> Path:
        """Location of the generated encryption key."""
        return self.database_path.parent / "secret.key"


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check your .env file and environment "
            f"variables (SHAREFARE_API_URL, DATABASE_PATH, ENCRYPTION_KEY).\n"
            f"Error: {e}"
        ) from e
