"""
Application Configuration

Centralized configuration using Pydantic Settings for type-safe
environment variable management with validation.

Settings are read once at startup and treated as read-only afterwards.
The auth layer copies what it needs into an immutable AuthConfig.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory containing this file, then go up to the project root
_CONFIG_DIR = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=_CONFIG_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    debug: bool = False

    # Authentication Configuration
    auth_secret_key: str = "secret"
    auth_session_timeout: int = 30 * 60  # seconds a session signature stays valid
    auth_admin_user_id: str = "admin"
    auth_admin_password: str = "admin"
    auth_allow_origins: str = "*"  # sent verbatim as Access-Control-Allow-Origin
    # Accept timestamp + session_timeout as the deadline, like the first
    # deployed clients expect. Off by default: the timestamp is the deadline.
    auth_legacy_expiry_window: bool = False

    # Page storage
    data_dir: str = "data"

    @property
    def resolved_data_dir(self) -> Path:
        """Return an absolute path to the page directory.

        Relative paths are resolved against the current working directory,
        which is where the server was started from.
        """
        raw = Path(self.data_dir)
        if raw.is_absolute():
            return raw
        return (Path.cwd() / raw).resolve()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused throughout the application lifecycle.
    """
    return Settings()
