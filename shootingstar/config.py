"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # State database (PostgreSQL)
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "shootingstar"
    database_user: str = "shootingstar"
    database_password: str = ""

    # Gmail OAuth client (tokens themselves live in the oauth_tokens table)
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/auth/gmail/callback"
    gmail_processed_label: str = "Processed"
    gmail_max_results: int = 50

    # Todoist
    todoist_token: str = ""
    todoist_api_url: str = "https://api.todoist.com/rest/v2"

    # Claude CLI
    claude_cli_path: str = "claude"
    claude_timeout_seconds: float = 60.0
    claude_credentials_path: str = str(Path.home() / ".claude" / ".credentials.json")
    extraction_body_chars: int = 3000

    # Label defaults applied by the normalizer
    default_duration_label: str = "2170911443"  # 15 min
    default_context_label: str = "2170910796"  # Computer

    # Scheduler
    scheduler_enabled: bool = True
    cycle_interval_minutes: int = 2
    trigger_poll_seconds: int = 10
    startup_delay_seconds: int = 5

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def database_url(self) -> str:
        """PostgreSQL connection URL for the state database."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )


# Global settings instance
settings = Settings()
