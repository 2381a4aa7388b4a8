"""Estimator configuration.

Loads configuration from environment variables with sensible defaults.
A local .env file is honoured for development.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# Requested output length is never allowed above this, whatever the env says.
MAX_OUTPUT_TOKENS_CAP = 400


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Auth
    app_pin: str = field(default_factory=lambda: os.getenv("APP_PIN", ""))
    session_secret: str = field(default_factory=lambda: os.getenv("SESSION_SECRET", "dev-session-secret"))
    session_max_age: int = field(default_factory=lambda: int(os.getenv("SESSION_MAX_AGE", str(12 * 60 * 60))))
    cookie_secure: bool = field(default_factory=lambda: _env_bool("COOKIE_SECURE"))

    # Storage
    database_url: str = field(default_factory=lambda: os.getenv(
        "DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/estimator_db"
    ))
    database_ssl: bool = field(default_factory=lambda: _env_bool("DATABASE_SSL"))
    history_default_limit: int = field(default_factory=lambda: int(os.getenv("HISTORY_DEFAULT_LIMIT", "100")))
    history_max_limit: int = field(default_factory=lambda: int(os.getenv("HISTORY_MAX_LIMIT", "300")))

    # Inference
    llm_provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "openai").lower())
    llm_model: Optional[str] = field(default_factory=lambda: os.getenv("LLM_MODEL") or None)
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""), repr=False)
    google_api_key: str = field(default_factory=lambda: os.getenv("GOOGLE_API_KEY", ""), repr=False)
    llm_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "90")))
    max_output_tokens: int = field(default_factory=lambda: int(os.getenv("MAX_OUTPUT_TOKENS", "220")))
    policy_profile: str = field(default_factory=lambda: os.getenv("POLICY_PROFILE", "standard"))
    policy_text_path: Optional[str] = field(default_factory=lambda: os.getenv("POLICY_TEXT_PATH") or None)

    # Upload intake
    max_files: int = field(default_factory=lambda: int(os.getenv("MAX_FILES", "12")))
    max_file_mb: int = field(default_factory=lambda: int(os.getenv("MAX_FILE_MB", "15")))

    # Service
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "production"))
    log_level: str = field(default_factory=lambda: os.getenv(
        "LOG_LEVEL", "DEBUG" if os.getenv("ENVIRONMENT") == "development" else "INFO"
    ))
    cors_origins: List[str] = field(default_factory=lambda: _env_list(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:3001"
    ))

    @property
    def max_file_bytes(self) -> int:
        return self.max_file_mb * 1024 * 1024

    @property
    def output_token_limit(self) -> int:
        """Requested output length, clamped to the hard cap."""
        return max(1, min(self.max_output_tokens, MAX_OUTPUT_TOKENS_CAP))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


# Singleton settings instance
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
