"""
Environment-driven settings shared by every MindBridge service.

Values come from environment variables or a `.env` file via pydantic-settings.
Services subclass BaseAppSettings and add their own fields.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        MESSAGE_MAX_LENGTH: int = 2000

    settings = Settings()
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """Store, token and server settings."""

    # ==========================================================================
    # Document Store
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "mindbridge"
    MONGODB_TIMEOUT_MS: int = Field(default=5000, gt=0)

    # ==========================================================================
    # Bearer Tokens (issued by the identity service)
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ==========================================================================
    # Server
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Comma-separated origins or "*"
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    @field_validator("ENVIRONMENT", "LOG_LEVEL")
    @classmethod
    def _normalize_case(cls, value: str) -> str:
        return value.strip().lower() if value else value

    def get_cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def validate_required(self) -> None:
        """
        Fail startup when settings needed to serve requests are missing.

        Raises:
            ValueError: Listing every problem found
        """
        errors = []

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required to verify bearer tokens")
        if self.CORS_ALLOW_CREDENTIALS and self.get_cors_origins() == ["*"]:
            errors.append("CORS_ALLOW_CREDENTIALS needs explicit CORS_ORIGINS")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
