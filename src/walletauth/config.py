"""Application configuration using Pydantic Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MESSAGE_TEMPLATE = (
    "Welcome! Sign this message to log in.\n\n"
    "This request will not trigger a blockchain transaction or cost any gas.\n\n"
    "Nonce: {nonce}\n"
    "Timestamp: {timestamp}"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Challenges
    challenge_expiration_millis: int = Field(
        default=300_000,
        gt=0,
        description="How long a generated challenge stays valid, in milliseconds",
    )
    message_template: str = Field(
        default=DEFAULT_MESSAGE_TEMPLATE,
        description="Challenge text; {nonce} and {timestamp} are substituted literally",
    )

    # Sessions
    session_ttl_seconds: int = Field(default=86_400, gt=0)
    session_expiring_soon_seconds: int = Field(
        default=1_800,
        ge=0,
        description="Sessions with less than this much lifetime left are reported as expiring soon",
    )

    # Challenge rate limiting (per wallet address)
    challenge_rate_limit_window_seconds: int = Field(default=60, ge=1)
    challenge_rate_limit_max_requests: int = Field(default=10, ge=1)

    # Logging
    json_logs: bool = True

    @field_validator("message_template")
    @classmethod
    def validate_message_template(cls, v: str) -> str:
        """Require the {nonce} placeholder so every challenge is unique.

        Args:
            v: The template to validate

        Returns:
            str: The validated template

        Raises:
            ValueError: If the template has no {nonce} placeholder
        """
        if "{nonce}" not in v:
            raise ValueError("message_template must contain the {nonce} placeholder")
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Module-level singleton instance
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get application settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except Exception as e:
            msg = (
                "Failed to initialize settings. "
                "Check CHALLENGE_EXPIRATION_MILLIS and MESSAGE_TEMPLATE in the environment."
            )
            raise RuntimeError(msg) from e
    return _settings_instance
