"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

WHATSAPP_PROVIDERS = ("twilio", "whatsapp-business", "generic", "mock")


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify bearer tokens issued to portal users",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    environment: str = Field(
        default="development",
        description="Deployment environment name; unconfigured senders only simulate success outside production",
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone (or UTC+HH:MM offset) used for quiet hours and stored timestamps",
    )
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins of the tenant and staff portals allowed to call the API",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to outbound HTTP requests made by channel senders",
        gt=0,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )
    email_from_name: str = Field(
        default="BMS System",
        description="Display name used for the email sender",
    )
    whatsapp_provider: str = Field(
        default="mock",
        description="WhatsApp transport: twilio, whatsapp-business, generic or mock",
    )
    whatsapp_api_url: str | None = Field(default=None)
    whatsapp_api_key: str | None = Field(default=None)
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)
    twilio_whatsapp_from: str | None = Field(default=None)
    vapid_public_key: str | None = Field(default=None)
    vapid_private_key: str | None = Field(default=None)
    vapid_subject: str | None = Field(
        default=None,
        description="Contact URI (mailto: or https:) sent in the VAPID claims",
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

    @model_validator(mode="after")
    def _validate_whatsapp_provider(self) -> "Settings":
        provider = (self.whatsapp_provider or "mock").strip().lower()
        if provider not in WHATSAPP_PROVIDERS:
            raise ValueError(
                "WHATSAPP_PROVIDER must be one of: " + ", ".join(WHATSAPP_PROVIDERS)
            )
        self.whatsapp_provider = provider
        return self

    @property
    def is_production(self) -> bool:
        """Return ``True`` when running in the production environment."""

        return self.environment.strip().lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
