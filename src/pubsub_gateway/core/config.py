"""
Configuration settings for the Pub/Sub Gateway.
"""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Gateway configuration loaded from environment variables.

    For local development, create a .env file or export PUBSUB_ADAPTER=memory
    to run without Google Cloud credentials.
    """
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service settings
    service_name: str = "pubsub-gateway"
    service_port: int = 8080
    debug: bool = False

    # Adapter configuration
    pubsub_adapter: Literal["pubsub", "memory"] = "pubsub"

    # Google Pub/Sub settings (for pubsub adapter)
    gcp_project_id: Optional[str] = None

    # Pull settings
    pull_max_messages: int = 10
    multipull_max_messages: int = 1000
    # None waits for the batched ack without a bound
    ack_timeout_seconds: Optional[float] = 30.0

    # --- CORS Settings ---
    cors_origins: List[str] = ["*"]


def check_required_settings(required: List[str]) -> None:
    """
    Verify that required settings are configured.
    Raises ValueError if any required setting is missing.
    """
    for setting_name in required:
        value = getattr(settings, setting_name, None)
        if value is None:
            raise ValueError(
                f"Required setting '{setting_name}' is not configured. "
                f"Please set the {setting_name.upper()} environment variable."
            )


# Global settings instance
settings = Settings()
