"""
RegFree Bridge - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and environment-specific values are loaded from environment variables.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Hierarchy (highest to lowest priority):
    1. Environment variables
    2. .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: str = "development"
    app_debug: bool = True
    app_log_level: str = "INFO"
    log_json_format: bool = False

    # --- Server ---
    backend_host: str = "0.0.0.0"
    backend_port: int = 8780

    # --- Device Registry ---
    # GET /devices dumps every token and number; disable outside development
    expose_device_list: bool = True

    # --- Push Provider ---
    # "dummy" = records messages in memory, always delivers (default)
    # "firebase" = Firebase Cloud Messaging via firebase-admin
    push_backend: str = "dummy"
    firebase_credentials_path: Optional[str] = None
    firebase_project_id: Optional[str] = None
    push_priority: str = "high"
    push_ttl_seconds: int = 30  # seconds
    push_timeout_seconds: float = 10.0

    # --- Telephony REST API ---
    telephony_api_host: str = "api.cloudonix.io"
    telephony_domain: str = ""
    telephony_api_key: str = ""
    telephony_timeout_seconds: float = 10.0

    # --- Security ---
    allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.

    Use dependency injection in routes:
        settings: Settings = Depends(get_settings)
    """
    return Settings()
