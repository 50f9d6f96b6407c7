"""
Configuration settings for the IAP Optimizer client.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "IAP Optimizer"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"  # "production" switches logs to JSON
    LOG_LEVEL: str = "INFO"

    # === Model Package ===
    METADATA_FILE_NAME: str = "preprocess.json"  # Associated file inside the model package
    METADATA_SCHEMA_PATH: Optional[str] = None  # None = packaged preprocess_v1.json
    OUTPUT_ACTIONS_COUNT: int = 8  # Output width of the reference deployment

    # === Inference Runtime ===
    USE_HARDWARE_ACCELERATION: bool = True
    ACCELERATOR_DELEGATE_PATH: Optional[str] = None  # e.g. "libtensorflowlite_gpu_delegate.so"
    NUM_THREADS: Optional[int] = None  # None = runtime default

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
