"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Adapter settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="FORM_ADAPTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Batching
    enable_batch: bool = Field(default=False, description="Coalesce field writes by default")
    batch_delay_ms: float = Field(
        default=16.0, gt=0, description="Batch window in milliseconds (one frame)"
    )

    # Monitoring
    enable_metrics: bool = Field(default=True, description="Record Prometheus metrics")

    # Rendering
    warn_on_missing_component: bool = Field(
        default=True, description="Log a warning when a node names an unregistered component"
    )

    @property
    def batch_delay(self) -> float:
        """Batch window in seconds."""
        return self.batch_delay_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
