"""
Configuration management for the component build controller.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = Field(default="Component Build Controller")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Database
    database_url: str = Field(default="sqlite:///./build_controller.db")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'console'")

    # Build wiring
    pipeline_service_account: str = Field(
        default="pipeline",
        description="Service account the build pipelines run as, one per namespace",
    )
    git_provider_annotation: str = Field(
        default="tekton.dev/git-0",
        description="Secret annotation the pipeline runtime matches against git hosts",
    )

    # Reconciliation
    trigger_template_requeue_seconds: float = Field(default=5.0)
    conflict_retry_attempts: int = Field(default=5, ge=1)

    # Controller loop
    poll_interval: float = Field(default=2.0, gt=0)
    requeue_base_delay_seconds: float = Field(default=1.0, gt=0)
    requeue_max_delay_seconds: float = Field(default=300.0, gt=0)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
