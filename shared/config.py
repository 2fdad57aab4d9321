"""
Shared configuration management for the SmartScheduler Routing Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ROUTING_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Form definition store
    form_store: str = Field(default="memory", description="memory or postgres")
    postgres_dsn: str = Field(default="postgres://localhost:5432/scheduler")
    forms_file: Optional[str] = Field(default=None, description="YAML/JSON file seeding the memory store")
    memory_submissions_limit: int = Field(default=1000, description="Submissions kept by the memory store")

    # Routing behaviour
    default_no_match_message: str = Field(default="Thank you for your submission.")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
