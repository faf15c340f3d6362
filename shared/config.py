"""
Shared configuration management for the Access Layer services.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="info", description="Log level")

    # Permission catalog
    catalog_file: Optional[str] = Field(
        default=None,
        description="JSON or YAML document with users, groups and policies"
    )
    user_header: str = Field(default="X-User-Id", description="Header carrying the caller's user id")
    protect_catalog_routes: bool = Field(
        default=False,
        description="Require permissions:UpdateCatalog on 'catalog' for catalog mutations"
    )
    max_batch_size: int = Field(default=100, ge=1, description="Maximum checks per batch request")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
