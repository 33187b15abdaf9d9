"""
Configuration utilities and settings management.

Handles environment variables and renderer settings.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Renderer settings loaded from environment variables."""

    # Templates
    template_dir: Optional[str] = Field(
        default=None,
        alias="TEMPLATE_DIR",
        description="Directory holding the nginx templates (defaults to the bundled ones)",
    )
    nginx_edition: Literal["oss", "plus"] = Field(default="oss", alias="NGINX_EDITION")

    # Main config defaults
    status_port: int = Field(
        default=8080, alias="STATUS_PORT", description="Port of the server exposing the status endpoints"
    )
    default_ssl_certificate: str = Field(
        default="/etc/nginx/secrets/default", alias="DEFAULT_SSL_CERTIFICATE"
    )
    default_ssl_certificate_key: str = Field(
        default="/etc/nginx/secrets/default", alias="DEFAULT_SSL_CERTIFICATE_KEY"
    )
    conf_d_include: str = Field(
        default="/etc/nginx/conf.d/*.conf",
        alias="CONF_D_INCLUDE",
        description="Include pattern for the generated ingress configs",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_template_dir(config: Optional[Settings] = None) -> Optional[Path]:
    """Get the configured template directory, if any."""
    config = config or settings
    return Path(config.template_dir) if config.template_dir else None


def configure_logging(level: Optional[str] = None):
    """Configure root logging for embedding applications."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
