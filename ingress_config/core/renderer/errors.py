"""
Exceptions raised while rendering nginx configuration.
"""

from typing import Optional


class ConfigRenderError(Exception):
    """Base exception for renderer errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TemplateLoadError(ConfigRenderError):
    """Template could not be located or parsed."""

    def __init__(self, template_name: str, message: Optional[str] = None):
        self.template_name = template_name
        super().__init__(message or f"Template not found: {template_name}")


class RenderError(ConfigRenderError):
    """Model is not compatible with what the template expects."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.field = field
        self.reason = reason
        message = f"{field}: {reason}" if field else reason
        super().__init__(message)
