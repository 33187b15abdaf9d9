"""
NGINX configuration renderer.

Generates nginx configuration from MainConfig and IngressConfig models
using Jinja2 templates.
"""

from .directives import Edition
from .errors import ConfigRenderError, RenderError, TemplateLoadError
from .renderer import ConfigRenderer, get_config_renderer, render

__all__ = [
    "ConfigRenderError",
    "ConfigRenderer",
    "Edition",
    "RenderError",
    "TemplateLoadError",
    "get_config_renderer",
    "render",
]
