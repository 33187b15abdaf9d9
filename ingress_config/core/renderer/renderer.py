"""
NGINX configuration renderer using Jinja2 templates.

Binds a MainConfig or IngressConfig to a named template and returns the
complete configuration text.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from ingress_config.config import Settings, get_template_dir, settings as default_settings
from ingress_config.core.renderer.directives import Edition
from ingress_config.core.renderer.errors import RenderError, TemplateLoadError
from ingress_config.core.renderer.main_composer import compose_main
from ingress_config.core.renderer.server_composer import compose_ingress
from ingress_config.models.proxy import IngressConfig, MainConfig

logger = logging.getLogger(__name__)

# Default template directory
DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

MAIN_TEMPLATES = {
    Edition.OSS: "nginx.conf.j2",
    Edition.PLUS: "nginx-plus.conf.j2",
}

INGRESS_TEMPLATES = {
    Edition.OSS: "nginx.ingress.conf.j2",
    Edition.PLUS: "nginx-plus.ingress.conf.j2",
}

_UNDEFINED_NAME = re.compile(r"'([^']+)' is undefined")
_MISSING_ATTRIBUTE = re.compile(r"has no attribute '([^']+)'")


def _undefined_field(error: UndefinedError) -> Optional[str]:
    """Best-effort name of the field a template tried to read."""
    message = str(error)
    for pattern in (_UNDEFINED_NAME, _MISSING_ATTRIBUTE):
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


class ConfigRenderer:
    """
    Renders nginx configuration from the proxy models.

    Templates are loaded once per renderer and shared read-only between
    render calls.
    """

    def __init__(self, template_dir: Optional[Path] = None, settings: Optional[Settings] = None):
        """
        Initialize the renderer.

        Args:
            template_dir: Path to template directory. Uses default if not specified.
            settings: Renderer settings. Uses the global settings if not specified.
        """
        self.settings = settings or default_settings
        self.template_dir = template_dir or get_template_dir(self.settings) or DEFAULT_TEMPLATE_DIR

        if not self.template_dir.exists():
            raise TemplateLoadError(
                str(self.template_dir),
                f"Template directory not found: {self.template_dir}",
            )

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,  # NGINX configs don't need HTML escaping
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        logger.info(f"ConfigRenderer initialized with templates from {self.template_dir}")

    def edition_for(self, template_name: str) -> Edition:
        """Edition a template targets; unknown templates use the configured one."""
        for templates in (MAIN_TEMPLATES, INGRESS_TEMPLATES):
            for edition, name in templates.items():
                if name == template_name:
                    return edition
        return Edition(self.settings.nginx_edition)

    def load_template(self, template_name: str):
        """
        Load a template by name.

        Raises:
            TemplateLoadError: If the template is missing or does not parse
        """
        try:
            return self.env.get_template(template_name)
        except TemplateNotFound:
            logger.warning(f"Template not found: {template_name}")
            raise TemplateLoadError(template_name)
        except TemplateSyntaxError as e:
            logger.warning(f"Template {template_name} failed to parse: {e}")
            raise TemplateLoadError(
                template_name,
                f"Template {template_name} is malformed: {e.message} (line {e.lineno})",
            )

    def render(self, template_name: str, model: Union[MainConfig, IngressConfig]) -> str:
        """
        Render a template against a configuration model.

        Args:
            template_name: Name of the template file
            model: MainConfig or IngressConfig to bind

        Returns:
            Complete configuration text

        Raises:
            TemplateLoadError: If the template cannot be located or parsed
            RenderError: If the model does not fit the template
        """
        template = self.load_template(template_name)
        edition = self.edition_for(template_name)

        if isinstance(model, MainConfig):
            context = {"main": compose_main(model, edition, self.settings)}
        elif isinstance(model, IngressConfig):
            context = {"ingress": compose_ingress(model, edition)}
        else:
            raise RenderError(
                f"expected MainConfig or IngressConfig, got {type(model).__name__}",
                field="model",
            )

        try:
            text = template.render(**context)
        except TemplateNotFound as e:
            raise TemplateLoadError(e.name or template_name)
        except TemplateSyntaxError as e:
            raise TemplateLoadError(
                e.name or template_name,
                f"Template {e.name or template_name} is malformed: {e.message} (line {e.lineno})",
            )
        except UndefinedError as e:
            raise RenderError(str(e), field=_undefined_field(e))
        except TemplateError as e:
            raise RenderError(str(e))

        logger.debug(f"Rendered {template_name} ({edition.value}, {len(text)} bytes)")
        return text

    def render_main(self, config: MainConfig, edition: Edition = Edition.OSS) -> str:
        """Render the main nginx.conf for an edition."""
        return self.render(MAIN_TEMPLATES[edition], config)

    def render_ingress(self, config: IngressConfig, edition: Edition = Edition.OSS) -> str:
        """Render an ingress configuration for an edition."""
        return self.render(INGRESS_TEMPLATES[edition], config)

    def validate_template(self, template_name: str) -> bool:
        """
        Check if a template exists and is valid.

        Args:
            template_name: Name of the template file

        Returns:
            True if template exists and can be loaded
        """
        try:
            self.load_template(template_name)
            return True
        except TemplateLoadError:
            return False


# Singleton instance
_config_renderer: Optional[ConfigRenderer] = None


def get_config_renderer() -> ConfigRenderer:
    """
    Get the global config renderer instance.

    Returns:
        ConfigRenderer singleton instance
    """
    global _config_renderer
    if _config_renderer is None:
        _config_renderer = ConfigRenderer()
    return _config_renderer


def render(template_name: str, model: Union[MainConfig, IngressConfig]) -> str:
    """Render with the global renderer."""
    return get_config_renderer().render(template_name, model)
