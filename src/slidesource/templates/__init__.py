"""Slide markup templates.

Jinja2 templates rendering the slide markup of all slide sources. Text values
are escaped automatically. Values which already are markup, like article
content or nested fragments, are marked safe within the templates. Missing
values and None render as an empty string.
"""

import logging
import os.path

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from ..common import ConfigError


# Directory containing the template files.
TEMPLATE_DIR = os.path.dirname(__file__)

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(['html', 'xml']),
    trim_blocks=True,
    lstrip_blocks=True,
    finalize=lambda value: "" if value is None else value
)


def render(name, **values):
    """Render slide markup template.

    :param name: template name without extension (e.g. "slide")
    :type name: str
    :param values: template variables
    :type values: dict
    :return: rendered markup
    :rtype: str
    :raises: ConfigError
    """
    try:
        template = _env.get_template(f"{name}.html")
    except TemplateError as e:
        raise ConfigError(f"Unable to load slide template '{name}'. {e}")
    logging.debug(f"Templates: Rendering template '{name}'.")
    return template.render(**values)
