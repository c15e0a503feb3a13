"""Jinja2 rendering for notification emails and retrieval pages."""
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined


class TemplateRenderer:
    """Render templates from the package template directory.

    Autoescape is off: secret values are embedded verbatim in the retrieval
    page.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        base_path = template_dir or Path(__file__).parent / "templates"
        self._environment = Environment(
            loader=FileSystemLoader(str(base_path)),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self._environment.get_template(template_name).render(**context)
