from pathlib import Path
from typing import Any, Dict, Optional
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape


TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_template(name: str, context: Dict[str, Any]) -> str:
    return _environment.get_template(name).render(**context)


def render_optional(name: str, context: Dict[str, Any]) -> Optional[str]:
    """Render a template if it exists, otherwise return None."""
    try:
        return render_template(name, context)
    except TemplateNotFound:
        return None
