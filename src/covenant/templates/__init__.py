"""Covenant templating.

- engine: the clause template grammar used inside stored sections
- renderer: Jinja2 page output for assembled agreements
"""

from covenant.templates.engine import (
    ParsedTemplate,
    RenderResult,
    parse_template,
    render,
    render_with_warnings,
)
from covenant.templates.renderer import DocumentRenderer

__all__ = [
    "DocumentRenderer",
    "ParsedTemplate",
    "RenderResult",
    "parse_template",
    "render",
    "render_with_warnings",
]
