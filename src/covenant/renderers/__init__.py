"""Output filters for rendered agreements."""

from covenant.renderers.filters import html_to_text, is_empty_section, long_date

__all__ = ["html_to_text", "is_empty_section", "long_date"]
