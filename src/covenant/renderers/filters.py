"""Jinja2 filters for agreement page output.

These filters shape already-rendered clause HTML for the page wrapper and for
plain-text output. They never touch clause templates themselves.
"""

import re

from markupsafe import Markup

from covenant.utils.formatting import format_date

# Block-level closing tags that end a line in plain-text output
_LINE_BREAK_RE = re.compile(r"<br\s*/?>|</(?:p|li|tr|h[1-6]|div|ul|ol|table|thead|tbody)>", re.IGNORECASE)
_LIST_ITEM_RE = re.compile(r"<li[^>]*>", re.IGNORECASE)
_CELL_RE = re.compile(r"</t[dh]>\s*(?=<t[dh])", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACES_RE = re.compile(r"[ \t]+")


def html_to_text(html: str) -> str:
    """Convert rendered clause HTML to readable plain text.

    Block elements end lines, list items become bullets, table cells are
    separated by " | ", and entities are decoded.

    Examples:
        >>> html_to_text("<p>Rent: &pound;125.00</p><ul><li>One</li><li>Two</li></ul>")
        'Rent: £125.00\\n- One\\n- Two'
    """
    if not html:
        return ""

    text = _CELL_RE.sub(" | ", html)
    text = _LIST_ITEM_RE.sub("- ", text)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = Markup(text).unescape()

    lines = [_SPACES_RE.sub(" ", line).strip() for line in text.split("\n")]
    result = "\n".join(lines)

    # Clean up excessive blank lines
    result = re.sub(r"\n{3,}", "\n\n", result)
    return result.strip()


def long_date(value: object) -> str:
    """Format a date as "01 September 2025"."""
    return format_date(value, "long")  # type: ignore[arg-type]


def is_empty_section(content: str) -> bool:
    """Check if rendered section content is effectively empty.

    Args:
        content: Rendered HTML

    Returns:
        True if nothing but markup and whitespace remains
    """
    if not content:
        return True
    return not _TAG_RE.sub("", content).strip()
