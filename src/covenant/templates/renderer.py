"""Agreement page output (Principle: Determinism).

Wraps an assembled AgreementDocument in a full HTML page or converts it to
plain text using Jinja2 templates. Clause HTML produced by the template
engine is already escaped where it carries data, so it is inserted into the
page as-is; page-level metadata goes through Jinja2 autoescaping.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from covenant.config import CovenantConfig
from covenant.models.document import AgreementDocument
from covenant.models.section import AgreementType
from covenant.renderers.filters import html_to_text, is_empty_section, long_date

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("html", "text", "json")

DOCUMENT_TITLES = {
    AgreementType.TENANCY_AGREEMENT: "Assured Shorthold Tenancy Agreement",
    AgreementType.GUARANTOR_AGREEMENT: "Deed of Guarantee",
}


class DocumentRenderer:
    """Renders assembled agreements to HTML pages, plain text or JSON.

    Usage:
        renderer = DocumentRenderer(config)
        html = renderer.render_html(document)
    """

    def __init__(self, config: CovenantConfig | None = None) -> None:
        """Initialize the document renderer.

        Args:
            config: Covenant configuration
        """
        self.config = config

        # Set up Jinja2 environment with package templates
        self._env = Environment(
            loader=PackageLoader("covenant", "templates"),
            autoescape=select_autoescape(["html", "html.j2", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        # Register custom filters
        self._env.filters["html_to_text"] = html_to_text
        self._env.filters["long_date"] = long_date

    def _render(self, template_name: str, context: dict[str, Any]) -> str:
        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        try:
            rendered = template.render(**context)
        except Exception as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered

    def _build_context(
        self,
        document: AgreementDocument,
        generated_on: date | None,
    ) -> dict[str, Any]:
        """Build the page template context.

        Args:
            document: Assembled agreement
            generated_on: Date printed in the footer; omitted when None so
                output stays byte-stable

        Returns:
            Template context dictionary
        """
        # Sections whose conditionals all came out false are left out of the page
        # body and listed by title in the footer.
        visible = [s for s in document.sections if not is_empty_section(s.html)]
        omitted = [s for s in document.sections if is_empty_section(s.html)]
        return {
            "title": DOCUMENT_TITLES.get(document.agreement_type, "Agreement"),
            "agreement_type": document.agreement_type.value,
            "meta": document.metadata,
            "sections": [
                {
                    "number": index,
                    "key": section.key,
                    "title": Markup(section.title),
                    "html": Markup(section.html),
                    "provenance": section.provenance.value,
                }
                for index, section in enumerate(visible, start=1)
            ],
            "omitted": [Markup(section.title) for section in omitted],
            "fingerprint": document.fingerprint(),
            "generated_on": generated_on,
        }

    def render_html(
        self,
        document: AgreementDocument,
        generated_on: date | None = None,
        template_name: str = "agreement.html.j2",
    ) -> str:
        """Render a complete HTML page for an agreement."""
        return self._render(template_name, self._build_context(document, generated_on))

    def render_text(
        self,
        document: AgreementDocument,
        generated_on: date | None = None,
        template_name: str = "agreement.txt.j2",
    ) -> str:
        """Render an agreement as plain text."""
        return self._render(template_name, self._build_context(document, generated_on))

    def render_json(self, document: AgreementDocument) -> str:
        """Serialize an agreement as JSON."""
        return json.dumps(document.to_dict(), indent=2, sort_keys=True) + "\n"

    def render(
        self,
        document: AgreementDocument,
        output_format: str = "html",
        generated_on: date | None = None,
    ) -> str:
        """Render an agreement in the given output format.

        Raises:
            ValueError: If the format is unknown
        """
        if output_format == "html":
            return self.render_html(document, generated_on)
        if output_format == "text":
            return self.render_text(document, generated_on)
        if output_format == "json":
            return self.render_json(document)
        raise ValueError(f"Invalid output format: {output_format}. Valid: {', '.join(OUTPUT_FORMATS)}")

    def render_to_file(
        self,
        document: AgreementDocument,
        output_path: Path,
        output_format: str = "html",
        generated_on: date | None = None,
    ) -> Path:
        """Render an agreement and write it to a file.

        Args:
            document: Assembled agreement
            output_path: Path to write output file
            output_format: html, text or json
            generated_on: Optional footer date

        Returns:
            Path to written file
        """
        content = self.render(document, output_format, generated_on)

        # Ensure output directory exists
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote agreement to %s", output_path)

        return output_path

    def preview(
        self,
        document: AgreementDocument,
        max_lines: int = 50,
    ) -> str:
        """Generate a plain-text preview of the rendered agreement.

        Args:
            document: Assembled agreement
            max_lines: Maximum lines to include in preview

        Returns:
            Preview string with truncation indicator
        """
        full_content = self.render_text(document)
        lines = full_content.split("\n")

        if len(lines) <= max_lines:
            return full_content

        preview_lines = lines[:max_lines]
        preview_lines.append(f"\n... [{len(lines) - max_lines} more lines] ...")

        return "\n".join(preview_lines)
