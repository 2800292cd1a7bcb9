"""Unit tests for agreement page output."""

import json
from datetime import date
from pathlib import Path

import pytest

from covenant.models import AgreementDocument, AgreementType, Provenance, RenderedSection
from covenant.templates import DocumentRenderer


@pytest.fixture
def document() -> AgreementDocument:
    """Create a small assembled agreement."""
    return AgreementDocument(
        agreement_type=AgreementType.TENANCY_AGREEMENT,
        sections=[
            RenderedSection("parties", "Parties", "<p>Between A &amp; B</p>", Provenance.DEFAULT, 1),
            RenderedSection("pets", "Pets", "<p>  </p>", Provenance.CUSTOM, 2),
            RenderedSection("rent", "Rent", "<ul><li>One</li></ul>", Provenance.OVERRIDE, 3),
        ],
        metadata={
            "property_address": "1 <High> St",
            "primary_tenant_name": "Alice",
            "other_tenants_names_list": "Bob Brown",
            "start_date": "01 September 2025",
            "end_date": "",
        },
    )


class TestDocumentRenderer:
    """Tests for DocumentRenderer."""

    @pytest.fixture
    def renderer(self) -> DocumentRenderer:
        """Create a renderer."""
        return DocumentRenderer()

    def test_render_html(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test the HTML page wrapper."""
        html = renderer.render_html(document)

        assert html.startswith("<!DOCTYPE html>")
        assert "<h1>Assured Shorthold Tenancy Agreement</h1>" in html
        assert "<p>Between A &amp; B</p>" in html
        assert 'data-provenance="override"' in html
        assert "<strong>Other Tenants:</strong> Bob Brown" in html
        assert "(rolling monthly)" in html
        assert document.fingerprint()[:16] in html

    def test_metadata_is_escaped(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that page metadata goes through autoescaping."""
        html = renderer.render_html(document)

        assert "1 &lt;High&gt; St" in html
        assert "1 <High> St" not in html

    def test_empty_sections_omitted(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that blank sections leave the body and are listed in the footer."""
        html = renderer.render_html(document)

        assert "<h2>1. Parties</h2>" in html
        assert "<h2>2. Rent</h2>" in html
        assert 'id="pets"' not in html
        assert "<p>Clauses not applicable to this agreement: Pets</p>" in html

    def test_no_omitted_clauses_note(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that the footer note only appears when a clause was left out."""
        document.sections.pop(1)

        assert "not applicable" not in renderer.render_html(document)
        assert "not applicable" not in renderer.render_text(document)

    def test_generated_on(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that the footer date only appears when given."""
        assert "Generated on" not in renderer.render_html(document)
        assert "Generated on 01 September 2025" in renderer.render_html(document, date(2025, 9, 1))

    def test_guarantor_title(self, renderer: DocumentRenderer) -> None:
        """Test the title for a deed of guarantee."""
        document = AgreementDocument(agreement_type=AgreementType.GUARANTOR_AGREEMENT)

        assert "<h1>Deed of Guarantee</h1>" in renderer.render_html(document)

    def test_render_text(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test plain-text output."""
        text = renderer.render_text(document)

        assert text.startswith("ASSURED SHORTHOLD TENANCY AGREEMENT\n")
        assert "Property: 1 <High> St" in text
        assert "1. Parties\n\nBetween A & B" in text
        assert "2. Rent\n\n- One" in text
        assert "Clauses not applicable to this agreement: Pets\n" in text
        assert "<p>" not in text

    def test_render_json(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test JSON output keeps every section."""
        output = renderer.render_json(document)
        data = json.loads(output)

        assert output.endswith("\n")
        assert data["fingerprint"] == document.fingerprint()
        assert [s["key"] for s in data["sections"]] == ["parties", "pets", "rent"]

    def test_render_dispatch(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test format dispatch."""
        assert renderer.render(document, "text") == renderer.render_text(document)
        assert renderer.render(document, "json") == renderer.render_json(document)

    def test_invalid_format(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that unknown formats raise ValueError."""
        with pytest.raises(ValueError, match="Invalid output format"):
            renderer.render(document, "pdf")

    def test_byte_stable(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test that rendering twice gives identical output."""
        assert renderer.render_html(document) == renderer.render_html(document)
        assert renderer.render_text(document) == renderer.render_text(document)

    def test_render_to_file(
        self,
        renderer: DocumentRenderer,
        document: AgreementDocument,
        tmp_path: Path,
    ) -> None:
        """Test writing output creates parent directories."""
        output_path = tmp_path / "agreements" / "alice.html"

        result = renderer.render_to_file(document, output_path)

        assert result == output_path
        assert output_path.read_text(encoding="utf-8") == renderer.render_html(document)

    def test_preview_truncates(self, renderer: DocumentRenderer, document: AgreementDocument) -> None:
        """Test the truncated text preview."""
        assert renderer.preview(document, max_lines=200) == renderer.render_text(document)
        assert "more lines] ..." in renderer.preview(document, max_lines=3)
