"""Test fixtures for Covenant.

Tenancy data files used by loader and CLI tests:
- tenancy.yaml: A fixed-term room-only tenancy with two tenants and a guarantor

Plus ``make_section`` for building clause rows with readable defaults.
"""

from pathlib import Path

from covenant.models import AgreementSection, AgreementType

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

TENANCY_FILE = FIXTURES_DIR / "tenancy.yaml"

AGENCY_ID = 1
LANDLORD_ID = 7


def make_section(
    key: str,
    order: float,
    landlord_id: int | None = None,
    title: str | None = None,
    content: str | None = None,
    is_active: bool = True,
    agreement_type: AgreementType = AgreementType.TENANCY_AGREEMENT,
    agency_id: int = AGENCY_ID,
) -> AgreementSection:
    """Build a section row.

    Args:
        key: Section key
        order: Display order
        landlord_id: Landlord scope, or None for a default
        title: Title (defaults to the key in title case)
        content: Content (defaults to ``<p>{key}</p>``)
        is_active: Active flag
        agreement_type: Document kind
        agency_id: Owning agency

    Returns:
        Unsaved AgreementSection
    """
    return AgreementSection(
        agency_id=agency_id,
        landlord_id=landlord_id,
        agreement_type=agreement_type,
        section_key=key,
        section_title=title or key.replace("_", " ").title(),
        section_content=content if content is not None else f"<p>{key}</p>",
        section_order=order,
        is_active=is_active,
    )
