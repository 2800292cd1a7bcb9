"""Covenant data models.

This module exports all core entities used throughout the application:
- AgreementSection: Stored clause template row
- ResolvedSection: Merged section with provenance
- RenderContext: Variables, flags and record lists for one render
- Tenancy, TenancyMember, Property, Landlord, CompanyInfo, Guarantor: Input records
- AgreementDocument: Rendered, ordered agreement
"""

from covenant.models.context import RenderContext
from covenant.models.document import (
    AgreementDocument,
    RenderedSection,
    RenderWarning,
    WarningKind,
)
from covenant.models.section import (
    AgreementSection,
    AgreementType,
    Provenance,
    ResolvedSection,
)
from covenant.models.tenancy import (
    CompanyInfo,
    Guarantor,
    Landlord,
    Property,
    Tenancy,
    TenancyMember,
    TenancyRecords,
    TenancyType,
)

__all__ = [
    "AgreementDocument",
    "AgreementSection",
    "AgreementType",
    "CompanyInfo",
    "Guarantor",
    "Landlord",
    "Property",
    "Provenance",
    "RenderContext",
    "RenderWarning",
    "RenderedSection",
    "ResolvedSection",
    "Tenancy",
    "TenancyMember",
    "TenancyRecords",
    "TenancyType",
    "WarningKind",
]
