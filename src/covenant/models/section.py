"""Agreement section entities.

This module contains the clause-level entities:
- AgreementType: Kind of document a section belongs to
- Provenance: Where a resolved section came from (default, override, custom)
- AgreementSection: A persisted clause template row
- ResolvedSection: One entry of the merged, ordered document skeleton
"""

import re
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

SECTION_KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_]*$")


class AgreementType(str, Enum):
    """Kind of agreement document."""

    TENANCY_AGREEMENT = "tenancy_agreement"
    GUARANTOR_AGREEMENT = "guarantor_agreement"

    @classmethod
    def parse(cls, value: "str | AgreementType") -> "AgreementType":
        """Parse an agreement type, raising ValueError with valid choices."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Invalid agreement_type: {value}. Valid: {valid}") from None


class Provenance(str, Enum):
    """Origin of a resolved section."""

    DEFAULT = "default"  # agency-wide clause
    OVERRIDE = "override"  # landlord clause replacing a default with the same key
    CUSTOM = "custom"  # landlord clause with no default counterpart


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class AgreementSection:
    """A stored clause template.

    ``landlord_id`` of None marks an agency-wide default. A landlord section
    sharing a ``section_key`` with a default overrides it; otherwise it is a
    custom clause for that landlord.

    Attributes:
        agency_id: Owning agency
        section_key: Identifier, unique within (agency, landlord, agreement type)
        section_title: Clause heading (may contain template tokens)
        section_content: Clause body template (trusted HTML + template grammar)
        section_order: Display position; fractional values allowed
        landlord_id: Landlord scope, or None for an agency default
        agreement_type: Document kind
        is_active: Inactive sections are skipped during resolution
        id: Store-assigned identifier
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    agency_id: int
    section_key: str
    section_title: str
    section_content: str
    section_order: float
    landlord_id: int | None = None
    agreement_type: AgreementType = AgreementType.TENANCY_AGREEMENT
    is_active: bool = True
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        """Normalize enum and numeric fields."""
        self.agreement_type = AgreementType.parse(self.agreement_type)
        if isinstance(self.section_order, bool):
            raise ValueError("section_order must be a number")
        self.section_order = float(self.section_order)

    @property
    def is_default(self) -> bool:
        """Return True for agency-wide default sections."""
        return self.landlord_id is None

    @property
    def scope(self) -> tuple[int, int | None, AgreementType]:
        """Return the (agency, landlord, agreement type) uniqueness scope."""
        return (self.agency_id, self.landlord_id, self.agreement_type)

    def validate(self) -> list[str]:
        """Validate field contents.

        Returns:
            List of problems; empty when the section is valid
        """
        problems: list[str] = []
        if not self.section_key or not SECTION_KEY_PATTERN.match(self.section_key):
            problems.append(
                f"section_key must be lowercase letters, digits and underscores "
                f"(got {self.section_key!r})"
            )
        if not self.section_title or not self.section_title.strip():
            problems.append("section_title is required")
        if self.section_content is None:
            problems.append("section_content is required")
        if self.section_order != self.section_order:  # NaN
            problems.append("section_order must be a number")
        return problems

    def copy(self, **changes: Any) -> "AgreementSection":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "agency_id": self.agency_id,
            "landlord_id": self.landlord_id,
            "agreement_type": self.agreement_type.value,
            "section_key": self.section_key,
            "section_title": self.section_title,
            "section_content": self.section_content,
            "section_order": self.section_order,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgreementSection":
        """Create a section from a dictionary (YAML seed files, API payloads)."""
        return cls(
            agency_id=int(data["agency_id"]),
            section_key=data["section_key"],
            section_title=data["section_title"],
            section_content=data["section_content"],
            section_order=data["section_order"],
            landlord_id=data.get("landlord_id"),
            agreement_type=data.get("agreement_type", AgreementType.TENANCY_AGREEMENT),
            is_active=data.get("is_active", True),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class ResolvedSection:
    """A section after default/override/custom merging.

    Attributes:
        key: Section key
        title: Title template
        content: Content template
        provenance: default, override or custom
        order: Display order used for sorting
        is_active: Whether the underlying row is active (False only in
            authoring previews that include inactive sections)
    """

    key: str
    title: str
    content: str
    provenance: Provenance
    order: float
    is_active: bool = True

    @classmethod
    def from_section(
        cls,
        section: AgreementSection,
        provenance: Provenance,
    ) -> "ResolvedSection":
        """Build a resolved entry from a stored row."""
        return cls(
            key=section.section_key,
            title=section.section_title,
            content=section.section_content,
            provenance=provenance,
            order=section.section_order,
            is_active=section.is_active,
        )

    @property
    def sort_key(self) -> tuple[float, str]:
        """Return the (order, key) sort key."""
        return (self.order, self.key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "title": self.title,
            "content": self.content,
            "provenance": self.provenance.value,
            "order": self.order,
            "is_active": self.is_active,
        }
