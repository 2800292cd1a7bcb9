"""Section resolution: merge agency defaults with landlord sections.

A landlord row sharing a key with a default replaces that default's title
and content (``override``); a landlord row with a new key is appended at its
own order (``custom``). Inactive rows are dropped before merging, so an
inactive override lets the active default surface.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from covenant.models.section import (
    AgreementSection,
    AgreementType,
    Provenance,
    ResolvedSection,
)

logger = logging.getLogger(__name__)


class SectionSource(Protocol):
    """Anything that can load the rows of one scope (a store or a cache)."""

    def fetch(
        self,
        agency_id: int,
        agreement_type: AgreementType,
        landlord_id: int | None,
        include_inactive: bool = False,
    ) -> list[AgreementSection]: ...


def merge_sections(
    defaults: Iterable[AgreementSection],
    landlord_sections: Iterable[AgreementSection],
) -> list[ResolvedSection]:
    """Merge default and landlord rows into the ordered document skeleton.

    Args:
        defaults: Agency default rows
        landlord_sections: Rows of one landlord

    Returns:
        Resolved sections sorted by (order, key)
    """
    by_key = {section.section_key: section for section in landlord_sections}
    default_keys: set[str] = set()
    resolved: list[ResolvedSection] = []

    for default in defaults:
        default_keys.add(default.section_key)
        override = by_key.get(default.section_key)
        if override is not None:
            resolved.append(ResolvedSection.from_section(override, Provenance.OVERRIDE))
        else:
            resolved.append(ResolvedSection.from_section(default, Provenance.DEFAULT))

    for key, section in by_key.items():
        if key not in default_keys:
            resolved.append(ResolvedSection.from_section(section, Provenance.CUSTOM))

    return sorted(resolved, key=lambda s: s.sort_key)


class SectionResolver:
    """Resolves the section list for one (agency, landlord, agreement type).

    Read-only with respect to its source; safe to share across threads.
    """

    def __init__(self, source: SectionSource) -> None:
        self.source = source

    def resolve(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType = AgreementType.TENANCY_AGREEMENT,
        include_inactive: bool = False,
    ) -> list[ResolvedSection]:
        """Resolve sections for a landlord.

        Args:
            agency_id: Agency
            landlord_id: Landlord, or None to resolve agency defaults only
            agreement_type: Document kind
            include_inactive: Keep inactive rows (authoring previews)

        Returns:
            Ordered resolved sections
        """
        agreement_type = AgreementType.parse(agreement_type)
        defaults = self.source.fetch(
            agency_id, agreement_type, None, include_inactive=include_inactive
        )
        landlord_sections: list[AgreementSection] = []
        if landlord_id is not None:
            landlord_sections = self.source.fetch(
                agency_id, agreement_type, landlord_id, include_inactive=include_inactive
            )

        resolved = merge_sections(defaults, landlord_sections)
        logger.debug(
            "Resolved %d section(s) for agency=%s landlord=%s type=%s "
            "(%d default, %d override, %d custom)",
            len(resolved),
            agency_id,
            landlord_id,
            agreement_type.value,
            sum(1 for s in resolved if s.provenance is Provenance.DEFAULT),
            sum(1 for s in resolved if s.provenance is Provenance.OVERRIDE),
            sum(1 for s in resolved if s.provenance is Provenance.CUSTOM),
        )
        return resolved
