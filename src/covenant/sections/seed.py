"""Seed section rows from a YAML clause library.

The library maps agreement types to lists of section mappings::

    tenancy_agreement:
      - section_key: rent
        section_title: Rent
        section_order: 4
        section_content: "<p>...</p>"

The bundled library (``covenant/data/default_sections.yaml``) holds the
standard tenancy and guarantor clauses.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from covenant.models.section import AgreementSection, AgreementType
from covenant.sections.store import SectionStore

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY = "default_sections.yaml"


class SeedError(ValueError):
    """Raised when a clause library file is malformed."""


def read_library(path: Path | None = None) -> dict[str, Any]:
    """Read a clause library, defaulting to the bundled one."""
    if path is None:
        text = resources.files("covenant.data").joinpath(DEFAULT_LIBRARY).read_text(encoding="utf-8")
    else:
        text = path.read_text(encoding="utf-8")

    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise SeedError("Clause library must map agreement types to section lists")
    return data


def parse_library(
    data: dict[str, Any],
    agency_id: int,
    landlord_id: int | None = None,
) -> dict[AgreementType, list[AgreementSection]]:
    """Convert library data into section rows grouped by agreement type.

    Raises:
        SeedError: If an agreement type or section entry is invalid
    """
    library: dict[AgreementType, list[AgreementSection]] = {}
    for type_name, entries in data.items():
        try:
            agreement_type = AgreementType.parse(type_name)
        except ValueError as e:
            raise SeedError(str(e)) from e

        sections: list[AgreementSection] = []
        for index, entry in enumerate(entries or []):
            if not isinstance(entry, dict):
                raise SeedError(f"{type_name}[{index}]: expected a mapping")
            try:
                sections.append(AgreementSection.from_dict({
                    **entry,
                    "agency_id": agency_id,
                    "landlord_id": landlord_id,
                    "agreement_type": agreement_type,
                }))
            except (KeyError, TypeError, ValueError) as e:
                raise SeedError(f"{type_name}[{index}]: invalid section ({e})") from e
        library[agreement_type] = sections
    return library


def seed_sections(
    store: SectionStore,
    agency_id: int,
    landlord_id: int | None = None,
    path: Path | None = None,
    agreement_types: list[AgreementType] | None = None,
) -> dict[AgreementType, list[AgreementSection]]:
    """Replace the sections of a scope with those from a clause library.

    Existing rows of each seeded (agency, landlord, agreement type) scope are
    replaced, so seeding twice leaves exactly one copy. A scope whose new rows
    fail validation keeps its existing rows.

    Args:
        store: Target section store
        agency_id: Agency to seed
        landlord_id: Landlord scope, or None for agency defaults
        path: Library file, or None for the bundled library
        agreement_types: Limit seeding to these agreement types

    Returns:
        Created rows by agreement type

    Raises:
        SeedError: If the library file is malformed
        SectionStoreError: If a section is invalid or a key repeats
    """
    library = parse_library(read_library(path), agency_id, landlord_id)
    created: dict[AgreementType, list[AgreementSection]] = {}

    for agreement_type, sections in library.items():
        if agreement_types and agreement_type not in agreement_types:
            continue
        created[agreement_type] = store.replace_scope(
            agency_id, landlord_id, agreement_type, sections
        )
        logger.info(
            "Seeded %d %s section(s) for agency %s%s",
            len(sections),
            agreement_type.value,
            agency_id,
            "" if landlord_id is None else f" landlord {landlord_id}",
        )

    return created
