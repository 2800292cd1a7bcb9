"""Agreement section storage, caching, seeding and resolution."""

from covenant.sections.cache import SectionCache
from covenant.sections.resolver import SectionResolver, merge_sections
from covenant.sections.seed import SeedError, seed_sections
from covenant.sections.sql import SqlSectionStore
from covenant.sections.store import (
    DuplicateSectionError,
    InMemorySectionStore,
    SectionNotFoundError,
    SectionStore,
    SectionStoreError,
    SectionValidationError,
)

__all__ = [
    "DuplicateSectionError",
    "InMemorySectionStore",
    "SectionCache",
    "SectionNotFoundError",
    "SectionResolver",
    "SectionStore",
    "SectionStoreError",
    "SectionValidationError",
    "SeedError",
    "SqlSectionStore",
    "merge_sections",
    "seed_sections",
]
