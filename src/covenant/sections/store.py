"""Agreement section storage (the section management surface).

A SectionStore owns the only durable state of the engine: clause rows.
Stores enforce the key uniqueness invariant at write time, so resolution
never has to choose between two rows with the same key in one scope.

Every write notifies subscribers with the affected scope key
``(agency_id, landlord_id, agreement_type)``; the section cache uses this to
invalidate entries explicitly.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from covenant.models.section import AgreementSection, AgreementType

logger = logging.getLogger(__name__)

ScopeKey = tuple[int, int | None, AgreementType]
WriteListener = Callable[[ScopeKey], None]

# Fields an update may change; id, agency_id and timestamps are store-managed.
UPDATABLE_FIELDS = frozenset({
    "landlord_id",
    "agreement_type",
    "section_key",
    "section_title",
    "section_content",
    "section_order",
    "is_active",
})


class SectionStoreError(Exception):
    """Base class for section storage errors."""


class SectionNotFoundError(SectionStoreError):
    """Raised when a section id does not exist."""

    def __init__(self, section_id: int) -> None:
        self.section_id = section_id
        super().__init__(f"Agreement section not found: {section_id}")


class DuplicateSectionError(SectionStoreError):
    """Raised when a write would create a second row with the same key in a scope."""

    def __init__(self, section: AgreementSection) -> None:
        self.section_key = section.section_key
        self.scope = section.scope
        scope_label = (
            "agency default" if section.landlord_id is None
            else f"landlord {section.landlord_id}"
        )
        super().__init__(
            f"Section '{section.section_key}' already exists for {scope_label} "
            f"({section.agreement_type.value}, agency {section.agency_id})"
        )


class SectionValidationError(SectionStoreError):
    """Raised when a section row is invalid."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid agreement section: " + "; ".join(problems))


def sort_sections(sections: Iterable[AgreementSection]) -> list[AgreementSection]:
    """Sort rows by (section_order, section_key)."""
    return sorted(sections, key=lambda s: (s.section_order, s.section_key))


class SectionStore(ABC):
    """Abstract clause storage.

    Implementations provide the primitive reads and writes; validation,
    uniqueness checks, duplication and change notification live here so every
    backend behaves identically.
    """

    def __init__(self) -> None:
        self._listeners: list[WriteListener] = []

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: WriteListener) -> None:
        """Register a callback invoked with the scope key of every write."""
        self._listeners.append(listener)

    def _notify(self, *scopes: ScopeKey) -> None:
        for scope in dict.fromkeys(scopes):
            for listener in self._listeners:
                listener(scope)

    # =========================================================================
    # Backend primitives
    # =========================================================================

    @abstractmethod
    def fetch(
        self,
        agency_id: int,
        agreement_type: AgreementType,
        landlord_id: int | None,
        include_inactive: bool = False,
    ) -> list[AgreementSection]:
        """Load the rows of exactly one scope.

        Args:
            agency_id: Agency
            agreement_type: Document kind
            landlord_id: Landlord, or None for the agency defaults
            include_inactive: Also return inactive rows

        Returns:
            Rows sorted by (section_order, section_key)
        """

    @abstractmethod
    def get(self, section_id: int) -> AgreementSection:
        """Return one row.

        Raises:
            SectionNotFoundError: If the id does not exist
        """

    @abstractmethod
    def list_sections(
        self,
        agency_id: int,
        agreement_type: AgreementType | None = None,
    ) -> list[AgreementSection]:
        """Return every row of an agency, defaults and landlord rows alike."""

    @abstractmethod
    def _insert(self, section: AgreementSection) -> AgreementSection:
        """Persist a new row and return it with its id."""

    @abstractmethod
    def _save(self, section: AgreementSection) -> AgreementSection:
        """Persist changes to an existing row."""

    @abstractmethod
    def _remove(self, section_id: int) -> None:
        """Delete a row."""

    @abstractmethod
    def _swap_scope(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType,
        sections: list[AgreementSection],
    ) -> tuple[int, list[AgreementSection]]:
        """Atomically replace every row of a scope with already checked rows.

        Returns:
            Number of rows removed and the inserted rows
        """

    # =========================================================================
    # Validated writes
    # =========================================================================

    def _check(self, section: AgreementSection) -> None:
        problems = section.validate()
        if problems:
            raise SectionValidationError(problems)

        siblings = self.fetch(
            section.agency_id,
            section.agreement_type,
            section.landlord_id,
            include_inactive=True,
        )
        for sibling in siblings:
            if sibling.section_key == section.section_key and sibling.id != section.id:
                raise DuplicateSectionError(section)

    def create(self, section: AgreementSection) -> AgreementSection:
        """Create a section.

        Raises:
            SectionValidationError: If fields are invalid
            DuplicateSectionError: If the key already exists in the scope
        """
        self._check(section.copy(id=None))
        created = self._insert(section.copy(id=None))
        logger.info(
            "Created section %s (%s) id=%s",
            created.section_key,
            "default" if created.is_default else f"landlord {created.landlord_id}",
            created.id,
        )
        self._notify(created.scope)
        return created

    def update(self, section_id: int, **changes: Any) -> AgreementSection:
        """Update fields of a section.

        Raises:
            SectionNotFoundError: If the id does not exist
            SectionValidationError: If fields are invalid or unknown
            DuplicateSectionError: If the new key collides within the scope
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise SectionValidationError([f"Cannot update field(s): {', '.join(sorted(unknown))}"])

        existing = self.get(section_id)
        try:
            updated = existing.copy(**changes, updated_at=datetime.now(UTC))
        except ValueError as e:
            raise SectionValidationError([str(e)]) from e

        self._check(updated)
        saved = self._save(updated)
        logger.info("Updated section %s id=%s", saved.section_key, saved.id)
        self._notify(existing.scope, saved.scope)
        return saved

    def delete(self, section_id: int) -> AgreementSection:
        """Delete a section and return the deleted row.

        Deleting a landlord override makes resolution fall back to the
        agency default with the same key; the default row is untouched.

        Raises:
            SectionNotFoundError: If the id does not exist
        """
        existing = self.get(section_id)
        self._remove(section_id)
        logger.info("Deleted section %s id=%s", existing.section_key, section_id)
        self._notify(existing.scope)
        return existing

    def duplicate(self, section_id: int, landlord_id: int | None) -> AgreementSection:
        """Copy a section into a landlord scope, typically to start an override.

        Raises:
            SectionNotFoundError: If the id does not exist
            DuplicateSectionError: If the landlord already has that key
        """
        source = self.get(section_id)
        now = datetime.now(UTC)
        return self.create(
            source.copy(id=None, landlord_id=landlord_id, created_at=now, updated_at=now)
        )

    def replace_scope(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType,
        sections: Iterable[AgreementSection],
    ) -> list[AgreementSection]:
        """Delete every row of a scope and insert the given sections.

        Used by seeding. Sections are rescoped to the target before insert.
        The whole batch is checked before anything is removed, and the swap
        happens as one unit, so a rejected batch leaves the scope as it was.

        Raises:
            SectionValidationError: If any section is invalid
            DuplicateSectionError: If two sections share a key
        """
        scoped = [
            section.copy(
                id=None,
                agency_id=agency_id,
                landlord_id=landlord_id,
                agreement_type=agreement_type,
            )
            for section in sections
        ]
        seen: set[str] = set()
        for index, section in enumerate(scoped):
            problems = section.validate()
            if problems:
                raise SectionValidationError([f"[{index}] {p}" for p in problems])
            if section.section_key in seen:
                raise DuplicateSectionError(section)
            seen.add(section.section_key)

        removed, created = self._swap_scope(agency_id, landlord_id, agreement_type, scoped)
        self._notify((agency_id, landlord_id, agreement_type))

        logger.info(
            "Replaced %d section(s) with %d in scope agency=%s landlord=%s type=%s",
            removed, len(created), agency_id, landlord_id, agreement_type.value,
        )
        return created


class InMemorySectionStore(SectionStore):
    """Thread-safe in-process store.

    Rows are copied on the way in and out so callers can never mutate stored
    state behind the store's back.
    """

    def __init__(self, sections: Iterable[AgreementSection] = ()) -> None:
        super().__init__()
        self._rows: dict[int, AgreementSection] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        for section in sections:
            self.create(section)

    def fetch(
        self,
        agency_id: int,
        agreement_type: AgreementType,
        landlord_id: int | None,
        include_inactive: bool = False,
    ) -> list[AgreementSection]:
        with self._lock:
            rows = [
                row.copy()
                for row in self._rows.values()
                if row.agency_id == agency_id
                and row.agreement_type == agreement_type
                and row.landlord_id == landlord_id
                and (include_inactive or row.is_active)
            ]
        return sort_sections(rows)

    def get(self, section_id: int) -> AgreementSection:
        with self._lock:
            row = self._rows.get(section_id)
            if row is None:
                raise SectionNotFoundError(section_id)
            return row.copy()

    def list_sections(
        self,
        agency_id: int,
        agreement_type: AgreementType | None = None,
    ) -> list[AgreementSection]:
        with self._lock:
            rows = [
                row.copy()
                for row in self._rows.values()
                if row.agency_id == agency_id
                and (agreement_type is None or row.agreement_type == agreement_type)
            ]
        return sort_sections(rows)

    def _insert(self, section: AgreementSection) -> AgreementSection:
        with self._lock:
            stored = section.copy(id=next(self._ids))
            self._rows[stored.id] = stored  # type: ignore[index]
            return stored.copy()

    def _save(self, section: AgreementSection) -> AgreementSection:
        with self._lock:
            if section.id not in self._rows:
                raise SectionNotFoundError(section.id)  # type: ignore[arg-type]
            self._rows[section.id] = section.copy()  # type: ignore[index]
            return section.copy()

    def _remove(self, section_id: int) -> None:
        with self._lock:
            if self._rows.pop(section_id, None) is None:
                raise SectionNotFoundError(section_id)

    def _swap_scope(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType,
        sections: list[AgreementSection],
    ) -> tuple[int, list[AgreementSection]]:
        with self._lock:
            doomed = [
                row_id
                for row_id, row in self._rows.items()
                if row.scope == (agency_id, landlord_id, agreement_type)
            ]
            for row_id in doomed:
                del self._rows[row_id]
            return len(doomed), [self._insert(section) for section in sections]

    # Validation and insert must be atomic for the in-memory backend.
    def create(self, section: AgreementSection) -> AgreementSection:
        with self._lock:
            return super().create(section)

    def update(self, section_id: int, **changes: Any) -> AgreementSection:
        with self._lock:
            return super().update(section_id, **changes)
