"""Explicit section cache.

Rows are cached per scope key ``(agency_id, landlord_id, agreement_type)``.
Each entry holds every row of the scope, inactive ones included, so active
and inactive reads share one entry. The cache subscribes to its store and
drops an entry whenever a write touches that scope.
"""

import logging
import threading

from covenant.models.section import AgreementSection, AgreementType
from covenant.sections.store import ScopeKey, SectionStore

logger = logging.getLogger(__name__)


class SectionCache:
    """Read-through cache in front of a SectionStore.

    Exposes the same ``fetch`` signature as the store, so a SectionResolver
    can read from either.

    Usage:
        cache = SectionCache(store)
        resolver = SectionResolver(cache)
    """

    def __init__(self, store: SectionStore) -> None:
        self.store = store
        self._entries: dict[ScopeKey, list[AgreementSection]] = {}
        self._lock = threading.Lock()
        self._generation = 0
        self.hits = 0
        self.misses = 0
        store.subscribe(self.invalidate)

    def fetch(
        self,
        agency_id: int,
        agreement_type: AgreementType,
        landlord_id: int | None,
        include_inactive: bool = False,
    ) -> list[AgreementSection]:
        """Return the rows of one scope, loading them on a miss."""
        key: ScopeKey = (agency_id, landlord_id, agreement_type)
        with self._lock:
            rows = self._entries.get(key)
            generation = self._generation
            if rows is None:
                self.misses += 1
            else:
                self.hits += 1

        if rows is None:
            # Load outside the lock; the store notifies while holding its own lock.
            rows = self.store.fetch(agency_id, agreement_type, landlord_id, include_inactive=True)
            with self._lock:
                if self._generation == generation:
                    self._entries[key] = rows

        return [row.copy() for row in rows if include_inactive or row.is_active]

    def invalidate(self, key: ScopeKey) -> None:
        """Drop one scope entry."""
        with self._lock:
            self._generation += 1
            if self._entries.pop(key, None) is not None:
                logger.debug("Invalidated section cache for scope %s", key)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
