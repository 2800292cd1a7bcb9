"""SQLAlchemy-backed section store.

Works with any SQLAlchemy database URL; SQLite is the default for local
use. The table carries a unique constraint on
(agency_id, landlord_id, agreement_type, section_key). SQL treats NULLs as
distinct, so agency defaults (landlord_id NULL) get a partial unique index
over (agency_id, agreement_type, section_key) as well.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    Select,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from covenant.models.section import AgreementSection, AgreementType
from covenant.sections.store import (
    DuplicateSectionError,
    SectionNotFoundError,
    SectionStore,
    SectionStoreError,
    sort_sections,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class AgreementSectionRow(Base):
    """ORM row for agreement_sections."""

    __tablename__ = "agreement_sections"
    __table_args__ = (
        UniqueConstraint(
            "agency_id", "landlord_id", "agreement_type", "section_key",
            name="uq_agreement_sections_scope_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    agency_id = Column(Integer, nullable=False, index=True)
    landlord_id = Column(Integer, nullable=True, index=True)
    agreement_type = Column(String(50), nullable=False, default=AgreementType.TENANCY_AGREEMENT.value)
    section_key = Column(String(100), nullable=False)
    section_title = Column(String(255), nullable=False)
    section_content = Column(Text, nullable=False)
    section_order = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def to_section(self) -> AgreementSection:
        """Convert to the domain dataclass."""
        return AgreementSection(
            id=self.id,
            agency_id=self.agency_id,
            landlord_id=self.landlord_id,
            agreement_type=AgreementType(self.agreement_type),
            section_key=self.section_key,
            section_title=self.section_title,
            section_content=self.section_content,
            section_order=self.section_order,
            is_active=self.is_active,
            created_at=_aware(self.created_at),
            updated_at=_aware(self.updated_at),
        )

    def apply(self, section: AgreementSection) -> None:
        """Copy domain fields onto the row."""
        self.agency_id = section.agency_id
        self.landlord_id = section.landlord_id
        self.agreement_type = section.agreement_type.value
        self.section_key = section.section_key
        self.section_title = section.section_title
        self.section_content = section.section_content
        self.section_order = section.section_order
        self.is_active = section.is_active
        self.created_at = section.created_at
        self.updated_at = section.updated_at

    def __repr__(self) -> str:
        return (
            f"<AgreementSectionRow(id={self.id}, key={self.section_key}, "
            f"landlord_id={self.landlord_id}, type={self.agreement_type})>"
        )


Index(
    "uq_agreement_sections_default_key",
    AgreementSectionRow.agency_id,
    AgreementSectionRow.agreement_type,
    AgreementSectionRow.section_key,
    unique=True,
    sqlite_where=AgreementSectionRow.landlord_id.is_(None),
    postgresql_where=AgreementSectionRow.landlord_id.is_(None),
)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip.
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class SqlSectionStore(SectionStore):
    """Section store persisted through SQLAlchemy.

    Usage:
        store = SqlSectionStore("sqlite:///covenant.db")
        store.create(AgreementSection(...))
    """

    def __init__(self, url: str = "sqlite:///:memory:", echo: bool = False) -> None:
        """Initialize the store and create the table if needed.

        Args:
            url: SQLAlchemy database URL
            echo: Log emitted SQL
        """
        super().__init__()
        options: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees a fresh empty database.
            options["poolclass"] = StaticPool
        self.engine = create_engine(url, **options)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.debug("Section store ready: %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional session."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _scope_select(agency_id: int, agreement_type: AgreementType, landlord_id: int | None) -> Select:
        stmt = select(AgreementSectionRow).where(
            AgreementSectionRow.agency_id == agency_id,
            AgreementSectionRow.agreement_type == agreement_type.value,
        )
        if landlord_id is None:
            return stmt.where(AgreementSectionRow.landlord_id.is_(None))
        return stmt.where(AgreementSectionRow.landlord_id == landlord_id)

    def fetch(
        self,
        agency_id: int,
        agreement_type: AgreementType,
        landlord_id: int | None,
        include_inactive: bool = False,
    ) -> list[AgreementSection]:
        stmt = self._scope_select(agency_id, agreement_type, landlord_id)
        if not include_inactive:
            stmt = stmt.where(AgreementSectionRow.is_active.is_(True))

        with self.session() as session:
            rows = session.scalars(stmt).all()
            return sort_sections(row.to_section() for row in rows)

    def get(self, section_id: int) -> AgreementSection:
        with self.session() as session:
            row = session.get(AgreementSectionRow, section_id)
            if row is None:
                raise SectionNotFoundError(section_id)
            return row.to_section()

    def list_sections(
        self,
        agency_id: int,
        agreement_type: AgreementType | None = None,
    ) -> list[AgreementSection]:
        stmt = select(AgreementSectionRow).where(AgreementSectionRow.agency_id == agency_id)
        if agreement_type is not None:
            stmt = stmt.where(AgreementSectionRow.agreement_type == agreement_type.value)

        with self.session() as session:
            return sort_sections(row.to_section() for row in session.scalars(stmt).all())

    def _insert(self, section: AgreementSection) -> AgreementSection:
        row = AgreementSectionRow()
        row.apply(section)
        try:
            with self.session() as session:
                session.add(row)
                session.flush()
                return row.to_section()
        except IntegrityError as e:
            raise DuplicateSectionError(section) from e

    def _save(self, section: AgreementSection) -> AgreementSection:
        try:
            with self.session() as session:
                row = session.get(AgreementSectionRow, section.id)
                if row is None:
                    raise SectionNotFoundError(section.id)  # type: ignore[arg-type]
                row.apply(section)
                session.flush()
                return row.to_section()
        except IntegrityError as e:
            raise DuplicateSectionError(section) from e

    def _remove(self, section_id: int) -> None:
        with self.session() as session:
            row = session.get(AgreementSectionRow, section_id)
            if row is None:
                raise SectionNotFoundError(section_id)
            session.delete(row)

    def _swap_scope(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType,
        sections: list[AgreementSection],
    ) -> tuple[int, list[AgreementSection]]:
        stmt = self._scope_select(agency_id, agreement_type, landlord_id)
        try:
            with self.session() as session:
                existing = session.scalars(stmt).all()
                for row in existing:
                    session.delete(row)
                # Deletes must reach the database before inserts reuse their keys.
                session.flush()

                rows = []
                for section in sections:
                    row = AgreementSectionRow()
                    row.apply(section)
                    rows.append(row)
                session.add_all(rows)
                session.flush()
                return len(existing), [row.to_section() for row in rows]
        except IntegrityError as e:
            raise SectionStoreError(f"Could not replace sections: {e.orig}") from e
