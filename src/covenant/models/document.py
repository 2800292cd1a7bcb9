"""Rendered document entities.

- WarningKind: Category of a content-authoring warning
- RenderWarning: A non-fatal problem found while rendering a template
- RenderedSection: One rendered clause
- AgreementDocument: The ordered, fully rendered agreement
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from covenant.models.section import AgreementType, Provenance


class WarningKind(str, Enum):
    """Category of content-authoring warning."""

    UNTERMINATED_BLOCK = "unterminated_block"
    UNMATCHED_CLOSE = "unmatched_close"
    NESTED_LOOP = "nested_loop"
    UNDEFINED_NAME = "undefined_name"
    UNDEFINED_FLAG = "undefined_flag"
    UNDEFINED_LIST = "undefined_list"
    RENDER_FAILURE = "render_failure"


@dataclass(frozen=True)
class RenderWarning:
    """Non-fatal content problem.

    Attributes:
        kind: Warning category
        message: Human-readable description
        directive: The template tag involved, as written
        offset: Character offset of the directive in the template
        section_key: Section the warning belongs to (set by the assembler)
    """

    kind: WarningKind
    message: str
    directive: str = ""
    offset: int = -1
    section_key: str | None = None

    def for_section(self, section_key: str) -> "RenderWarning":
        """Return a copy tagged with a section key."""
        return RenderWarning(
            kind=self.kind,
            message=self.message,
            directive=self.directive,
            offset=self.offset,
            section_key=section_key,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "directive": self.directive,
            "offset": self.offset,
            "section_key": self.section_key,
        }


@dataclass(frozen=True)
class RenderedSection:
    """A clause after rendering.

    Attributes:
        key: Section key
        title: Rendered title (HTML-safe)
        html: Rendered content
        provenance: default, override or custom
        order: Display order
        warnings: Content-authoring warnings for this clause
    """

    key: str
    title: str
    html: str
    provenance: Provenance
    order: float
    warnings: tuple[RenderWarning, ...] = ()

    @property
    def degraded(self) -> bool:
        """Return True if rendering produced any warning."""
        return bool(self.warnings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "title": self.title,
            "html": self.html,
            "provenance": self.provenance.value,
            "order": self.order,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class AgreementDocument:
    """The assembled agreement: ordered rendered sections.

    Attributes:
        agreement_type: Document kind
        sections: Rendered sections in display order
        metadata: Display data for page wrappers (addresses, names, dates)
    """

    agreement_type: AgreementType
    sections: list[RenderedSection] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def warnings(self) -> list[RenderWarning]:
        """All warnings, in section order."""
        return [w for section in self.sections for w in section.warnings]

    @property
    def pairs(self) -> list[tuple[str, str]]:
        """The document as ordered (title, html) pairs."""
        return [(section.title, section.html) for section in self.sections]

    def section(self, key: str) -> RenderedSection | None:
        """Return the rendered section with the given key."""
        for section in self.sections:
            if section.key == key:
                return section
        return None

    def text(self) -> str:
        """Concatenate sections into a single canonical string."""
        return "\n".join(f"{title}\n{html}" for title, html in self.pairs)

    def fingerprint(self) -> str:
        """SHA-256 of the canonical text, for byte-stability checks."""
        return hashlib.sha256(self.text().encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "agreement_type": self.agreement_type.value,
            "fingerprint": self.fingerprint(),
            "metadata": self.metadata,
            "sections": [s.to_dict() for s in self.sections],
        }
