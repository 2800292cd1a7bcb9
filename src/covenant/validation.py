"""Clause template linting.

Reports content-authoring problems before a clause is saved: structural
issues found by the parser (unterminated blocks, stray closing tags, nested
loops) and names that the render context does not define.
"""

from dataclasses import dataclass, field
from typing import Any

from covenant.models.context import RenderContext
from covenant.models.document import RenderWarning, WarningKind
from covenant.templates.engine import EACH, IF_NAMED, Block, Variable, parse_template

# Fields available on each record inside a tenant loop.
TENANT_RECORD_FIELDS = frozenset({
    "name",
    "first_name",
    "last_name",
    "address",
    "email",
    "phone",
    "room",
    "rent_pppw",
    "deposit_amount",
    "application_type",
    "is_primary",
})


@dataclass
class ValidationReport:
    """Result of validating one template.

    Attributes:
        warnings: Problems found, in template order
        names: Every name the template references
    """

    warnings: list[RenderWarning] = field(default_factory=list)
    names: set[str] = field(default_factory=set)

    @property
    def ok(self) -> bool:
        """Return True when no problems were found."""
        return not self.warnings

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ok": self.ok,
            "names": sorted(self.names),
            "warnings": [w.to_dict() for w in self.warnings],
        }


def validate_template(
    template: str,
    context: RenderContext | None = None,
    record_fields: frozenset[str] = TENANT_RECORD_FIELDS,
) -> ValidationReport:
    """Validate a clause template.

    Args:
        template: Clause template text
        context: Context whose names count as defined; when None only
            structural problems are reported
        record_fields: Names available inside loops

    Returns:
        ValidationReport
    """
    parsed = parse_template(template)
    report = ValidationReport(warnings=list(parsed.warnings))

    for node, in_loop in parsed.walk():
        if isinstance(node, Variable):
            report.names.add(node.name)
        elif isinstance(node, Block):
            report.names.add(node.name)

        if context is None:
            continue

        problem = _undefined(node, in_loop, context, record_fields)
        if problem is not None:
            report.warnings.append(problem)

    report.warnings.sort(key=lambda w: w.offset)
    return report


def _undefined(
    node: Variable | Block,
    in_loop: bool,
    context: RenderContext,
    record_fields: frozenset[str],
) -> RenderWarning | None:
    if isinstance(node, Block) and node.family == IF_NAMED:
        if node.name in context.flags:
            return None
        return RenderWarning(
            kind=WarningKind.UNDEFINED_FLAG,
            message=f"Flag '{node.name}' used by {node.raw} is not defined",
            directive=node.raw,
            offset=node.offset,
        )

    if isinstance(node, Block) and node.family == EACH:
        if node.name in context.lists:
            return None
        return RenderWarning(
            kind=WarningKind.UNDEFINED_LIST,
            message=f"List '{node.name}' used by {node.raw} is not defined",
            directive=node.raw,
            offset=node.offset,
        )

    # Variables and generic conditionals
    if node.name in context.names() or (in_loop and node.name in record_fields):
        return None
    label = "Name" if isinstance(node, Variable) else "Condition"
    return RenderWarning(
        kind=WarningKind.UNDEFINED_NAME,
        message=f"{label} '{node.name}' used by {node.raw} is not defined",
        directive=node.raw,
        offset=node.offset,
    )
