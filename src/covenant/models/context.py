"""Render context passed to the template engine."""

from dataclasses import dataclass, field
from typing import Any

# Record values are display strings; is_primary style markers stay booleans.
RecordValue = str | bool
Record = dict[str, RecordValue]


@dataclass(frozen=True)
class RenderContext:
    """Ephemeral data bundle for rendering one document.

    Attributes:
        variables: Scalar display strings ({{name}})
        flags: Named booleans ({{#if_X}} and {{#if name}})
        lists: Named record lists ({{#each name}})
    """

    variables: dict[str, str] = field(default_factory=dict)
    flags: dict[str, bool] = field(default_factory=dict)
    lists: dict[str, list[Record]] = field(default_factory=dict)

    def names(self) -> set[str]:
        """Return every name defined in any namespace."""
        return set(self.variables) | set(self.flags) | set(self.lists)

    def merged(self, other: "RenderContext") -> "RenderContext":
        """Return a new context with ``other`` layered over this one."""
        return RenderContext(
            variables={**self.variables, **other.variables},
            flags={**self.flags, **other.flags},
            lists={**self.lists, **other.lists},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "variables": dict(sorted(self.variables.items())),
            "flags": dict(sorted(self.flags.items())),
            "lists": {name: [dict(r) for r in records] for name, records in sorted(self.lists.items())},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderContext":
        """Create a context from a dictionary.

        Scalar variables are stringified; flags are coerced to bool.
        """
        variables = {
            str(k): "" if v is None else str(v)
            for k, v in (data.get("variables") or {}).items()
        }
        flags = {str(k): bool(v) for k, v in (data.get("flags") or {}).items()}
        lists: dict[str, list[Record]] = {}
        for name, records in (data.get("lists") or {}).items():
            lists[str(name)] = [
                {
                    str(k): v if isinstance(v, bool) else ("" if v is None else str(v))
                    for k, v in record.items()
                }
                for record in records or []
            ]
        return cls(variables=variables, flags=flags, lists=lists)
