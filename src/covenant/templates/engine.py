"""Clause template engine (Principle: Fail-Open Rendering).

Renders the small directive grammar embedded in stored clause HTML:

    {{name}}                        interpolation (HTML-escaped)
    {{#if_X}}...{{/if_X}}           named conditional on flags[X]
    {{#if name}}...{{/if}}          generic conditional on any truthy value
    {{#each list}}...{{/each}}      loop over lists[list] with record scope

Templates are parsed in a single left-to-right scan with a stack of open
blocks. A close tag closes the nearest open block of its family (``if``,
``if_X`` with the same X, ``each``). Malformed content never raises:

- blocks left open by a crossing close tag, or by the end of the template,
  are emitted as their raw source text
- close tags without an open block stay in the output literally
- a loop opened inside another loop is kept as literal source text

Each problem is reported as a RenderWarning. Rendering is pure: the output
depends only on the template and the context.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache

from markupsafe import escape

from covenant.models.context import Record, RecordValue, RenderContext
from covenant.models.document import RenderWarning, WarningKind

IF = "if"
IF_NAMED = "if_named"
EACH = "each"

_IDENT = r"[A-Za-z_]\w*"

_TAG_RE = re.compile(
    r"\{\{\s*(?:"
    rf"#if_(?P<open_named>{_IDENT})"
    rf"|/if_(?P<close_named>{_IDENT})"
    rf"|#if\s+(?P<open_if>{_IDENT})"
    r"|(?P<close_if>/if)"
    rf"|#each\s+(?P<open_each>{_IDENT})"
    r"|(?P<close_each>/each)"
    rf"|(?P<var>{_IDENT})"
    r")\s*\}\}"
)

FALSY_STRINGS = frozenset({"", "0", "false"})


# =============================================================================
# Syntax tree
# =============================================================================


@dataclass(frozen=True)
class Text:
    """Literal template text, emitted unchanged."""

    text: str


@dataclass(frozen=True)
class Variable:
    """An interpolation token."""

    name: str
    raw: str
    offset: int


@dataclass(frozen=True)
class Block:
    """A conditional or loop with its body."""

    family: str
    name: str
    raw: str
    offset: int
    children: tuple["Node", ...]


Node = Text | Variable | Block


@dataclass(frozen=True)
class ParsedTemplate:
    """Result of parsing a template.

    Attributes:
        nodes: Top-level syntax nodes
        warnings: Structural problems found while parsing
    """

    nodes: tuple[Node, ...]
    warnings: tuple[RenderWarning, ...]

    def walk(self) -> Iterator[tuple[Node, bool]]:
        """Yield every Variable and Block with an in-loop marker."""
        yield from _walk(self.nodes, in_loop=False)


@dataclass(frozen=True)
class RenderResult:
    """Rendered text plus content-authoring warnings."""

    text: str
    warnings: tuple[RenderWarning, ...] = ()


@dataclass
class _Frame:
    family: str
    name: str
    raw: str
    start: int
    rejected: bool = False
    children: list[Node] = field(default_factory=list)


def _walk(nodes: tuple[Node, ...], in_loop: bool) -> Iterator[tuple[Node, bool]]:
    for node in nodes:
        if isinstance(node, Variable):
            yield node, in_loop
        elif isinstance(node, Block):
            yield node, in_loop
            yield from _walk(node.children, in_loop or node.family == EACH)


def _classify(match: re.Match[str]) -> tuple[str, str, str]:
    """Return (action, family, name) for a tag match."""
    groups = match.groupdict()
    if groups["open_named"] is not None:
        return "open", IF_NAMED, groups["open_named"]
    if groups["close_named"] is not None:
        return "close", IF_NAMED, groups["close_named"]
    if groups["open_if"] is not None:
        return "open", IF, groups["open_if"]
    if groups["close_if"] is not None:
        return "close", IF, ""
    if groups["open_each"] is not None:
        return "open", EACH, groups["open_each"]
    if groups["close_each"] is not None:
        return "close", EACH, ""
    return "var", "", groups["var"]


def _closes(frame: _Frame, family: str, name: str) -> bool:
    if frame.family != family:
        return False
    return family != IF_NAMED or frame.name == name


def _unterminated(frame: _Frame) -> RenderWarning:
    return RenderWarning(
        kind=WarningKind.UNTERMINATED_BLOCK,
        message=f"Block {frame.raw} is never closed; its text is shown verbatim",
        directive=frame.raw,
        offset=frame.start,
    )


# =============================================================================
# Parsing
# =============================================================================


@lru_cache(maxsize=512)
def parse_template(template: str) -> ParsedTemplate:
    """Parse a template into a syntax tree.

    Parsing is pure and cached; the same template string always yields the
    same tree and warnings.

    Args:
        template: Clause template text

    Returns:
        ParsedTemplate with nodes and structural warnings
    """
    root = _Frame(family="root", name="", raw="", start=0)
    stack: list[_Frame] = [root]
    warnings: list[RenderWarning] = []
    pos = 0

    for match in _TAG_RE.finditer(template):
        if match.start() > pos:
            stack[-1].children.append(Text(template[pos:match.start()]))
        pos = match.end()
        raw = match.group(0)
        action, family, name = _classify(match)

        if action == "var":
            stack[-1].children.append(Variable(name=name, raw=raw, offset=match.start()))
            continue

        if action == "open":
            frame = _Frame(family=family, name=name, raw=raw, start=match.start())
            if family == EACH and any(f.family == EACH for f in stack):
                frame.rejected = True
                warnings.append(RenderWarning(
                    kind=WarningKind.NESTED_LOOP,
                    message=f"Loop {raw} inside another loop is not supported; kept as text",
                    directive=raw,
                    offset=match.start(),
                ))
            stack.append(frame)
            continue

        # Close tag: find the nearest open block of the same family.
        index = next(
            (i for i in range(len(stack) - 1, 0, -1) if _closes(stack[i], family, name)),
            None,
        )
        if index is None:
            stack[-1].children.append(Text(raw))
            warnings.append(RenderWarning(
                kind=WarningKind.UNMATCHED_CLOSE,
                message=f"Closing tag {raw} has no matching opening tag",
                directive=raw,
                offset=match.start(),
            ))
            continue

        if index < len(stack) - 1:
            crossed = stack[index + 1:]
            warnings.extend(_unterminated(f) for f in crossed)
            del stack[index + 1:]
            stack[index].children.append(Text(template[crossed[0].start:match.start()]))

        frame = stack.pop()
        if frame.rejected:
            stack[-1].children.append(Text(template[frame.start:match.end()]))
        else:
            stack[-1].children.append(Block(
                family=frame.family,
                name=frame.name,
                raw=frame.raw,
                offset=frame.start,
                children=tuple(frame.children),
            ))

    if len(stack) > 1:
        warnings.extend(_unterminated(f) for f in stack[1:])
        root.children.append(Text(template[stack[1].start:]))
    elif pos < len(template):
        root.children.append(Text(template[pos:]))

    return ParsedTemplate(nodes=tuple(root.children), warnings=tuple(warnings))


# =============================================================================
# Rendering
# =============================================================================

_MISSING = object()


def is_truthy(value: object) -> bool:
    """Truthiness used by generic conditionals.

    Strings are true unless empty, "0" or "false"; booleans are themselves;
    lists are true when non-empty.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value not in FALSY_STRINGS
    if isinstance(value, list):
        return bool(value)
    return value is not None and value is not _MISSING


def _display(value: RecordValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class _Renderer:
    """Walks a parsed template against one context."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context
        self._warnings: dict[tuple[WarningKind, int, str], RenderWarning] = {}

    @property
    def warnings(self) -> tuple[RenderWarning, ...]:
        return tuple(self._warnings.values())

    def warn(self, kind: WarningKind, message: str, directive: str, offset: int) -> None:
        key = (kind, offset, directive)
        if key not in self._warnings:
            self._warnings[key] = RenderWarning(
                kind=kind, message=message, directive=directive, offset=offset
            )

    def lookup(self, name: str, record: Record | None) -> object:
        if record is not None and name in record:
            return record[name]
        if name in self.context.variables:
            return self.context.variables[name]
        if name in self.context.flags:
            return self.context.flags[name]
        if name in self.context.lists:
            return self.context.lists[name]
        return _MISSING

    def render(self, nodes: tuple[Node, ...], record: Record | None, out: list[str]) -> None:
        for node in nodes:
            if isinstance(node, Text):
                out.append(node.text)
            elif isinstance(node, Variable):
                out.append(self.interpolate(node, record))
            elif node.family == IF_NAMED:
                self.render_named_if(node, record, out)
            elif node.family == IF:
                self.render_if(node, record, out)
            else:
                self.render_each(node, out)

    def interpolate(self, node: Variable, record: Record | None) -> str:
        value = self.lookup(node.name, record)
        if value is _MISSING:
            self.warn(
                WarningKind.UNDEFINED_NAME,
                f"{node.raw} is not defined; rendered as blank",
                node.raw,
                node.offset,
            )
            return ""
        if isinstance(value, list):
            return ""
        return str(escape(_display(value)))  # type: ignore[arg-type]

    def render_named_if(self, node: Block, record: Record | None, out: list[str]) -> None:
        if node.name not in self.context.flags:
            self.warn(
                WarningKind.UNDEFINED_FLAG,
                f"Flag '{node.name}' used by {node.raw} is not defined; treated as false",
                node.raw,
                node.offset,
            )
            return
        if self.context.flags[node.name] is True:
            self.render(node.children, record, out)

    def render_if(self, node: Block, record: Record | None, out: list[str]) -> None:
        value = self.lookup(node.name, record)
        if value is _MISSING:
            self.warn(
                WarningKind.UNDEFINED_NAME,
                f"'{node.name}' used by {node.raw} is not defined; treated as false",
                node.raw,
                node.offset,
            )
            return
        if is_truthy(value):
            self.render(node.children, record, out)

    def render_each(self, node: Block, out: list[str]) -> None:
        records = self.context.lists.get(node.name)
        if records is None:
            self.warn(
                WarningKind.UNDEFINED_LIST,
                f"List '{node.name}' used by {node.raw} is not defined; no rows rendered",
                node.raw,
                node.offset,
            )
            return
        for item in records:
            self.render(node.children, item, out)


def render_with_warnings(template: str, context: RenderContext) -> RenderResult:
    """Render a template and collect content-authoring warnings.

    Args:
        template: Clause template text
        context: Variables, flags and lists for this document

    Returns:
        RenderResult with the rendered text and warnings (parse warnings
        first, then evaluation warnings in document order)
    """
    if not template:
        return RenderResult(text="")

    parsed = parse_template(template)
    renderer = _Renderer(context)
    out: list[str] = []
    renderer.render(parsed.nodes, None, out)
    return RenderResult(text="".join(out), warnings=parsed.warnings + renderer.warnings)


def render(template: str, context: RenderContext) -> str:
    """Render a template to a string.

    Unresolved names render as empty strings and malformed blocks render as
    their raw text; this function never raises for template content.

    Examples:
        >>> ctx = RenderContext(flags={"room_only": True, "whole_house": False})
        >>> render("{{#if_room_only}}Room{{/if_room_only}}"
        ...        "{{#if_whole_house}}House{{/if_whole_house}}", ctx)
        'Room'
    """
    return render_with_warnings(template, context).text
