"""Unit tests for the clause template engine."""

import pytest

from covenant.models import RenderContext, WarningKind
from covenant.templates import RenderResult, parse_template, render, render_with_warnings
from covenant.templates.engine import EACH, IF, IF_NAMED, Block, Variable, is_truthy


def kinds(result: RenderResult) -> list[WarningKind]:
    return [w.kind for w in result.warnings]


class TestInterpolation:
    """Tests for {{name}} tokens."""

    def test_substitutes_variable(self) -> None:
        """Test basic interpolation."""
        ctx = RenderContext(variables={"tenant": "Alice"})

        assert render("Hello {{tenant}}.", ctx) == "Hello Alice."

    def test_whitespace_inside_braces(self) -> None:
        """Test that {{ name }} is accepted."""
        ctx = RenderContext(variables={"tenant": "Alice"})

        assert render("{{ tenant }}", ctx) == "Alice"

    def test_escapes_markup(self) -> None:
        """Test that a <script> tag in a value is HTML-escaped."""
        ctx = RenderContext(variables={"name": "<script>alert(1)</script>"})

        result = render("<p>{{name}}</p>", ctx)

        assert "<script>" not in result
        assert result == "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>"

    def test_escapes_ampersand_and_quotes(self) -> None:
        """Test escaping of attribute-breaking characters."""
        ctx = RenderContext(variables={"name": "O'Neil & \"Sons\""})

        result = render('<td title="{{name}}">', ctx)

        assert "&amp;" in result
        assert '"Sons"' not in result
        assert "O'Neil" not in result

    def test_undefined_name_renders_empty(self) -> None:
        """Test that unresolved tokens become empty strings."""
        result = render_with_warnings("a{{nonexistent}}b", RenderContext())

        assert result.text == "ab"
        assert kinds(result) == [WarningKind.UNDEFINED_NAME]
        assert result.warnings[0].directive == "{{nonexistent}}"
        assert result.warnings[0].offset == 1

    def test_repeated_undefined_name_warns_per_position(self) -> None:
        """Test that each unresolved token position is reported once."""
        result = render_with_warnings("{{x}}{{x}}", RenderContext())

        assert [w.offset for w in result.warnings] == [0, 5]

    def test_flag_interpolates_as_word(self) -> None:
        """Test that a flag used as a value renders true/false."""
        ctx = RenderContext(flags={"room_only": True, "whole_house": False})

        assert render("{{room_only}}/{{whole_house}}", ctx) == "true/false"

    def test_list_name_interpolates_empty(self) -> None:
        """Test that a list used as a value renders nothing."""
        ctx = RenderContext(lists={"tenants": [{"name": "A"}]})

        assert render("[{{tenants}}]", ctx) == "[]"

    def test_empty_template(self) -> None:
        """Test that an empty template renders empty without warnings."""
        result = render_with_warnings("", RenderContext())

        assert result.text == ""
        assert result.warnings == ()

    def test_unknown_directives_stay_literal(self) -> None:
        """Test that unsupported syntax passes through unchanged."""
        template = "{{#unless x}}y{{/unless}} {{> partial}} {{ 1bad }}"

        assert render(template, RenderContext()) == template


class TestNamedConditional:
    """Tests for {{#if_X}} blocks."""

    def test_room_only_branch(self) -> None:
        """Test that exactly the true branch renders."""
        ctx = RenderContext(flags={"room_only": True, "whole_house": False})
        template = "{{#if_room_only}}Room{{/if_room_only}}{{#if_whole_house}}House{{/if_whole_house}}"

        assert render(template, ctx) == "Room"

    def test_whole_house_branch(self) -> None:
        """Test the opposite flag assignment."""
        ctx = RenderContext(flags={"room_only": False, "whole_house": True})
        template = "{{#if_room_only}}Room{{/if_room_only}}{{#if_whole_house}}House{{/if_whole_house}}"

        assert render(template, ctx) == "House"

    def test_undefined_flag_is_false(self) -> None:
        """Test that a missing flag hides the block and warns."""
        result = render_with_warnings("a{{#if_pets}}dogs{{/if_pets}}b", RenderContext())

        assert result.text == "ab"
        assert kinds(result) == [WarningKind.UNDEFINED_FLAG]

    def test_named_conditional_ignores_variables(self) -> None:
        """Test that {{#if_X}} reads flags only."""
        ctx = RenderContext(variables={"pets": "yes"})

        assert render("{{#if_pets}}dogs{{/if_pets}}", ctx) == ""

    def test_nested_named_conditionals(self) -> None:
        """Test that different flags nest."""
        ctx = RenderContext(flags={"a": True, "b": True, "c": False})
        template = "{{#if_a}}A{{#if_b}}B{{/if_b}}{{#if_c}}C{{/if_c}}{{/if_a}}"

        assert render(template, ctx) == "AB"

    def test_same_flag_nested(self) -> None:
        """Test that a close tag matches the nearest open block of the same flag."""
        ctx = RenderContext(flags={"a": True})

        assert render("{{#if_a}}1{{#if_a}}2{{/if_a}}3{{/if_a}}", ctx) == "123"

    def test_body_is_rendered(self) -> None:
        """Test that variables inside a true block are interpolated."""
        ctx = RenderContext(variables={"room": "Room 1"}, flags={"room_only": True})

        assert render("{{#if_room_only}}Room: {{room}}{{/if_room_only}}", ctx) == "Room: Room 1"


class TestGenericConditional:
    """Tests for {{#if name}} blocks."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2", "shown"),
            ("yes", "shown"),
            ("0", ""),
            ("false", ""),
            ("", ""),
        ],
    )
    def test_string_truthiness(self, value: str, expected: str) -> None:
        """Test truthiness of variable values."""
        ctx = RenderContext(variables={"other_tenants_count": value})

        assert render("{{#if other_tenants_count}}shown{{/if}}", ctx) == expected

    def test_flag_value(self) -> None:
        """Test that a generic conditional reads flags too."""
        ctx = RenderContext(flags={"individual_rents": True})

        assert render("{{#if individual_rents}}table{{/if}}", ctx) == "table"

    def test_list_value(self) -> None:
        """Test that lists are true when non-empty."""
        ctx = RenderContext(lists={"tenants": [], "others": [{"name": "A"}]})

        assert render("{{#if tenants}}T{{/if}}{{#if others}}O{{/if}}", ctx) == "O"

    def test_undefined_is_false(self) -> None:
        """Test that a missing name hides the block and warns."""
        result = render_with_warnings("{{#if missing}}x{{/if}}", RenderContext())

        assert result.text == ""
        assert kinds(result) == [WarningKind.UNDEFINED_NAME]

    def test_generic_and_named_interleave(self) -> None:
        """Test that {{/if}} closes the generic block, not a named one."""
        ctx = RenderContext(variables={"cap": "1"}, flags={"room_only": True})
        template = "{{#if cap}}C{{#if_room_only}}R{{/if_room_only}}{{/if}}"

        assert render(template, ctx) == "CR"

    def test_is_truthy(self) -> None:
        """Test the truthiness helper directly."""
        assert is_truthy(True)
        assert not is_truthy(False)
        assert is_truthy("x")
        assert not is_truthy("0")
        assert not is_truthy([])
        assert is_truthy([{"a": "b"}])
        assert not is_truthy(None)


class TestLoops:
    """Tests for {{#each list}} blocks."""

    def test_loop_over_records(self) -> None:
        """Test loop output with record fields."""
        ctx = RenderContext(lists={
            "tenants": [
                {"name": "Alice", "rent_pppw": "100"},
                {"name": "Bob", "rent_pppw": "120"},
            ],
        })

        result = render("{{#each tenants}}{{name}}:{{rent_pppw}};{{/each}}", ctx)

        assert result == "Alice:100;Bob:120;"

    def test_record_fields_shadow_variables(self) -> None:
        """Test that record fields win over top-level variables inside a loop."""
        ctx = RenderContext(
            variables={"name": "Outer", "company_name": "Letably"},
            lists={"tenants": [{"name": "Inner"}]},
        )

        result = render("{{name}}|{{#each tenants}}{{name}}@{{company_name}}{{/each}}", ctx)

        assert result == "Outer|Inner@Letably"

    def test_conditional_on_record_field(self) -> None:
        """Test {{#if field}} against the current record."""
        ctx = RenderContext(lists={
            "tenants": [
                {"name": "Alice", "is_primary": True},
                {"name": "Bob", "is_primary": False},
            ],
        })

        result = render("{{#each tenants}}{{name}}{{#if is_primary}}*{{/if}} {{/each}}", ctx)

        assert result == "Alice* Bob "

    def test_record_values_are_escaped(self) -> None:
        """Test that record fields are escaped like variables."""
        ctx = RenderContext(lists={"tenants": [{"name": "<b>Eve</b>"}]})

        assert render("{{#each tenants}}{{name}}{{/each}}", ctx) == "&lt;b&gt;Eve&lt;/b&gt;"

    def test_empty_list_renders_nothing(self) -> None:
        """Test that an empty list renders no rows and no warnings."""
        result = render_with_warnings("a{{#each tenants}}x{{/each}}b", RenderContext(lists={"tenants": []}))

        assert result.text == "ab"
        assert result.warnings == ()

    def test_undefined_list(self) -> None:
        """Test that a missing list renders nothing and warns."""
        result = render_with_warnings("{{#each rooms}}x{{/each}}", RenderContext())

        assert result.text == ""
        assert kinds(result) == [WarningKind.UNDEFINED_LIST]

    def test_missing_field_warns_once(self) -> None:
        """Test that an unresolved field inside a loop warns once, not per row."""
        ctx = RenderContext(lists={"tenants": [{"name": "A"}, {"name": "B"}]})

        result = render_with_warnings("{{#each tenants}}{{nickname}}{{/each}}", ctx)

        assert result.text == ""
        assert kinds(result) == [WarningKind.UNDEFINED_NAME]

    def test_nested_loop_kept_literal(self) -> None:
        """Test that a loop inside a loop is emitted as text, not expanded."""
        ctx = RenderContext(lists={"a": [{}, {}], "b": [{}, {}, {}]})

        result = render_with_warnings("{{#each a}}[{{#each b}}x{{/each}}]{{/each}}", ctx)

        assert result.text == "[{{#each b}}x{{/each}}][{{#each b}}x{{/each}}]"
        assert kinds(result) == [WarningKind.NESTED_LOOP]


class TestMalformedTemplates:
    """Tests for fail-open handling of broken templates."""

    def test_unterminated_block_is_literal(self) -> None:
        """Test that a block never closed is emitted verbatim."""
        ctx = RenderContext(flags={"room_only": True}, variables={"room": "R1"})

        result = render_with_warnings("A {{#if_room_only}}B {{room}}", ctx)

        assert result.text == "A {{#if_room_only}}B {{room}}"
        assert kinds(result) == [WarningKind.UNTERMINATED_BLOCK]

    def test_unmatched_close_is_literal(self) -> None:
        """Test that a stray close tag stays in the output."""
        result = render_with_warnings("a{{/if}}b{{/each}}", RenderContext())

        assert result.text == "a{{/if}}b{{/each}}"
        assert kinds(result) == [WarningKind.UNMATCHED_CLOSE, WarningKind.UNMATCHED_CLOSE]

    def test_mismatched_named_close(self) -> None:
        """Test that {{/if_b}} does not close {{#if_a}}."""
        ctx = RenderContext(flags={"a": True})

        result = render_with_warnings("{{#if_a}}x{{/if_b}}{{/if_a}}", ctx)

        assert result.text == "x{{/if_b}}"
        assert kinds(result) == [WarningKind.UNMATCHED_CLOSE]

    def test_crossed_blocks(self) -> None:
        """Test that a block crossed by an outer close is emitted as raw text."""
        ctx = RenderContext(flags={"a": True, "b": True})

        result = render_with_warnings("{{#if_a}}1{{#if_b}}2{{/if_a}}3{{/if_b}}", ctx)

        assert result.text == "1{{#if_b}}23{{/if_b}}"
        assert WarningKind.UNTERMINATED_BLOCK in kinds(result)
        assert WarningKind.UNMATCHED_CLOSE in kinds(result)

    def test_never_raises(self) -> None:
        """Test that pathological input renders without exceptions."""
        template = "{{#each}}{{#if}}{{/if_}}{{{{x}}}}{{#each t}}{{#each t}}{{/if}}"

        result = render_with_warnings(template, RenderContext(lists={"t": [{}]}))

        assert isinstance(result.text, str)


class TestParsing:
    """Tests for the parse tree."""

    def test_parse_tree_shape(self) -> None:
        """Test node types and families."""
        parsed = parse_template("{{#if_a}}{{x}}{{/if_a}}{{#if y}}{{/if}}{{#each t}}{{z}}{{/each}}")

        families = [n.family for n in parsed.nodes if isinstance(n, Block)]
        assert families == [IF_NAMED, IF, EACH]
        assert parsed.warnings == ()

    def test_walk_marks_loop_scope(self) -> None:
        """Test that walk reports whether a node sits inside a loop."""
        parsed = parse_template("{{a}}{{#each t}}{{b}}{{/each}}")

        variables = [(n.name, in_loop) for n, in_loop in parsed.walk() if isinstance(n, Variable)]

        assert variables == [("a", False), ("b", True)]

    def test_parse_is_cached(self) -> None:
        """Test that the same template returns the same parse result."""
        assert parse_template("{{a}}") is parse_template("{{a}}")


class TestDeterminism:
    """Tests for pure rendering."""

    def test_repeated_render_identical(self) -> None:
        """Test byte-identical output across calls."""
        ctx = RenderContext(
            variables={"name": "Alice & Bob"},
            flags={"room_only": True},
            lists={"tenants": [{"name": "A"}, {"name": "B"}]},
        )
        template = "{{name}}{{#if_room_only}}R{{/if_room_only}}{{#each tenants}}{{name}}{{/each}}{{missing}}"

        first = render_with_warnings(template, ctx)
        second = render_with_warnings(template, ctx)

        assert first == second
