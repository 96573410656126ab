"""
Tests for core/output_parser.py — extracting one script from model output.

Each rejection rule is covered in isolation, plus precedence where two
rules would both fire.
"""

import pytest

from core.output_parser import ParsedOutput, is_code_unchanged, parse_model_output

GOOD = 'setcpm(120)\n$: note("c4 e4 g4").s("piano")'


class TestParseSuccess:
    def test_fenced_javascript_block(self) -> None:
        raw = f"```javascript\n{GOOD}\n```"
        result = parse_model_output(raw)
        assert result.success
        assert result.code.startswith("setcpm(120)")
        assert result.error is None

    def test_fenced_block_with_surrounding_prose(self) -> None:
        raw = f"Here is your track:\n\n```js\n{GOOD}\n```\n\nEnjoy!"
        assert parse_model_output(raw).code == GOOD

    def test_bare_fence(self) -> None:
        assert parse_model_output(f"```\n{GOOD}\n```").code == GOOD

    def test_code_on_fence_line_is_kept(self) -> None:
        result = parse_model_output(f"```{GOOD}\n```")
        assert result.success
        assert result.code == GOOD

    def test_tag_with_trailing_spaces(self) -> None:
        assert parse_model_output(f"```strudel  \n{GOOD}\n```").code == GOOD

    def test_unfenced_code(self) -> None:
        assert parse_model_output(f"\n  {GOOD}\n").code == GOOD

    def test_leading_comment_lines_are_skipped(self) -> None:
        raw = f"```js\n// warm pad\n\n{GOOD}\n```"
        assert parse_model_output(raw).success

    def test_escaped_quotes_are_unescaped(self) -> None:
        raw = 'setcpm(90)\n$: s(\\"bd sd\\")'
        assert parse_model_output(raw).code == 'setcpm(90)\n$: s("bd sd")'

    def test_setcpm_with_space_before_paren(self) -> None:
        assert parse_model_output('setcpm (90)\n$: s("bd")').success


class TestParseFailures:
    @pytest.mark.parametrize("raw", ["", "   ", "\n\n"])
    def test_empty_response(self, raw: str) -> None:
        result = parse_model_output(raw)
        assert not result.success
        assert result.error == "empty response"
        assert result.code == ""

    @pytest.mark.parametrize("count", [2, 3])
    def test_multiple_blocks_reports_count(self, count: int) -> None:
        raw = "\n".join(f"```js\n{GOOD}\n```" for _ in range(count))
        result = parse_model_output(raw)
        assert not result.success
        assert str(count) in result.error
        assert result.error == f"found {count} code blocks, expected exactly one"

    def test_empty_block(self) -> None:
        assert parse_model_output("```js\n   \n```").error == "code block is empty"

    def test_prose_only(self) -> None:
        result = parse_model_output("Sure! I would love to help you write a song.")
        assert result.error == "no code block found in response"

    def test_missing_setcpm(self) -> None:
        result = parse_model_output('```js\n$: s("bd sd")\n```')
        assert not result.success
        assert "setcpm" in result.error

    def test_setcpm_not_first_statement(self) -> None:
        result = parse_model_output('```js\n$: s("bd")\nsetcpm(90)\n```')
        assert "setcpm" in result.error

    def test_missing_voice(self) -> None:
        result = parse_model_output('```js\nsetcpm(90)\nnote("c4").s("piano")\n```')
        assert result.error == "code must contain at least one voice assignment ($:)"

    def test_unbalanced_parentheses(self) -> None:
        result = parse_model_output('setcpm(90)\n$: s("bd").gain(0.5')
        assert result.error == "unbalanced parentheses: 3 opening '(' vs 2 closing ')'"

    def test_unbalanced_brackets(self) -> None:
        result = parse_model_output('setcpm(90)\n$: s("[bd sd")')
        assert result.error == "unbalanced brackets: 1 opening '[' vs 0 closing ']'"

    def test_block_count_checked_before_contents(self) -> None:
        raw = "```js\n```\n```js\n```"
        assert "2 code blocks" in parse_model_output(raw).error

    def test_setcpm_checked_before_voice(self) -> None:
        result = parse_model_output('```js\nnote("c4")\n```')
        assert "setcpm" in result.error


class TestParsedOutput:
    def test_ok_factory(self) -> None:
        assert ParsedOutput.ok("x") == ParsedOutput(success=True, code="x", error=None)

    def test_fail_factory(self) -> None:
        assert ParsedOutput.fail("nope") == ParsedOutput(success=False, code="", error="nope")

    def test_is_frozen(self) -> None:
        result = ParsedOutput.ok("x")
        with pytest.raises(AttributeError):
            result.code = "y"  # type: ignore[misc]


class TestReexport:
    def test_is_code_unchanged_available_from_parser(self) -> None:
        assert is_code_unchanged("a\n  b", "a\nb")
