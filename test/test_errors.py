"""
Tests for parse error reporting and the helpers shared by the REPL
"""

import pytest
from error_handling import (
    ImpParseError, make_parse_error, format_parse_error,
    get_context_line, extract_got, generate_suggestions,
)
from utilities import overlay, bind_positional, extend, format_bindings, truncate_display, binding_lines
from stdlib import ImpRuntimeError, lift_int_op, show_value, IntVal, list_operators


class TestParseErrors:

  def test_location_is_reported(self, parser):
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_statement("print 1")
    error = exc_info.value
    assert error.line == 1
    assert error.column >= 1
    assert error.filename == "<stdin>"

  def test_message_mentions_parse_error(self, parser):
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_statement("x := ;")
    assert str(exc_info.value).startswith("Parse error in <stdin> at line 1")

  def test_file_errors_name_the_file(self, parser, tmp_path):
    path = tmp_path / "broken.imp"
    path.write_text("print 1;\nprint )\n")
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_file(str(path))
    assert exc_info.value.filename == str(path)

  def test_missing_file(self, parser, tmp_path):
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_file(str(tmp_path / "missing.imp"))
    assert str(exc_info.value) == f"Parse error: File not found: {tmp_path / 'missing.imp'}"

  def test_stray_expression_names_what_was_wanted(self, parser):
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_statement("5;")
    error = exc_info.value
    assert "a statement" in error.message
    assert error.suggestions == []
    assert len(str(error)) < 300

  def test_bad_expression_stays_short(self, parser):
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_statement("print );")
    assert "an expression" in exc_info.value.message
    assert len(str(exc_info.value)) < 300

  def test_deep_nesting_is_a_parse_error(self, parser):
    text = "print " + "(" * 5000 + "1" + ")" * 5000 + ";"
    with pytest.raises(ImpParseError) as exc_info:
      parser.parse_statement(text)
    assert exc_info.value.message == "Input is nested too deeply"


class TestFormatting:

  def test_format_full_error(self):
    error = make_parse_error(
        message="Expected ';'",
        location=7,
        line=1,
        column=8,
        expected=["';'"],
        got="end of line",
        context="    print 1\n           ^",
        suggestions=["Statements end with ';'"],
    )
    assert format_parse_error(error) == (
        "Parse error in <stdin> at line 1, column 8:\n"
        "  Expected ';'\n"
        "  Got: end of line\n"
        "    print 1\n"
        "           ^\n"
        "  Suggestions:\n"
        "    - Statements end with ';'"
    )

  def test_format_without_location(self):
    assert format_parse_error(make_parse_error("File not found: x")) == "Parse error: File not found: x"

  def test_exception_round_trips_through_dict(self):
    error = ImpParseError("Expected 'fi'", 3, 1, 4, ["'fi'"], "'x'")
    assert error.to_dict()['expected'] == ["'fi'"]
    assert "Got: 'x'" in str(error)

  def test_context_line(self):
    assert get_context_line("x := ;", 1, 6) == "    x := ;\n         ^"

  def test_context_line_out_of_range(self):
    assert get_context_line("x", 3, 1) == ""

  def test_got(self):
    assert extract_got("print )", 1, 7) == "')'"
    assert extract_got("print", 1, 6) == "end of line"

  def test_suggestions(self):
    assert any("';'" in s for s in generate_suggestions("", "end of line", ["';'"]))
    assert any(":=" in s for s in generate_suggestions("", "'= 5;'", ["':='"]))
    assert generate_suggestions("", "'x'", []) == []


class TestEnvironmentHelpers:

  def test_overlay_prefers_new_bindings(self):
    base = {"x": 1, "y": 2}
    result = overlay(base, {"x": 3})
    assert result == {"x": 3, "y": 2}
    assert base == {"x": 1, "y": 2}

  @pytest.mark.parametrize("params, values, expected", [
      (["x", "y"], [1, 2], {"x": 1, "y": 2}),
      (["x", "y"], [1], {"x": 1}),
      (["x"], [1, 2], {"x": 1}),
      ([], [], {}),
  ])
  def test_bind_positional(self, params, values, expected):
    assert bind_positional(params, values) == expected

  def test_extend(self):
    env = {"a": 1}
    assert extend(env, "b", 2) == {"a": 1, "b": 2}
    assert env == {"a": 1}


class TestDisplayHelpers:

  def test_format_bindings(self):
    assert format_bindings({"x": 1, "y": 2}) == "x: 1, y: 2"

  def test_truncate(self):
    assert truncate_display("a" * 70) == "a" * 57 + "..."
    assert truncate_display("short") == "short"

  def test_binding_lines(self):
    assert binding_lines({"x": IntVal(1)}, show_value) == ["  x = 1"]
    assert binding_lines({}, show_value, "(empty)") == ["  (empty)"]


class TestRuntimeMisuse:

  def test_unknown_operator(self):
    with pytest.raises(ImpRuntimeError):
      lift_int_op("%", IntVal(1), IntVal(2))

  def test_not_a_value(self):
    with pytest.raises(ImpRuntimeError):
      show_value(42)

  def test_operator_names(self):
    assert set(list_operators()) == {"+", "-", "*", "/", "and", "or", "<", ">", "<=", ">=", "/=", "=="}
