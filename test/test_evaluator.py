"""
Tests for expression evaluation
"""

import pytest
from interpreter import eval_exp
from parsing import FunExp, IntOpExp, VarExp
from stdlib import (
    IntVal, BoolVal, CloVal, ExnVal,
    NO_MATCH, DIVISION_BY_ZERO, CANNOT_LIFT, NOT_A_BOOL, NON_CLOSURE,
)


@pytest.fixture
def evaluate(parser):
  """Parse and evaluate an expression"""
  def run(text, env=None):
    return eval_exp(parser.parse_expression(text), env if env is not None else {})
  return run


class TestLiteralsAndVariables:

  def test_integer(self, evaluate):
    assert evaluate("7") == IntVal(7)

  def test_boolean(self, evaluate):
    assert evaluate("false") == BoolVal(False)

  def test_variable(self, evaluate):
    assert evaluate("x", {"x": IntVal(3)}) == IntVal(3)

  def test_unbound_variable(self, evaluate):
    assert evaluate("x") == ExnVal(NO_MATCH)

  def test_int_and_bool_values_differ(self):
    assert IntVal(1) != BoolVal(True)


class TestArithmetic:

  @pytest.mark.parametrize("text, expected", [
      ("2 + 3", 5),
      ("2 - 3", -1),
      ("4 * 5", 20),
      ("7 / 2", 3),
      ("(0 - 7) / 2", -4),
      ("2 + 3 * 4", 14),
      ("123456789 * 987654321", 121932631112635269),
  ])
  def test_integer_operators(self, evaluate, text, expected):
    assert evaluate(text) == IntVal(expected)

  def test_division_by_zero(self, evaluate):
    assert evaluate("5 / 0") == ExnVal(DIVISION_BY_ZERO)

  def test_division_by_zero_expression(self, evaluate):
    assert evaluate("5 / (2 - 2)") == ExnVal(DIVISION_BY_ZERO)

  def test_multiplication_by_zero_is_fine(self, evaluate):
    assert evaluate("5 * 0") == IntVal(0)

  def test_cannot_lift_bool(self, evaluate):
    assert evaluate("1 + true") == ExnVal(CANNOT_LIFT)

  def test_exception_operand_cannot_lift(self, evaluate):
    assert evaluate("(1 / 0) + 1") == ExnVal(CANNOT_LIFT)


class TestBooleansAndComparisons:

  @pytest.mark.parametrize("text, expected", [
      ("true and false", False),
      ("true or false", True),
      ("false or false", False),
      ("1 < 2", True),
      ("2 > 3", False),
      ("2 <= 2", True),
      ("1 >= 2", False),
      ("1 /= 2", True),
      ("3 == 3", True),
      ("1 < 2 and 2 < 3", True),
  ])
  def test_operators(self, evaluate, text, expected):
    assert evaluate(text) == BoolVal(expected)

  def test_bool_op_on_ints(self, evaluate):
    assert evaluate("1 and 2") == ExnVal(CANNOT_LIFT)

  def test_comparison_on_bools(self, evaluate):
    assert evaluate("true == true") == ExnVal(CANNOT_LIFT)


class TestConditionals:

  def test_then_branch(self, evaluate):
    assert evaluate("if 1 < 2 then 10 else 20 fi") == IntVal(10)

  def test_else_branch(self, evaluate):
    assert evaluate("if false then 10 else 20 fi") == IntVal(20)

  def test_untaken_branch_is_not_evaluated(self, evaluate):
    assert evaluate("if true then 1 else (1/0) fi") == IntVal(1)

  def test_non_boolean_condition_is_a_value(self, evaluate):
    assert evaluate("if 1 then 2 else 3 fi") == ExnVal(NOT_A_BOOL)

  def test_exception_condition(self, evaluate):
    assert evaluate("if y then 2 else 3 fi") == ExnVal(NOT_A_BOOL)


class TestFunctions:

  def test_closure_captures_environment(self, evaluate):
    env = {"y": IntVal(10)}
    result = evaluate("fn [x] x + y end", env)
    assert result == CloVal(("x",), IntOpExp("+", VarExp("x"), VarExp("y")), {"y": IntVal(10)})

  def test_apply(self, evaluate):
    assert evaluate("apply fn [x, y] x * y end (6, 7)") == IntVal(42)

  def test_free_variables_use_captured_environment(self, parser, evaluate):
    closure = eval_exp(parser.parse_expression("fn [x] x + y end"), {"y": IntVal(10)})
    env = {"f": closure, "y": IntVal(100)}
    assert evaluate("apply f (1)", env) == IntVal(11)

  def test_arguments_use_caller_environment(self, parser, evaluate):
    closure = eval_exp(parser.parse_expression("fn [x] x end"), {"y": IntVal(10)})
    env = {"f": closure, "y": IntVal(100)}
    assert evaluate("apply f (y)", env) == IntVal(100)

  def test_parameters_shadow_captured_bindings(self, evaluate):
    assert evaluate("apply fn [x] x end (5)", {"x": IntVal(1)}) == IntVal(5)

  def test_apply_non_closure(self, evaluate):
    assert evaluate("apply 5 (1)") == ExnVal(NON_CLOSURE)

  def test_higher_order(self, evaluate):
    text = "let [twice := fn [f, x] apply f (apply f (x)) end] apply twice (fn [n] n * 3 end, 2) end"
    assert evaluate(text) == IntVal(18)

  def test_curried(self, evaluate):
    assert evaluate("apply apply fn [a] fn [b] a - b end end (10) (3)") == IntVal(7)

  def test_same_function_in_same_env_is_equal(self, evaluate):
    assert evaluate("fn [x] x end") == evaluate("fn [x] x end")

  def test_closures_with_different_env_differ(self, evaluate):
    assert evaluate("fn [x] x end", {"a": IntVal(1)}) != evaluate("fn [x] x end", {"a": IntVal(2)})


class TestArgumentCountMismatch:
  """Positional pairing stops at the shorter list"""

  def test_extra_arguments_are_ignored(self, evaluate):
    assert evaluate("apply fn [x] x end (1, 2)") == IntVal(1)

  def test_missing_parameter_is_unbound(self, evaluate):
    assert evaluate("apply fn [x, y] y end (1)") == ExnVal(NO_MATCH)

  def test_missing_parameter_falls_back_to_captured(self, evaluate):
    assert evaluate("apply fn [x, y] y end (1)", {"y": IntVal(9)}) == IntVal(9)


class TestLet:

  def test_let(self, evaluate):
    assert evaluate("let [x := 2; y := 3] x * y end") == IntVal(6)

  def test_bindings_are_parallel(self, evaluate):
    assert evaluate("let [x := 1; y := x] y end") == ExnVal(NO_MATCH)

  def test_bindings_see_outer_environment(self, evaluate):
    assert evaluate("let [x := 1; y := x] y end", {"x": IntVal(5)}) == IntVal(5)

  def test_let_shadows_outer(self, evaluate):
    assert evaluate("let [x := 1] x end", {"x": IntVal(5)}) == IntVal(1)

  def test_duplicate_binding_last_wins(self, evaluate):
    assert evaluate("let [x := 1; x := 2] x end") == IntVal(2)

  def test_environment_is_not_mutated(self, parser):
    env = {"x": IntVal(5)}
    eval_exp(parser.parse_expression("let [x := 1; z := 2] apply fn [x] x end (3) end"), env)
    assert env == {"x": IntVal(5)}


class TestDebugTracing:

  def test_trace_goes_to_stdout(self, parser, capsys):
    eval_exp(parser.parse_expression("1 + 2"), {}, debug=True)
    out = capsys.readouterr().out
    assert "Evaluating: IntOpExp" in out
    assert "Evaluating: IntExp" in out

  def test_silent_by_default(self, parser, capsys):
    eval_exp(parser.parse_expression("1 + 2"), {})
    assert capsys.readouterr().out == ""


class TestFunctionNodes:

  def test_closure_keeps_params_tuple(self):
    closure = eval_exp(FunExp(("a", "b"), VarExp("a")), {})
    assert closure.params == ("a", "b")
