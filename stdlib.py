"""
Imp Standard Library
Runtime values, primitive operator tables and the lifting functions
that apply them to values
"""

from typing import Dict, Callable, Any, List, Tuple, Union
from dataclasses import dataclass
import operator
from utilities import format_bindings
from parsing import render_exp


class ImpRuntimeError(Exception):
  """Internal misuse of the evaluator, never raised for parsed input"""
  def __init__(self, message: str):
    self.message = message
    super().__init__(message)


# ============================================================================
# VALUES
# ============================================================================

@dataclass(frozen=True)
class IntVal:
  value: int


@dataclass(frozen=True)
class BoolVal:
  value: bool


@dataclass(frozen=True)
class CloVal:
  """Closure: parameter names, body expression and the captured environment"""
  params: Tuple[str, ...]
  body: Any
  env: Dict[str, Any]


@dataclass(frozen=True)
class ExnVal:
  """A runtime failure carried around as an ordinary value"""
  message: str


Val = Union[IntVal, BoolVal, CloVal, ExnVal]


# Failure messages
NO_MATCH = "No match in env"
DIVISION_BY_ZERO = "Division by 0"
CANNOT_LIFT = "Cannot lift"
NOT_A_BOOL = "Condition is not a Bool"
NON_CLOSURE = "Apply to non-closure"
RECURSION_LIMIT = "Recursion limit exceeded"


# ============================================================================
# PRIMITIVE OPERATOR TABLES
# ============================================================================

INT_OPS: Dict[str, Callable[[int, int], int]] = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': operator.floordiv,
}

BOOL_OPS: Dict[str, Callable[[bool, bool], bool]] = {
    'and': lambda x, y: x and y,
    'or': lambda x, y: x or y,
}

COMP_OPS: Dict[str, Callable[[int, int], bool]] = {
    '<': operator.lt,
    '>': operator.gt,
    '<=': operator.le,
    '>=': operator.ge,
    '/=': operator.ne,
    '==': operator.eq,
}


def lookup_op(table: Dict[str, Callable], op: str) -> Callable:
  """Find a primitive by its symbolic name"""
  if op not in table:
    raise ImpRuntimeError(f"Unknown operator: {op}")
  return table[op]


# ============================================================================
# LIFTING
# ============================================================================

def lift_int_op(op: str, x: Val, y: Val) -> Val:
  """Apply an integer operator to two values"""
  func = lookup_op(INT_OPS, op)
  if op == '/' and y == IntVal(0):
    return ExnVal(DIVISION_BY_ZERO)
  if isinstance(x, IntVal) and isinstance(y, IntVal):
    return IntVal(func(x.value, y.value))
  return ExnVal(CANNOT_LIFT)


def lift_bool_op(op: str, x: Val, y: Val) -> Val:
  """Apply a boolean operator to two values"""
  func = lookup_op(BOOL_OPS, op)
  if isinstance(x, BoolVal) and isinstance(y, BoolVal):
    return BoolVal(func(x.value, y.value))
  return ExnVal(CANNOT_LIFT)


def lift_comp_op(op: str, x: Val, y: Val) -> Val:
  """Compare two integers, producing a boolean"""
  func = lookup_op(COMP_OPS, op)
  if isinstance(x, IntVal) and isinstance(y, IntVal):
    return BoolVal(func(x.value, y.value))
  return ExnVal(CANNOT_LIFT)


# ============================================================================
# RENDERING
# ============================================================================

def show_value(value: Val) -> str:
  """Convert value to its printed representation"""
  if isinstance(value, IntVal):
    return str(value.value)
  elif isinstance(value, BoolVal):
    return "True" if value.value else "False"
  elif isinstance(value, CloVal):
    params = ", ".join(value.params)
    return f"<[{params}], {render_exp(value.body)}, {{{format_bindings(value.env, show_value)}}}>"
  elif isinstance(value, ExnVal):
    return f"exn: {value.message}"
  raise ImpRuntimeError(f"Not a value: {value!r}")


def list_operators() -> List[str]:
  """All operator names the evaluator understands"""
  return list(INT_OPS) + list(BOOL_OPS) + list(COMP_OPS)
