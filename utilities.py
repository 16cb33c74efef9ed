"""
Utilities module for the Imp interpreter
Environment overlay, positional binding and display helpers shared by
the evaluator, the executor and the REPL
"""

from typing import Any, Callable, Dict, List, Mapping, Sequence, TypeVar


T = TypeVar('T')


# ==================== ENVIRONMENT UTILITIES ====================

def overlay(base: Mapping[str, T], bindings: Mapping[str, T]) -> Dict[str, T]:
  """
  Combine two environments without mutating either

  Args:
    base: Environment providing the fallback bindings
    bindings: Environment whose bindings win on name collision

  Returns:
    A new dict

  Examples:
    overlay({"x": 1, "y": 2}, {"x": 3}) -> {"x": 3, "y": 2}
  """
  return {**base, **bindings}


def bind_positional(params: Sequence[str], values: Sequence[T]) -> Dict[str, T]:
  """
  Pair parameter names with argument values by position

  Pairing stops at the shorter of the two sequences: surplus arguments
  are dropped and surplus parameters stay unbound.

  Examples:
    bind_positional(["x", "y"], [1, 2]) -> {"x": 1, "y": 2}
    bind_positional(["x", "y"], [1]) -> {"x": 1}
    bind_positional(["x"], [1, 2]) -> {"x": 1}
  """
  return dict(zip(params, values))


def extend(env: Mapping[str, T], name: str, value: T) -> Dict[str, T]:
  """Return new environment with name bound to value"""
  return {**env, name: value}


# ==================== DISPLAY UTILITIES ====================

def format_bindings(env: Mapping[str, Any], show: Callable[[Any], str] = str) -> str:
  """
  Render bindings as `name: value` pairs in insertion order

  Examples:
    format_bindings({"x": 1, "y": 2}) -> "x: 1, y: 2"
  """
  return ", ".join(f"{name}: {show(value)}" for name, value in env.items())


def truncate_display(text: str, width: int = 60) -> str:
  """Shorten long text for one-line listings"""
  text = text.replace('\n', ' ')
  if len(text) > width:
    return text[:width - 3] + "..."
  return text


def binding_lines(env: Mapping[str, Any], show: Callable[[Any], str] = str,
                  empty: str = "(none)") -> List[str]:
  """One indented `name = value` line per binding, for the REPL listings"""
  if not env:
    return [f"  {empty}"]
  return [f"  {name} = {truncate_display(show(value))}" for name, value in env.items()]
