"""
Imp Interpreter - Pure Functional Style
Expressions evaluate to values, statements execute to
(output, procedure environment, variable environment) triples.
Environments are plain dicts that are never mutated: every step that
binds something returns a fresh one.
"""

import sys
from typing import Any, Dict, List, Optional, Tuple

from parsing import (
    IntExp, BoolExp, VarExp, FunExp, LetExp, AppExp, IfExp,
    IntOpExp, BoolOpExp, CompOpExp,
    SetStmt, PrintStmt, QuitStmt, IfStmt, ProcedureStmt, CallStmt, SeqStmt,
    ImpParser, create_parser, create_debug_parser,
)
from error_handling import ImpParseError
from stdlib import (
    IntVal, BoolVal, CloVal, ExnVal, Val,
    ImpRuntimeError,
    lift_int_op, lift_bool_op, lift_comp_op,
    show_value,
    NO_MATCH, NOT_A_BOOL, NON_CLOSURE, RECURSION_LIMIT,
)
from utilities import overlay, bind_positional, extend

# Each nesting level of input or of user recursion costs several Python frames
sys.setrecursionlimit(10_000)


Env = Dict[str, Val]
PEnv = Dict[str, ProcedureStmt]
Result = Tuple[str, PEnv, Env]

WELCOME = "Welcome to your interpreter!"
PROMPT = "> "
FAREWELL = "Bye!"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_session(penv: Optional[PEnv] = None, env: Optional[Env] = None) -> Dict:
  """Create the state carried between REPL inputs"""
  return {
      'penv': penv or {},
      'env': env or {}
  }


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_exp(exp: Any, env: Env, debug: bool = False) -> Val:
  """
  Evaluate an expression to a value.
  Pure: the environment is only read, failures come back as ExnVal.
  """
  if debug:
    print(f"Evaluating: {type(exp).__name__}")

  if isinstance(exp, IntExp):
    return IntVal(exp.value)
  elif isinstance(exp, BoolExp):
    return BoolVal(exp.value)
  elif isinstance(exp, VarExp):
    return eval_var(exp, env, debug)
  elif isinstance(exp, IntOpExp):
    return lift_int_op(exp.op, eval_exp(exp.left, env, debug), eval_exp(exp.right, env, debug))
  elif isinstance(exp, BoolOpExp):
    return lift_bool_op(exp.op, eval_exp(exp.left, env, debug), eval_exp(exp.right, env, debug))
  elif isinstance(exp, CompOpExp):
    return lift_comp_op(exp.op, eval_exp(exp.left, env, debug), eval_exp(exp.right, env, debug))
  elif isinstance(exp, IfExp):
    return eval_if(exp, env, debug)
  elif isinstance(exp, FunExp):
    return CloVal(exp.params, exp.body, env)
  elif isinstance(exp, AppExp):
    return eval_app(exp, env, debug)
  elif isinstance(exp, LetExp):
    return eval_let(exp, env, debug)
  raise ImpRuntimeError(f"Not an expression: {exp!r}")


def eval_var(exp: VarExp, env: Env, debug: bool = False) -> Val:
  """Look the name up in the environment"""
  if exp.name not in env:
    return ExnVal(NO_MATCH)
  return env[exp.name]


def eval_if(exp: IfExp, env: Env, debug: bool = False) -> Val:
  """Only the selected branch is evaluated"""
  condition = eval_exp(exp.condition, env, debug)
  if not isinstance(condition, BoolVal):
    return ExnVal(NOT_A_BOOL)
  branch = exp.then_branch if condition.value else exp.else_branch
  return eval_exp(branch, env, debug)


def eval_app(exp: AppExp, env: Env, debug: bool = False) -> Val:
  """
  Apply a closure. Arguments are evaluated in the caller's environment
  and bound over the closure's captured environment.
  """
  func = eval_exp(exp.function, env, debug)
  if not isinstance(func, CloVal):
    return ExnVal(NON_CLOSURE)

  args = [eval_exp(arg, env, debug) for arg in exp.args]
  call_env = overlay(func.env, bind_positional(func.params, args))
  return eval_exp(func.body, call_env, debug)


def eval_let(exp: LetExp, env: Env, debug: bool = False) -> Val:
  """Every binding sees the outer environment only"""
  values = {name: eval_exp(bound, env, debug) for name, bound in exp.bindings}
  return eval_exp(exp.body, overlay(env, values), debug)


# ============================================================================
# EXECUTION FUNCTIONS
# ============================================================================

def exec_stmt(stmt: Any, penv: PEnv, env: Env, debug: bool = False) -> Result:
  """
  Execute a statement and return (output, updated_penv, updated_env).
  Neither input environment is mutated.
  """
  if debug:
    print(f"Executing: {type(stmt).__name__}")

  if isinstance(stmt, PrintStmt):
    return show_value(eval_exp(stmt.exp, env, debug)), penv, env
  elif isinstance(stmt, SetStmt):
    return "", penv, extend(env, stmt.name, eval_exp(stmt.exp, env, debug))
  elif isinstance(stmt, IfStmt):
    return exec_if(stmt, penv, env, debug)
  elif isinstance(stmt, ProcedureStmt):
    return "", extend(penv, stmt.name, stmt), env
  elif isinstance(stmt, CallStmt):
    return exec_call(stmt, penv, env, debug)
  elif isinstance(stmt, SeqStmt):
    return exec_seq(stmt, penv, env, debug)
  elif isinstance(stmt, QuitStmt):
    # Only a top-level quit ends the session, see repl_step
    return "", penv, env
  raise ImpRuntimeError(f"Not a statement: {stmt!r}")


def exec_if(stmt: IfStmt, penv: PEnv, env: Env, debug: bool = False) -> Result:
  """A non-boolean condition is reported as output, not as a value"""
  condition = eval_exp(stmt.condition, env, debug)
  if not isinstance(condition, BoolVal):
    return show_value(ExnVal(NOT_A_BOOL)), penv, env
  branch = stmt.then_branch if condition.value else stmt.else_branch
  return exec_stmt(branch, penv, env, debug)


def exec_call(stmt: CallStmt, penv: PEnv, env: Env, debug: bool = False) -> Result:
  """
  Run a declared procedure. The body sees the caller's bindings with the
  parameters laid over them, and whatever environment it ends with
  replaces the caller's.
  """
  if stmt.name not in penv:
    return f"Procedure {stmt.name} undefined", penv, env

  proc = penv[stmt.name]
  if not isinstance(proc, ProcedureStmt):
    raise ImpRuntimeError(f"Procedure table holds a non-procedure under {stmt.name}")

  args = [eval_exp(arg, env, debug) for arg in stmt.args]
  call_env = overlay(env, bind_positional(proc.params, args))
  return exec_stmt(proc.body, penv, call_env, debug)


def exec_seq(stmt: SeqStmt, penv: PEnv, env: Env, debug: bool = False) -> Result:
  """Thread both environments left to right, concatenating the output"""
  outputs = []
  for sub in stmt.stmts:
    output, penv, env = exec_stmt(sub, penv, env, debug)
    outputs.append(output)
  return "".join(outputs), penv, env


# ============================================================================
# REPL STEP
# ============================================================================

def repl_step(line: str, session: Dict, parser: ImpParser,
              debug: bool = False) -> Tuple[str, Dict, bool]:
  """
  Parse and run one input line.
  Returns (text to print, next session, finished).
  A parse failure or a blown recursion limit leaves the session unchanged.
  """
  try:
    stmt = parser.parse_statement(line)
  except ImpParseError as e:
    return str(e), session, False

  if isinstance(stmt, QuitStmt):
    return FAREWELL, session, True

  try:
    output, penv, env = exec_stmt(stmt, session['penv'], session['env'], debug)
  except RecursionError:
    return show_value(ExnVal(RECURSION_LIMIT)), session, False

  return output, make_session(penv, env), False


def run_lines(lines: List[str], parser: Optional[ImpParser] = None,
              debug: bool = False) -> Tuple[List[str], Dict]:
  """
  Feed lines through repl_step until a quit statement or the end of input.
  Blank lines are skipped. Returns the printed lines and the final session.
  """
  parser = parser or create_parser(debug)
  session = make_session()
  printed = []

  for line in lines:
    if not line.strip():
      continue
    text, session, finished = repl_step(line, session, parser, debug)
    printed.append(text)
    if finished:
      break

  return printed, session


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

def create_interpreter(debug: bool = False):
  """Factory function returning an interpreter bound to its own session"""
  parser = create_debug_parser() if debug else create_parser()
  state = {'session': make_session()}

  def run(line: str) -> Tuple[str, bool]:
    text, state['session'], finished = repl_step(line, state['session'], parser, debug)
    return text, finished

  return type('Interpreter', (), {
      'debug': debug,
      'parser': parser,
      'session': property(lambda self: state['session']),
      'evaluate': lambda self, exp, env=None: eval_exp(exp, env or {}, debug),
      'execute': lambda self, stmt, penv=None, env=None: exec_stmt(stmt, penv or {}, env or {}, debug),
      'run': lambda self, line: run(line),
  })()


def create_debug_interpreter():
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
