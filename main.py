"""
Imp Programming Language - Main Entry Point
An interactive interpreter for a small imperative language
"""

import sys
import argparse
from pathlib import Path
from typing import Callable, Dict, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import (
    ImpParser, RESERVED_WORDS, create_parser, create_debug_parser, pretty_print_ast, render_stmt
)
from error_handling import ImpParseError
from interpreter import make_session, repl_step, run_lines, WELCOME, PROMPT, FAREWELL
from stdlib import show_value, list_operators
from utilities import binding_lines


VERSION = "Imp v1.0.0"

REPL_COMMANDS = [":parse", ":env", ":procs", ":help"]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='imp',
      description='Imp - an interpreter for a small imperative language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s                        # Interactive mode
  %(prog)s script.imp             # Run a script, one statement per line
  %(prog)s --parse script.imp     # Parse and show the AST of each statement
  %(prog)s --debug script.imp     # Run with evaluation tracing
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Imp script file to execute'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace parsing, evaluation and execution'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def parse_file(script_path: str, debug: bool = False) -> int:
  """Parse an Imp script file and show the AST of every statement"""
  parser = create_debug_parser() if debug else create_parser()

  try:
    stmts = parser.parse_file(script_path)
  except ImpParseError as e:
    print(e)
    return 1

  print(f"Parsed {len(stmts)} statements:")
  print("=" * 50)
  for i, stmt in enumerate(stmts, 1):
    print(f"\nStatement {i}:")
    print(pretty_print_ast(stmt), end='')
  return 0


def run_script_file(script_path: str, debug: bool = False,
                    write: Callable[[str], None] = print) -> int:
  """Run a script through the REPL step, one statement per line, without prompts"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      lines = f.read().split('\n')
  except FileNotFoundError:
    write(f"Error: Script file '{script_path}' not found")
    return 1
  except PermissionError:
    write(f"Error: Permission denied reading '{script_path}'")
    return 1
  except UnicodeDecodeError as e:
    write(f"Error: Cannot decode file '{script_path}': {e}")
    return 1

  parser = create_debug_parser() if debug else create_parser()
  printed, _ = run_lines(lines, parser, debug)
  for text in printed:
    write(text)
  return 0


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.imp_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # No history yet

  readline.set_history_length(1000)

  completions = sorted(RESERVED_WORDS) + REPL_COMMANDS

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def run_command(line: str, session: Dict, parser: ImpParser, write: Callable[[str], None]) -> None:
  """Handle a REPL meta-command (a line starting with ':')"""
  command, _, argument = line.strip().partition(' ')

  if command == ":parse":
    try:
      write(pretty_print_ast(parser.parse_statement(argument)).rstrip('\n'))
    except ImpParseError as e:
      write(str(e))
  elif command == ":env":
    write("Variables:")
    for entry in binding_lines(session['env'], show_value, "(no bindings)"):
      write(entry)
  elif command == ":procs":
    write("Procedures:")
    for entry in binding_lines(session['penv'], render_stmt, "(no procedures)"):
      write(entry)
  elif command == ":help":
    write("REPL Commands:")
    write("  :parse <stmt>     - Show the parsed AST of a statement")
    write("  :env              - Show variable bindings")
    write("  :procs            - Show declared procedures")
    write("  :help             - Show this help")
    write("  quit;             - Exit REPL")
    write("")
    write("Statements:")
    write("  x := 1 + 2;                          - Assignment")
    write("  print x * 3;                         - Print a value")
    write("  if x < 5 then print 1; else print 2; fi")
    write("  procedure f(a) print a; endproc      - Declare a procedure")
    write("  call f(42);                          - Call a procedure")
    write("  do x := 1; print x; od;              - Sequence")
    write("")
    write(f"Operators: {' '.join(list_operators())}")
  else:
    write(f"Unknown command: {command} (try :help)")


def run_interactive_mode(debug: bool = False,
                         read_line: Callable[[str], str] = input,
                         write: Callable[[str], None] = print) -> Dict:
  """
  Run the read-eval-print loop until quit, end of input or Ctrl-C.
  Returns the final session.
  """
  write(WELCOME)
  if debug:
    write("Debug mode enabled")

  parser = create_debug_parser() if debug else create_parser()
  session = make_session()

  while True:
    try:
      line = read_line(PROMPT)
    except (EOFError, KeyboardInterrupt):
      write(FAREWELL)
      break

    if line.strip().startswith(":"):
      run_command(line, session, parser, write)
      continue

    text, session, finished = repl_step(line, session, parser, debug)
    write(text)
    if finished:
      break

  return session


def main(argv: Optional[list] = None) -> None:
  """Main entry point for Imp"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.parse:
      sys.exit(parse_file(args.script, debug=args.debug))
    sys.exit(run_script_file(args.script, debug=args.debug))

  elif args.parse:
    arg_parser.error("--parse needs a script file")

  setup_readline()
  run_interactive_mode(debug=args.debug)


if __name__ == "__main__":
  main()
