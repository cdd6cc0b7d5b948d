"""
Lox Programming Language - Main Entry Point
Runs a script file or an interactive prompt over the scanner, parser and interpreter
"""

import sys
import argparse
from typing import Optional, TextIO
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import LoxError, LoxErrorHandler, LoxParseError, LoxRuntimeError
from interpreter import Interpreter, create_interpreter, describe_value
from parsing import LoxParser, create_parser, pretty_print_ast
from scanning import KEYWORDS, Scanner, TokenKind, format_tokens
from semantics import LoxAnalyzer, LoxSemanticsError, create_analyzer
from stdlib import get_builtin_function, list_builtin_functions
from syntax import ExpressionStmt
from utilities import Value


VERSION = "lox 1.0.0"

# sysexits.h codes
EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70
EX_IOERR = 74

# Every Lox call spends several Python frames; leave room for the full call depth
RECURSION_LIMIT = 4000


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='lox',
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s                        # Interactive mode
  %(prog)s --tokens script.lox    # Scan file and show tokens
  %(prog)s --ast script.lox       # Parse file and show the syntax tree
  %(prog)s --debug script.lox     # Run with debug output on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--ast',
      action='store_true',
      help='Parse file and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--no-color',
      action='store_true',
      help='Do not colorize error messages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def run_source(source: str, parser: LoxParser, analyzer: LoxAnalyzer, interpreter: Interpreter) -> Value:
  """Scan, parse, check and run one source text; errors propagate as LoxError"""
  statements = parser.parse_string(source)
  analyzer.analyze(statements)
  return interpreter.interpret(statements)


def read_source(script_path: str, error_stream: TextIO) -> Optional[str]:
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=error_stream)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=error_stream)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=error_stream)
  except OSError as e:
    print(f"Error: Cannot read '{script_path}': {e}", file=error_stream)
  return None


def run_script_file(script_path: str, debug: bool = False, color: bool = True,
                    show_tokens: bool = False, show_ast: bool = False,
                    output: Optional[TextIO] = None, error_stream: Optional[TextIO] = None) -> int:
  """Run a Lox script file and return the process exit status"""
  output = output or sys.stdout
  error_stream = error_stream or sys.stderr

  source = read_source(script_path, error_stream)
  if source is None:
    return EX_IOERR

  error_handler = LoxErrorHandler(source, script_path, color)
  parser = create_parser(debug)
  analyzer = create_analyzer(debug)
  interpreter = create_interpreter(debug, output=output)

  try:
    if show_tokens:
      print(format_tokens(parser.tokenize(source)), file=output)
      return 0

    if show_ast:
      for statement in parser.parse_string(source):
        print(pretty_print_ast(statement), end='', file=output)
      return 0

    run_source(source, parser, analyzer, interpreter)
  except (LoxParseError, LoxSemanticsError) as e:
    print(error_handler.format_error(e), file=error_stream)
    return EX_DATAERR
  except LoxRuntimeError as e:
    print(error_handler.format_error(e), file=error_stream)
    return EX_SOFTWARE

  return 0


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.lox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + list_builtin_functions() + [":env", ":help", ":quit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  :quit             - Exit REPL (or Ctrl-D)")
  print()
  print("Language features:")
  print("  var x = 5;                     - Variable declaration")
  print("  fun add(a, b) { return a + b; } - Function declaration")
  print("  add(1, 2);                     - Expression, value is echoed")
  print("  for (var i = 0; i < 3; i = i + 1) print i;")
  print()
  print("Built-in functions:")
  for name in list_builtin_functions():
    print(f"  {name} : {get_builtin_function(name).signature}")


def needs_terminator(code: str) -> bool:
  """True when the last token of a REPL line is not a ';' or '}'"""
  scanner = Scanner(code)
  tokens = scanner.scan_tokens()
  if scanner.errors or len(tokens) < 2:
    # Left for the parser to report, or nothing but comments
    return False
  return tokens[-2].kind not in (TokenKind.SEMICOLON, TokenKind.RIGHT_BRACE)


def run_interactive_mode(debug: bool = False, color: bool = True) -> None:
  """Run Lox in interactive mode; one interpreter lives for the whole session"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_parser(debug)
  analyzer = create_analyzer(debug)
  interpreter = create_interpreter(debug)

  while True:
    try:
      code = input("> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    command = code.strip()
    if not command:
      continue
    if command == ":quit":
      break

    if command == ":help":
      print_repl_help()
      continue

    if command == ":env":
      for name, value in interpreter.globals.bindings.items():
        print(f"  {name} = {describe_value(value)}")
      continue

    # A bare expression without ';' is accepted as an expression statement
    if needs_terminator(code):
      code = code + '\n;'

    error_handler = LoxErrorHandler(code, "<stdin>", color)
    try:
      statements = parser.parse_string(code)
      analyzer.analyze(statements)
      result = interpreter.interpret(statements)
      if statements and isinstance(statements[-1], ExpressionStmt):
        print(f"=> {describe_value(result)}")
    except LoxError as e:
      print(error_handler.format_error(e), file=sys.stderr)


def main(argv: Optional[list] = None) -> int:
  """Main entry point for Lox"""
  sys.setrecursionlimit(RECURSION_LIMIT)
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)
  color = not args.no_color and sys.stderr.isatty()

  if args.script:
    return run_script_file(
        args.script,
        debug=args.debug,
        color=color,
        show_tokens=args.tokens,
        show_ast=args.ast
    )

  if args.tokens or args.ast:
    print("Error: --tokens and --ast need a script file", file=sys.stderr)
    return EX_USAGE

  run_interactive_mode(debug=args.debug, color=color)
  return 0


if __name__ == "__main__":
  sys.exit(main())
