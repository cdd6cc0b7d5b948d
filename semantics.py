"""
Lox Semantic Analysis - Pure Functional Style
Checks where non-local control flow may appear before anything is evaluated
"""

import sys
from typing import Dict, List

from error_handling import LoxError, make_diagnostic, sort_diagnostics, where_for_token
from syntax import (
  BlockStmt, BreakStmt, ExpressionStmt, FunctionStmt, IfStmt, PrintStmt,
  ReturnStmt, Stmt, VarStmt, WhileStmt, node_line,
)


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_check_context(in_function: bool = False, in_loop: bool = False) -> Dict:
  """Create an immutable context describing the enclosing boundaries"""
  return {
      'in_function': in_function,
      'in_loop': in_loop
  }


def enter_function() -> Dict:
  """A function body is a fresh loop context: break may not cross it"""
  return make_check_context(in_function=True, in_loop=False)


def enter_loop(context: Dict) -> Dict:
  return {**context, 'in_loop': True}


# ============================================================================
# STATEMENT CHECKS
# ============================================================================

def check_statement(stmt: Stmt, context: Dict, errors: List[Dict], debug: bool = False) -> None:
  """Record every misplaced return/break found under stmt"""
  if debug:
    print(f"Checking: {type(stmt).__name__}", file=sys.stderr)

  match stmt:
    case ReturnStmt(keyword=keyword):
      if not context['in_function']:
        errors.append(make_diagnostic(
            keyword.line, "Can't return from top-level code.", where_for_token(keyword)))
    case BreakStmt(keyword=keyword):
      if not context['in_loop']:
        errors.append(make_diagnostic(
            keyword.line, "Can't use 'break' outside of a loop.", where_for_token(keyword)))
    case BlockStmt(statements=statements):
      check_statements(statements, context, errors, debug)
    case IfStmt(then_branch=then_branch, else_branch=else_branch):
      check_statement(then_branch, context, errors, debug)
      if else_branch is not None:
        check_statement(else_branch, context, errors, debug)
    case WhileStmt(body=body):
      check_statement(body, enter_loop(context), errors, debug)
    case FunctionStmt(body=body):
      check_statements(body, enter_function(), errors, debug)
    case ExpressionStmt() | PrintStmt() | VarStmt():
      # Expressions cannot contain statements
      pass
    case _:
      raise TypeError(f"Unknown statement: {stmt!r}")


def check_statements(statements, context: Dict, errors: List[Dict], debug: bool = False) -> None:
  for stmt in statements:
    check_statement(stmt, context, errors, debug)


# ============================================================================
# MAIN ANALYSIS FUNCTION
# ============================================================================

def analyze_program(statements: List[Stmt], debug: bool = False) -> List[Stmt]:
  """
  Check a parsed program and return it unchanged.
  Raises LoxSemanticsError listing every violation found.
  """
  errors: List[Dict] = []
  context = make_check_context()
  for stmt in statements:
    try:
      check_statement(stmt, context, errors, debug)
    except RecursionError:
      errors.append(make_diagnostic(node_line(stmt), "Nesting is too deep."))

  if errors:
    raise LoxSemanticsError(sort_diagnostics(errors))
  return statements


# ============================================================================
# EXCEPTION CLASS
# ============================================================================

class LoxSemanticsError(LoxError):
  """Lox static check error: control flow used where it cannot apply"""
  pass


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class LoxAnalyzer:
  """Static checker used between parsing and evaluation"""

  def __init__(self, debug: bool = False):
    self.debug = debug

  def analyze(self, statements: List[Stmt]) -> List[Stmt]:
    return analyze_program(statements, self.debug)


def create_analyzer(debug: bool = False) -> LoxAnalyzer:
  """Factory function returning an analyzer"""
  return LoxAnalyzer(debug=debug)


def create_debug_analyzer() -> LoxAnalyzer:
  """Factory function returning a debug analyzer"""
  return create_analyzer(debug=True)
