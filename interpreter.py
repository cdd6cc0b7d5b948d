"""
Lox Interpreter - Tree-walking evaluator
Statements return explicit control outcomes; return/break never unwind the host stack
"""

import sys
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TextIO, Union

from environment import Environment
from error_handling import LoxRuntimeError
from scanning import Token, TokenKind
from stdlib import create_builtin_env
from syntax import (
  Assign, Binary, BlockStmt, BreakStmt, Call, Expr, ExpressionStmt, FunctionStmt,
  Grouping, IfStmt, Literal, Logical, PrintStmt, ReturnStmt, Stmt, Unary, VarStmt,
  Variable, WhileStmt, node_line,
)
from utilities import (
  LoxCallable,
  Value,
  arity_error,
  check_number_operand,
  check_number_operands,
  is_equal,
  is_number,
  is_truthy,
  number_text,
  operation_error,
  stringify,
)


DEFAULT_MAX_CALL_DEPTH = 255


# ============================================================================
# CONTROL OUTCOMES
# ============================================================================

@dataclass(frozen=True)
class Normal:
  """Execution fell off the end of the statement"""
  pass


@dataclass(frozen=True)
class Returning:
  """A 'return' is propagating towards the nearest call boundary"""
  value: Value


@dataclass(frozen=True)
class Breaking:
  """A 'break' is propagating towards the nearest loop boundary"""
  keyword: Token


Outcome = Union[Normal, Returning, Breaking]

NORMAL = Normal()


# ============================================================================
# USER FUNCTIONS
# ============================================================================

class LoxFunction(LoxCallable):
  """A function declaration paired with the environment it was declared in"""

  def __init__(self, declaration: FunctionStmt, closure: Environment):
    self.declaration = declaration
    self.closure = closure

  def arity(self) -> int:
    return len(self.declaration.params)

  def call(self, interpreter: 'Interpreter', arguments: List[Value]) -> Value:
    environment = Environment(self.closure)
    for param, argument in zip(self.declaration.params, arguments):
      environment.define(param.lexeme, argument)

    outcome = interpreter.execute_block(self.declaration.body, environment)
    match outcome:
      case Returning(value=value):
        return value
      case Breaking(keyword=keyword):
        # The static check rejects this; guard against unchecked trees
        raise LoxRuntimeError(keyword, "Can't use 'break' outside of a loop.")
    return None

  def __str__(self) -> str:
    return f"<fn {self.declaration.name.lexeme}>"

  def __repr__(self) -> str:
    return f"LoxFunction({self.declaration.name.lexeme!r}, arity={self.arity()})"


# ============================================================================
# INTERPRETER
# ============================================================================

class Interpreter:
  """Evaluates statements against a chain of environments rooted at globals"""

  def __init__(self, output: Optional[TextIO] = None, debug: bool = False,
               max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
    self.globals = create_builtin_env()
    self.environment = self.globals
    self.output = output
    self.debug = debug
    self.max_call_depth = max_call_depth
    self._call_depth = 0
    self._call_line = 0

  # ------------------------------------------------------------------
  # Entry point
  # ------------------------------------------------------------------

  def interpret(self, statements: Sequence[Stmt]) -> Value:
    """
    Execute a program, returning the value of a trailing expression statement.
    Raises LoxRuntimeError on the first runtime error.
    """
    result: Value = None
    try:
      for statement in statements:
        if isinstance(statement, ExpressionStmt):
          result = self.evaluate(statement.expression)
          continue

        result = None
        outcome = self.execute(statement)
        match outcome:
          case Returning():
            raise LoxRuntimeError(node_line(statement), "Can't return from top-level code.")
          case Breaking(keyword=keyword):
            raise LoxRuntimeError(keyword, "Can't use 'break' outside of a loop.")
    except RecursionError:
      self._reset_frames()
      raise LoxRuntimeError(self._call_line, "Stack overflow.") from None
    except LoxRuntimeError:
      self._reset_frames()
      raise
    return result

  def _reset_frames(self) -> None:
    # An error may abandon any number of frames; globals stay usable afterwards
    self.environment = self.globals
    self._call_depth = 0

  # ------------------------------------------------------------------
  # Statements
  # ------------------------------------------------------------------

  def execute(self, stmt: Stmt) -> Outcome:
    if self.debug:
      print(f"Executing: {type(stmt).__name__} (line {node_line(stmt)})", file=sys.stderr)

    match stmt:
      case ExpressionStmt(expression=expr):
        self.evaluate(expr)
        return NORMAL

      case PrintStmt(expression=expr):
        value = self.evaluate(expr)
        print(stringify(value), file=self.output or sys.stdout)
        return NORMAL

      case VarStmt(name=name, initializer=initializer):
        value = None
        if initializer is not None:
          value = self.evaluate(initializer)
        self.environment.define(name.lexeme, value)
        return NORMAL

      case BlockStmt(statements=statements):
        return self.execute_block(statements, Environment(self.environment))

      case IfStmt(condition=condition, then_branch=then_branch, else_branch=else_branch):
        if is_truthy(self.evaluate(condition)):
          return self.execute(then_branch)
        if else_branch is not None:
          return self.execute(else_branch)
        return NORMAL

      case WhileStmt(condition=condition, body=body):
        while is_truthy(self.evaluate(condition)):
          outcome = self.execute(body)
          if isinstance(outcome, Breaking):
            break
          if isinstance(outcome, Returning):
            return outcome
        return NORMAL

      case FunctionStmt(name=name):
        self.environment.define(name.lexeme, LoxFunction(stmt, self.environment))
        return NORMAL

      case ReturnStmt(value=value_expr):
        value = None
        if value_expr is not None:
          value = self.evaluate(value_expr)
        return Returning(value)

      case BreakStmt(keyword=keyword):
        return Breaking(keyword)

    raise TypeError(f"Unknown statement: {stmt!r}")

  def execute_block(self, statements: Sequence[Stmt], environment: Environment) -> Outcome:
    """Run statements in environment, restoring the previous one on any exit"""
    previous = self.environment
    try:
      self.environment = environment
      for statement in statements:
        outcome = self.execute(statement)
        if not isinstance(outcome, Normal):
          return outcome
      return NORMAL
    finally:
      self.environment = previous

  # ------------------------------------------------------------------
  # Expressions
  # ------------------------------------------------------------------

  def evaluate(self, expr: Expr) -> Value:
    match expr:
      case Literal(value=value):
        return value

      case Grouping(expression=inner):
        return self.evaluate(inner)

      case Unary(operator=operator, right=right):
        return self._evaluate_unary(operator, self.evaluate(right))

      case Binary(left=left, operator=operator, right=right):
        left_value = self.evaluate(left)
        right_value = self.evaluate(right)
        return self._evaluate_binary(operator, left_value, right_value)

      case Logical(left=left, operator=operator, right=right):
        left_value = self.evaluate(left)
        if operator.kind == TokenKind.OR:
          if is_truthy(left_value):
            return left_value
        elif not is_truthy(left_value):
          return left_value
        return self.evaluate(right)

      case Variable(name=name):
        return self.environment.get(name)

      case Assign(name=name, value=value_expr):
        value = self.evaluate(value_expr)
        self.environment.assign(name, value)
        return value

      case Call(callee=callee_expr, paren=paren, arguments=argument_exprs):
        callee = self.evaluate(callee_expr)
        arguments = [self.evaluate(argument) for argument in argument_exprs]
        return self.call_function(callee, arguments, paren)

    raise TypeError(f"Unknown expression: {expr!r}")

  def _evaluate_unary(self, operator: Token, right: Value) -> Value:
    if operator.kind == TokenKind.BANG:
      return not is_truthy(right)
    if operator.kind == TokenKind.MINUS:
      return -check_number_operand(operator, right)
    raise TypeError(f"Unknown unary operator: {operator.lexeme}")

  def _evaluate_binary(self, operator: Token, left: Value, right: Value) -> Value:
    kind = operator.kind

    if kind == TokenKind.EQUAL_EQUAL:
      return is_equal(left, right)
    if kind == TokenKind.BANG_EQUAL:
      return not is_equal(left, right)

    if kind == TokenKind.PLUS:
      return self._add(operator, left, right)

    check_number_operands(operator, left, right)
    if kind == TokenKind.MINUS:
      return left - right
    if kind == TokenKind.STAR:
      return left * right
    if kind == TokenKind.SLASH:
      if left == 0 or right == 0:
        raise LoxRuntimeError(operator, "Division by zero operand is not allowed.")
      return left / right
    if kind == TokenKind.GREATER:
      return left > right
    if kind == TokenKind.GREATER_EQUAL:
      return left >= right
    if kind == TokenKind.LESS:
      return left < right
    if kind == TokenKind.LESS_EQUAL:
      return left <= right
    raise TypeError(f"Unknown binary operator: {operator.lexeme}")

  def _add(self, operator: Token, left: Value, right: Value) -> Value:
    if is_number(left) and is_number(right):
      return left + right
    if isinstance(left, str) and isinstance(right, str):
      return left + right
    if isinstance(left, str) and is_number(right):
      return left + number_text(right)
    if is_number(left) and isinstance(right, str):
      return number_text(left) + right
    raise operation_error(operator, left, right)

  # ------------------------------------------------------------------
  # Calls
  # ------------------------------------------------------------------

  def call_function(self, callee: Value, arguments: List[Value], paren: Token) -> Value:
    if not isinstance(callee, LoxCallable):
      raise LoxRuntimeError(paren, "Can only call functions and natives.")
    if len(arguments) != callee.arity():
      raise arity_error(paren, callee.arity(), len(arguments))

    self._call_line = paren.line
    if self._call_depth >= self.max_call_depth:
      raise LoxRuntimeError(paren, "Stack overflow.")

    if self.debug:
      print(f"Calling: {callee} with {len(arguments)} arguments (line {paren.line})", file=sys.stderr)

    self._call_depth += 1
    try:
      return callee.call(self, arguments)
    finally:
      self._call_depth -= 1


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[TextIO] = None,
                       max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> Interpreter:
  """Factory function returning an interpreter with a fresh global environment"""
  return Interpreter(output=output, debug=debug, max_call_depth=max_call_depth)


def create_debug_interpreter(output: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)


def describe_value(value: Any) -> str:
  """Render a value for the REPL, quoting strings so they read as literals"""
  if isinstance(value, str):
    return f'"{value}"'
  return stringify(value)
