"""
Utilities module for the Lox interpreter
Runtime value model, value helpers and error message builders
"""

from abc import ABC, abstractmethod
from typing import Any, List, Union

from error_handling import LoxRuntimeError


# ==================== VALUE MODEL ====================

class LoxCallable(ABC):
  """Uniform invocation contract for natives and user functions"""

  @abstractmethod
  def arity(self) -> int:
    ...

  @abstractmethod
  def call(self, interpreter: Any, arguments: List['Value']) -> 'Value':
    ...


# nil | Boolean | Number | String | Callable
Value = Union[None, bool, float, str, LoxCallable]


def type_name(value: Value) -> str:
  """Name of a value's runtime type, for error messages"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "boolean"
  if isinstance(value, float):
    return "number"
  if isinstance(value, str):
    return "string"
  if isinstance(value, LoxCallable):
    return "function"
  raise TypeError(f"Not a Lox value: {value!r}")


def is_number(value: Value) -> bool:
  # bool is an int subclass, never a float, so True is not a number here
  return isinstance(value, float)


def is_truthy(value: Value) -> bool:
  """nil and false are falsey; everything else is truthy"""
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(a: Value, b: Value) -> bool:
  """Structural equality; values of different types are never equal"""
  if a is None and b is None:
    return True
  if type(a) is not type(b):
    return False
  if isinstance(a, LoxCallable):
    return a is b
  return a == b


# ==================== RENDERING ====================

def stringify(value: Value) -> str:
  """
  Render a value the way 'print' shows it

  Numbers use six-decimal fixed-point formatting; a literal '.000000'
  suffix is trimmed, nothing else is rounded or stripped.
  """
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, float):
    text = f"{value:f}"
    if text.endswith(".000000"):
      text = text[:-7]
    return text
  return str(value)


def number_text(value: float) -> str:
  """Shortest text for a number, used when concatenating with strings"""
  text = repr(value)
  if text.endswith(".0"):
    text = text[:-2]
  return text


# ==================== ERROR MESSAGE BUILDERS ====================

def arity_error(paren: Any, expected: int, got: int) -> LoxRuntimeError:
  return LoxRuntimeError(paren, f"Expected {expected} arguments but got {got}.")


def number_operands_error(operator: Any) -> LoxRuntimeError:
  return LoxRuntimeError(operator, f"Operands of '{operator.lexeme}' must be numbers.")


def number_operand_error(operator: Any) -> LoxRuntimeError:
  return LoxRuntimeError(operator, f"Operand of '{operator.lexeme}' must be a number.")


def operation_error(operator: Any, left: Value, right: Value) -> LoxRuntimeError:
  """
  Error for '+' applied to an unsupported pair of operand types

  Args:
    operator: The '+' token
    left: Left operand value
    right: Right operand value

  Returns:
    LoxRuntimeError with formatted message
  """
  return LoxRuntimeError(
    operator,
    f"Operands of '{operator.lexeme}' must be two numbers or strings, "
    f"got {type_name(left)} and {type_name(right)}."
  )


# ==================== VALIDATION UTILITIES ====================

def check_number_operand(operator: Any, operand: Value) -> float:
  if not is_number(operand):
    raise number_operand_error(operator)
  return operand


def check_number_operands(operator: Any, left: Value, right: Value) -> None:
  if not (is_number(left) and is_number(right)):
    raise number_operands_error(operator)
