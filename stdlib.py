"""
Lox Standard Library
Native functions seeded into the global environment
"""

import time
from typing import Callable, Dict, List

from environment import Environment
from error_handling import LoxRuntimeError
from utilities import LoxCallable, Value


# ============================================================================
# NATIVE FUNCTION VALUES
# ============================================================================

class NativeFunction(LoxCallable):
  """A callable implemented in Python"""

  def __init__(self, name: str, arity: int, func: Callable[..., Value], signature: str = ""):
    self.name = name
    self._arity = arity
    self.func = func
    self.signature = signature

  def arity(self) -> int:
    return self._arity

  def call(self, interpreter, arguments: List[Value]) -> Value:
    return self.func(*arguments)

  def __str__(self) -> str:
    return "<native fn>"

  def __repr__(self) -> str:
    return f"NativeFunction({self.name!r}, arity={self._arity})"


# ============================================================================
# NATIVES
# ============================================================================

def lox_clock() -> float:
  """Seconds since the epoch, with a fractional part"""
  return time.time_ns() / 1e9


# ============================================================================
# BUILT-IN FUNCTION REGISTRY
# ============================================================================

def make_builtin_function(name: str, arity: int, func: Callable[..., Value], signature: str = "") -> NativeFunction:
  """Create a built-in function value"""
  return NativeFunction(name, arity, func, signature)


BUILTIN_FUNCTIONS: Dict[str, NativeFunction] = {
    "clock": make_builtin_function("clock", 0, lox_clock, "() -> Number"),
}


def get_builtin_function(name: str) -> NativeFunction:
  """Get a built-in function by name"""
  if name in BUILTIN_FUNCTIONS:
    return BUILTIN_FUNCTIONS[name]
  else:
    raise LoxRuntimeError(0, f"Unknown built-in function: {name}")


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())


def create_builtin_env() -> Environment:
  """Create a fresh global environment holding every built-in"""
  env = Environment()
  for name, func in BUILTIN_FUNCTIONS.items():
    env.define(name, func)
  return env
