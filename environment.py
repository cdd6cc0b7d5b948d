"""
Lox runtime environments
A chain of mutable scopes shared by blocks, call frames and closures
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from error_handling import LoxRuntimeError
from scanning import Token
from utilities import Value


class Environment:
  """One lexical scope; lookups and assignments walk outward through enclosing"""

  def __init__(self, enclosing: Optional['Environment'] = None):
    self.values: Dict[str, Value] = {}
    self.enclosing = enclosing

  @property
  def bindings(self) -> Mapping[str, Value]:
    """Read-only view of this scope's own bindings"""
    return MappingProxyType(self.values)

  def define(self, name: str, value: Value) -> None:
    """Bind name in this scope, overwriting any existing binding here"""
    self.values[name] = value

  def get(self, name: Token) -> Value:
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        return environment.values[name.lexeme]
      environment = environment.enclosing

    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def assign(self, name: Token, value: Value) -> None:
    """Update the nearest existing binding; never creates one"""
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        environment.values[name.lexeme] = value
        return
      environment = environment.enclosing

    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def __contains__(self, name: str) -> bool:
    environment = self
    while environment is not None:
      if name in environment.values:
        return True
      environment = environment.enclosing
    return False
