"""
Test configuration for Lox interpreter tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from semantics import create_analyzer
from interpreter import create_interpreter
from main import run_source


@pytest.fixture
def run():
  """Run Lox source in a fresh interpreter and return the printed lines"""
  def _run(source: str):
    output = io.StringIO()
    interpreter = create_interpreter(output=output)
    run_source(source, create_parser(), create_analyzer(), interpreter)
    return output.getvalue().splitlines()
  return _run


@pytest.fixture
def setup():
  """Parser, analyzer and an interpreter writing to a buffer"""
  output = io.StringIO()
  return create_parser(), create_analyzer(), create_interpreter(output=output), output
