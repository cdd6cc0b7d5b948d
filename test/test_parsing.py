"""
Parsing tests for the Lox language
Tests grammar, precedence, desugaring and error recovery
"""

import pytest
from parsing import Parser, create_parser, pretty_print_ast
from error_handling import LoxParseError
from scanning import TokenKind, scan
from syntax import (
  Assign, Binary, BlockStmt, BreakStmt, Call, ExpressionStmt, FunctionStmt,
  Grouping, IfStmt, Literal, Logical, PrintStmt, ReturnStmt, Unary, VarStmt,
  Variable, WhileStmt,
)


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


class TestExpressions:
  """Test expression parsing and precedence"""

  def test_factor_binds_tighter_than_term(self, parser):
    expr = parser.parse_expression("1 + 2 * 3")
    assert isinstance(expr, Binary)
    assert expr.operator.kind == TokenKind.PLUS
    assert expr.left == Literal(1.0, 1)
    assert isinstance(expr.right, Binary)
    assert expr.right.operator.kind == TokenKind.STAR

  def test_binary_operators_are_left_associative(self, parser):
    expr = parser.parse_expression("1 - 2 - 3")
    assert isinstance(expr.left, Binary)
    assert expr.right == Literal(3.0, 1)

  def test_assignment_is_right_associative(self, parser):
    expr = parser.parse_expression("a = b = 1")
    assert isinstance(expr, Assign)
    assert expr.name.lexeme == "a"
    assert isinstance(expr.value, Assign)
    assert expr.value.name.lexeme == "b"

  def test_logical_precedence(self, parser):
    """'and' binds tighter than 'or'"""
    expr = parser.parse_expression("a or b and c")
    assert isinstance(expr, Logical)
    assert expr.operator.kind == TokenKind.OR
    assert isinstance(expr.right, Logical)
    assert expr.right.operator.kind == TokenKind.AND

  def test_unary_and_grouping(self, parser):
    expr = parser.parse_expression("-(1 + 2)")
    assert isinstance(expr, Unary)
    assert isinstance(expr.right, Grouping)

  def test_literals(self, parser):
    assert parser.parse_expression("true") == Literal(True, 1)
    assert parser.parse_expression("nil") == Literal(None, 1)
    assert parser.parse_expression('"s"') == Literal("s", 1)

  def test_chained_calls(self, parser):
    expr = parser.parse_expression("f(1)(2, 3)")
    assert isinstance(expr, Call)
    assert len(expr.arguments) == 2
    assert isinstance(expr.callee, Call)
    assert isinstance(expr.callee.callee, Variable)

  def test_incomplete_expression(self, parser):
    with pytest.raises(LoxParseError):
      parser.parse_expression("1 +")


class TestStatements:
  """Test statement parsing"""

  def test_print_and_var(self, parser):
    statements = parser.parse_string("var x = 1; var y; print x;")
    assert isinstance(statements[0], VarStmt)
    assert statements[0].initializer == Literal(1.0, 1)
    assert statements[1].initializer is None
    assert isinstance(statements[2], PrintStmt)

  def test_if_else_binds_to_nearest_if(self, parser):
    [stmt] = parser.parse_string("if (a) if (b) print 1; else print 2;")
    assert isinstance(stmt, IfStmt)
    assert stmt.else_branch is None
    assert isinstance(stmt.then_branch, IfStmt)
    assert isinstance(stmt.then_branch.else_branch, PrintStmt)

  def test_for_loop_desugars_to_while(self, parser):
    [stmt] = parser.parse_string("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, BlockStmt)
    initializer, loop = stmt.statements
    assert isinstance(initializer, VarStmt)
    assert isinstance(loop, WhileStmt)
    assert isinstance(loop.condition, Binary)
    body, increment = loop.body.statements
    assert isinstance(body, PrintStmt)
    assert isinstance(increment, ExpressionStmt)
    assert isinstance(increment.expression, Assign)

  def test_empty_for_clauses(self, parser):
    [stmt] = parser.parse_string("for (;;) break;")
    assert isinstance(stmt, WhileStmt)
    assert stmt.condition.value is True
    assert isinstance(stmt.body, BreakStmt)

  def test_function_declaration(self, parser):
    [stmt] = parser.parse_string("fun add(a, b) { return a + b; }")
    assert isinstance(stmt, FunctionStmt)
    assert stmt.name.lexeme == "add"
    assert [p.lexeme for p in stmt.params] == ["a", "b"]
    assert isinstance(stmt.body[0], ReturnStmt)

  def test_bare_return(self, parser):
    [stmt] = parser.parse_string("fun f() { return; }")
    assert stmt.body[0].value is None

  def test_nodes_keep_source_lines(self, parser):
    statements = parser.parse_string("var a;\n\nprint a;")
    assert statements[0].name.line == 1
    assert statements[1].expression.name.line == 3


class TestParseErrors:
  """Test error reporting and recovery"""

  def test_missing_semicolon_at_end(self, parser):
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string("print 1")
    diagnostic = exc_info.value.diagnostics[0]
    assert diagnostic['message'] == "Expect ';' after value."
    assert diagnostic['where'] == "at end"

  @pytest.mark.parametrize("source", ["1 = 2;", "(a) = 1;", "a + b = c;"])
  def test_invalid_assignment_target(self, parser, source):
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string(source)
    assert exc_info.value.message == "Invalid assignment target."

  def test_synchronize_reports_independent_errors(self, parser):
    source = "var = 1;\nprint ;\nvar ok = 3;\nprint (;"
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string(source)
    diagnostics = exc_info.value.diagnostics
    assert [d['line'] for d in diagnostics] == [1, 2, 4]
    assert diagnostics[0]['message'] == "Expect variable name."
    assert diagnostics[1]['message'] == "Expect expression."

  def test_lexical_and_syntax_errors_reported_together(self, parser):
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string("print @;\nvar = 2;")
    messages = [d['message'] for d in exc_info.value.diagnostics]
    assert "Unexpected character '@'." in messages
    assert "Expect expression." in messages
    assert "Expect variable name." in messages

  def test_too_many_arguments(self, parser):
    source = "f(" + ", ".join(["1"] * 256) + ");"
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string(source)
    assert exc_info.value.message == "Can't have more than 255 arguments."

  def test_parser_keeps_statements_around_errors(self):
    """The low-level parser returns the statements it could recover"""
    parser = Parser(scan("print 1;\nprint ;\nprint 3;"))
    statements = parser.parse()
    assert len(statements) == 2
    assert len(parser.errors) == 1


class TestPrettyPrint:
  """Test the debugging tree dump"""

  def test_pretty_print_ast(self, parser):
    [stmt] = parser.parse_string("print 1 + x;")
    dump = pretty_print_ast(stmt)
    lines = dump.splitlines()
    assert lines[0] == "PrintStmt"
    assert lines[1] == "  Binary(operator=+)"
    assert lines[2] == "    Literal(value=1.0)"
    assert lines[3] == "    Variable(name=x)"


class TestDeepNesting:
  """Input nested past the host stack is reported, not raised as a crash"""

  def test_deeply_nested_groupings(self, parser):
    source = "print " + "(" * 2000 + "1" + ")" * 2000 + ";"
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_string(source)
    assert exc_info.value.message == "Nesting is too deep."
    assert exc_info.value.line == 1

  def test_deeply_nested_expression(self, parser):
    with pytest.raises(LoxParseError) as exc_info:
      parser.parse_expression("-" * 5000 + "1")
    assert exc_info.value.message == "Nesting is too deep."

  def test_moderate_nesting_still_parses(self, parser):
    expr = parser.parse_expression("(" * 20 + "1" + ")" * 20)
    assert isinstance(expr, Grouping)
