"""
Scanner tests for the Lox language
Tokens, literals, comments, line tracking and lexical errors
"""

import pytest
from scanning import Scanner, TokenKind, scan
from error_handling import LoxScanError


def kinds(source):
  return [token.kind for token in scan(source)]


class TestTokens:
  """Test recognition of individual tokens"""

  def test_single_character_tokens(self):
    """Every punctuation character becomes its own token"""
    assert kinds("(){},.-+;*/") == [
        TokenKind.LEFT_PAREN, TokenKind.RIGHT_PAREN,
        TokenKind.LEFT_BRACE, TokenKind.RIGHT_BRACE,
        TokenKind.COMMA, TokenKind.DOT, TokenKind.MINUS, TokenKind.PLUS,
        TokenKind.SEMICOLON, TokenKind.STAR, TokenKind.SLASH,
        TokenKind.EOF,
    ]

  def test_two_character_operators_win(self):
    """Maximal munch prefers '!=' over '!' followed by '='"""
    assert kinds("!= == <= >= ! = < >") == [
        TokenKind.BANG_EQUAL, TokenKind.EQUAL_EQUAL,
        TokenKind.LESS_EQUAL, TokenKind.GREATER_EQUAL,
        TokenKind.BANG, TokenKind.EQUAL, TokenKind.LESS, TokenKind.GREATER,
        TokenKind.EOF,
    ]

  def test_keywords_and_identifiers(self):
    """Reserved words become keywords, everything else identifiers"""
    tokens = scan("var _name2 and break orchid")
    assert [t.kind for t in tokens] == [
        TokenKind.VAR, TokenKind.IDENTIFIER, TokenKind.AND,
        TokenKind.BREAK, TokenKind.IDENTIFIER, TokenKind.EOF,
    ]
    assert tokens[1].lexeme == "_name2"
    assert tokens[4].lexeme == "orchid"

  def test_whitespace_is_skipped(self):
    assert kinds(" \t\r\n ") == [TokenKind.EOF]

  def test_eof_is_always_last(self):
    tokens = scan("")
    assert len(tokens) == 1
    assert tokens[0].kind == TokenKind.EOF
    assert tokens[0].line == 1


class TestLiterals:
  """Test number and string literals"""

  def test_integer_and_decimal_numbers(self):
    tokens = scan("123 12.5")
    assert tokens[0].literal == 123.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 12.5
    assert tokens[1].lexeme == "12.5"

  def test_trailing_dot_is_not_part_of_number(self):
    assert kinds("1.") == [TokenKind.NUMBER, TokenKind.DOT, TokenKind.EOF]

  def test_leading_dot_is_not_part_of_number(self):
    tokens = scan(".5")
    assert [t.kind for t in tokens] == [TokenKind.DOT, TokenKind.NUMBER, TokenKind.EOF]
    assert tokens[1].literal == 5.0

  def test_string_literal_drops_quotes(self):
    tokens = scan('"hello world"')
    assert tokens[0].kind == TokenKind.STRING
    assert tokens[0].literal == "hello world"
    assert tokens[0].lexeme == '"hello world"'

  def test_multiline_string_counts_lines(self):
    """Embedded newlines are kept verbatim and advance the line counter"""
    tokens = scan('"a\nb" x')
    assert tokens[0].literal == "a\nb"
    assert tokens[1].lexeme == "x"
    assert tokens[1].line == 2


class TestComments:
  """Test line and block comments"""

  def test_line_comment(self):
    tokens = scan("// nothing here\nprint")
    assert tokens[0].kind == TokenKind.PRINT
    assert tokens[0].line == 2

  def test_block_comment_ends_only_at_star_slash(self):
    """A lone '*' or '/' inside the comment does not end it"""
    tokens = scan("/* a * b / c */ 1")
    assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.EOF]

  def test_block_comment_counts_lines(self):
    tokens = scan("/*\n\n*/ x")
    assert tokens[0].kind == TokenKind.IDENTIFIER
    assert tokens[0].line == 3

  def test_unterminated_block_comment(self):
    with pytest.raises(LoxScanError) as exc_info:
      scan("1\n/* never\nclosed")
    assert exc_info.value.message == "Unterminated block comment."
    assert exc_info.value.line == 2


class TestScanErrors:
  """Test lexical error reporting"""

  def test_unterminated_string(self):
    with pytest.raises(LoxScanError) as exc_info:
      scan('var s = "abc\n\n')
    assert exc_info.value.message == "Unterminated string."
    assert exc_info.value.line == 1

  def test_unexpected_character(self):
    with pytest.raises(LoxScanError) as exc_info:
      scan("var @")
    assert exc_info.value.message == "Unexpected character '@'."

  def test_scanning_continues_after_errors(self):
    """Every bad character is reported and good tokens are still produced"""
    scanner = Scanner("@ 1\n#")
    tokens = scanner.scan_tokens()
    assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.EOF]
    assert [e['line'] for e in scanner.errors] == [1, 2]
    assert "[line 2] Error: Unexpected character '#'." in str(LoxScanError(scanner.errors))
