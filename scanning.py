"""
Lox Scanner
Single-pass lexical analysis producing tokens with line information
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from error_handling import LoxScanError, make_diagnostic


class TokenKind(Enum):
    # Single-character tokens
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    COMMA = ","
    DOT = "."
    MINUS = "-"
    PLUS = "+"
    SEMICOLON = ";"
    SLASH = "/"
    STAR = "*"

    # One or two character tokens
    BANG = "!"
    BANG_EQUAL = "!="
    EQUAL = "="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="

    # Literals
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"

    # Keywords
    AND = "and"
    BREAK = "break"
    CLASS = "class"
    ELSE = "else"
    FALSE = "false"
    FOR = "for"
    FUN = "fun"
    IF = "if"
    NIL = "nil"
    OR = "or"
    PRINT = "print"
    RETURN = "return"
    SUPER = "super"
    THIS = "this"
    TRUE = "true"
    VAR = "var"
    WHILE = "while"

    EOF = "eof"


KEYWORDS: Dict[str, TokenKind] = {
    kind.value: kind for kind in (
        TokenKind.AND, TokenKind.BREAK, TokenKind.CLASS, TokenKind.ELSE,
        TokenKind.FALSE, TokenKind.FOR, TokenKind.FUN, TokenKind.IF,
        TokenKind.NIL, TokenKind.OR, TokenKind.PRINT, TokenKind.RETURN,
        TokenKind.SUPER, TokenKind.THIS, TokenKind.TRUE, TokenKind.VAR,
        TokenKind.WHILE,
    )
}

SINGLE_CHAR_TOKENS: Dict[str, TokenKind] = {
    '(': TokenKind.LEFT_PAREN,
    ')': TokenKind.RIGHT_PAREN,
    '{': TokenKind.LEFT_BRACE,
    '}': TokenKind.RIGHT_BRACE,
    ',': TokenKind.COMMA,
    '.': TokenKind.DOT,
    '-': TokenKind.MINUS,
    '+': TokenKind.PLUS,
    ';': TokenKind.SEMICOLON,
    '*': TokenKind.STAR,
}

# First character -> (kind if followed by '=', kind otherwise)
EQUAL_SUFFIX_TOKENS: Dict[str, Tuple[TokenKind, TokenKind]] = {
    '!': (TokenKind.BANG_EQUAL, TokenKind.BANG),
    '=': (TokenKind.EQUAL_EQUAL, TokenKind.EQUAL),
    '<': (TokenKind.LESS_EQUAL, TokenKind.LESS),
    '>': (TokenKind.GREATER_EQUAL, TokenKind.GREATER),
}

WHITESPACE = {' ', '\r', '\t'}


@dataclass(frozen=True)
class Token:
    """Lox token with the lexeme it was scanned from"""
    kind: TokenKind
    lexeme: str
    literal: Any
    line: int

    def __str__(self) -> str:
        if self.literal is not None:
            return f"{self.kind.name} {self.lexeme} {self.literal}"
        return f"{self.kind.name} {self.lexeme}"


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def is_alpha(c: str) -> bool:
    return ('a' <= c <= 'z') or ('A' <= c <= 'Z') or c == '_'


def is_alphanumeric(c: str) -> bool:
    return is_alpha(c) or is_digit(c)


class Scanner:
    """Converts source text into tokens, recording every lexical error"""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.errors: List[Dict] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        """Scan the whole source; always ends with an EOF token"""
        while not self._is_at_end():
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenKind.EOF, "", None, self.line))
        return self.tokens

    def _scan_token(self) -> None:
        c = self._advance()

        if c in SINGLE_CHAR_TOKENS:
            self._add_token(SINGLE_CHAR_TOKENS[c])
        elif c in EQUAL_SUFFIX_TOKENS:
            with_equal, alone = EQUAL_SUFFIX_TOKENS[c]
            self._add_token(with_equal if self._match('=') else alone)
        elif c == '/':
            if self._match('/'):
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            elif self._match('*'):
                self._block_comment()
            else:
                self._add_token(TokenKind.SLASH)
        elif c in WHITESPACE:
            pass
        elif c == '\n':
            self.line += 1
        elif c == '"':
            self._string()
        elif is_digit(c):
            self._number()
        elif is_alpha(c):
            self._identifier()
        else:
            self._error(self.line, f"Unexpected character '{c}'.")

    def _block_comment(self) -> None:
        opened_on = self.line
        while not self._is_at_end():
            if self._peek() == '*' and self._peek_next() == '/':
                self.current += 2
                return
            if self._peek() == '\n':
                self.line += 1
            self._advance()

        self._error(opened_on, "Unterminated block comment.")

    def _string(self) -> None:
        opened_on = self.line
        while self._peek() != '"' and not self._is_at_end():
            if self._peek() == '\n':
                self.line += 1
            self._advance()

        if self._is_at_end():
            self._error(opened_on, "Unterminated string.")
            return

        # The closing quote
        self._advance()

        value = self.source[self.start + 1:self.current - 1]
        self._add_token(TokenKind.STRING, value)

    def _number(self) -> None:
        while is_digit(self._peek()):
            self._advance()

        # A fractional part needs at least one digit after the dot
        if self._peek() == '.' and is_digit(self._peek_next()):
            self._advance()
            while is_digit(self._peek()):
                self._advance()

        self._add_token(TokenKind.NUMBER, float(self.source[self.start:self.current]))

    def _identifier(self) -> None:
        while is_alphanumeric(self._peek()):
            self._advance()

        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenKind.IDENTIFIER))

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _peek(self) -> str:
        if self._is_at_end():
            return '\0'
        return self.source[self.current]

    def _peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def _advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def _add_token(self, kind: TokenKind, literal: Any = None) -> None:
        text = self.source[self.start:self.current]
        self.tokens.append(Token(kind, text, literal, self.line))

    def _error(self, line: int, message: str) -> None:
        self.errors.append(make_diagnostic(line, message))


def scan(source: str) -> List[Token]:
    """Scan source text, raising LoxScanError listing every lexical error"""
    scanner = Scanner(source)
    tokens = scanner.scan_tokens()
    if scanner.errors:
        raise LoxScanError(scanner.errors)
    return tokens


def format_tokens(tokens: List[Token]) -> str:
    """One token per line, for the --tokens dump"""
    return '\n'.join(f"{token.line:4d}  {token}" for token in tokens)
