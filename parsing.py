"""
Lox Parser
Recursive-descent parser with statement-level error recovery
"""

import sys
from dataclasses import fields, is_dataclass
from typing import Any, Dict, List, Optional

from error_handling import LoxParseError, make_diagnostic, sort_diagnostics, where_for_token
from scanning import Scanner, Token, TokenKind
from syntax import (
    Assign, Binary, BlockStmt, BreakStmt, Call, Expr, ExpressionStmt, FunctionStmt,
    Grouping, IfStmt, Literal, Logical, PrintStmt, ReturnStmt, Stmt, Unary, VarStmt,
    Variable, WhileStmt,
)


MAX_ARGUMENTS = 255

NESTING_MESSAGE = "Nesting is too deep."

# Tokens that begin a statement; synchronize stops in front of them
STATEMENT_KEYWORDS = {
    TokenKind.CLASS, TokenKind.FUN, TokenKind.VAR, TokenKind.IF,
    TokenKind.WHILE, TokenKind.PRINT, TokenKind.RETURN,
}


class ParseError(Exception):
    """Unwinds to the nearest declaration, which then synchronizes"""
    pass


class Parser:
    """Parses a token list into statements, collecting every syntax error"""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.errors: List[Dict] = []

    def parse(self) -> List[Stmt]:
        statements = []
        try:
            while not self._is_at_end():
                statement = self._declaration()
                if statement is not None:
                    statements.append(statement)
        except RecursionError:
            # The host stack ran out; the rest of the input is not parsed
            self._error(self._peek(), NESTING_MESSAGE)
        return statements

    def parse_expression(self) -> Optional[Expr]:
        """Parse a single expression that must span all tokens"""
        try:
            expr = self._expression()
            if not self._is_at_end():
                raise self._error(self._peek(), "Expect end of expression.")
            return expr
        except ParseError:
            return None
        except RecursionError:
            self._error(self._peek(), NESTING_MESSAGE)
            return None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenKind.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError:
            self._synchronize()
            return None

    def _statement(self) -> Stmt:
        if self._match(TokenKind.FOR):
            return self._for_statement()
        if self._match(TokenKind.IF):
            return self._if_statement()
        if self._match(TokenKind.PRINT):
            return self._print_statement()
        if self._match(TokenKind.WHILE):
            return self._while_statement()
        if self._match(TokenKind.LEFT_BRACE):
            return BlockStmt(tuple(self._block()))
        if self._match(TokenKind.FUN):
            return self._function("function")
        if self._match(TokenKind.RETURN):
            return self._return_statement()
        if self._match(TokenKind.BREAK):
            return self._break_statement()
        return self._expression_statement()

    def _for_statement(self) -> Stmt:
        self._consume(TokenKind.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenKind.SEMICOLON):
            initializer = None
        elif self._match(TokenKind.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenKind.SEMICOLON):
            condition = self._expression()
        semicolon = self._consume(TokenKind.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenKind.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        # Desugar into: { initializer; while (condition) { body; increment; } }
        if increment is not None:
            body = BlockStmt((body, ExpressionStmt(increment)))
        if condition is None:
            condition = Literal(True, semicolon.line)
        body = WhileStmt(condition, body)
        if initializer is not None:
            body = BlockStmt((initializer, body))

        return body

    def _if_statement(self) -> Stmt:
        self._consume(TokenKind.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TokenKind.ELSE):
            else_branch = self._statement()

        return IfStmt(condition, then_branch, else_branch)

    def _print_statement(self) -> Stmt:
        value = self._expression()
        self._consume(TokenKind.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def _var_declaration(self) -> Stmt:
        name = self._consume(TokenKind.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self._match(TokenKind.EQUAL):
            initializer = self._expression()

        self._consume(TokenKind.SEMICOLON, "Expect ';' after variable declaration.")
        return VarStmt(name, initializer)

    def _while_statement(self) -> Stmt:
        self._consume(TokenKind.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after condition.")
        body = self._statement()

        return WhileStmt(condition, body)

    def _function(self, kind: str) -> Stmt:
        name = self._consume(TokenKind.IDENTIFIER, f"Expect {kind} name.")
        self._consume(TokenKind.LEFT_PAREN, f"Expect '(' after {kind} name.")

        params: List[Token] = []
        if not self._check(TokenKind.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._error(self._peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self._consume(TokenKind.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenKind.COMMA):
                    break
        self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after parameters.")

        self._consume(TokenKind.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self._block()
        return FunctionStmt(name, tuple(params), tuple(body))

    def _return_statement(self) -> Stmt:
        keyword = self._previous()
        value = None
        if not self._check(TokenKind.SEMICOLON):
            value = self._expression()

        self._consume(TokenKind.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def _break_statement(self) -> Stmt:
        keyword = self._previous()
        self._consume(TokenKind.SEMICOLON, "Expect ';' after 'break'.")
        return BreakStmt(keyword)

    def _expression_statement(self) -> Stmt:
        expr = self._expression()
        self._consume(TokenKind.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStmt(expr)

    def _block(self) -> List[Stmt]:
        statements = []

        while not self._check(TokenKind.RIGHT_BRACE) and not self._is_at_end():
            statement = self._declaration()
            if statement is not None:
                statements.append(statement)

        self._consume(TokenKind.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        expr = self._or()

        if self._match(TokenKind.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)

            # Reported, but the parser is not confused: no need to synchronize
            self._error(equals, "Invalid assignment target.")

        return expr

    def _or(self) -> Expr:
        expr = self._and()

        while self._match(TokenKind.OR):
            operator = self._previous()
            right = self._and()
            expr = Logical(expr, operator, right)

        return expr

    def _and(self) -> Expr:
        expr = self._equality()

        while self._match(TokenKind.AND):
            operator = self._previous()
            right = self._equality()
            expr = Logical(expr, operator, right)

        return expr

    def _equality(self) -> Expr:
        expr = self._comparison()

        while self._match(TokenKind.BANG_EQUAL, TokenKind.EQUAL_EQUAL):
            operator = self._previous()
            right = self._comparison()
            expr = Binary(expr, operator, right)

        return expr

    def _comparison(self) -> Expr:
        expr = self._term()

        while self._match(TokenKind.GREATER, TokenKind.GREATER_EQUAL,
                          TokenKind.LESS, TokenKind.LESS_EQUAL):
            operator = self._previous()
            right = self._term()
            expr = Binary(expr, operator, right)

        return expr

    def _term(self) -> Expr:
        expr = self._factor()

        while self._match(TokenKind.MINUS, TokenKind.PLUS):
            operator = self._previous()
            right = self._factor()
            expr = Binary(expr, operator, right)

        return expr

    def _factor(self) -> Expr:
        expr = self._unary()

        while self._match(TokenKind.SLASH, TokenKind.STAR):
            operator = self._previous()
            right = self._unary()
            expr = Binary(expr, operator, right)

        return expr

    def _unary(self) -> Expr:
        if self._match(TokenKind.BANG, TokenKind.MINUS):
            operator = self._previous()
            right = self._unary()
            return Unary(operator, right)

        return self._call()

    def _call(self) -> Expr:
        expr = self._primary()

        while self._match(TokenKind.LEFT_PAREN):
            expr = self._finish_call(expr)

        return expr

    def _finish_call(self, callee: Expr) -> Expr:
        arguments: List[Expr] = []
        if not self._check(TokenKind.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._error(self._peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                arguments.append(self._expression())
                if not self._match(TokenKind.COMMA):
                    break

        paren = self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, tuple(arguments))

    def _primary(self) -> Expr:
        if self._match(TokenKind.FALSE):
            return Literal(False, self._previous().line)
        if self._match(TokenKind.TRUE):
            return Literal(True, self._previous().line)
        if self._match(TokenKind.NIL):
            return Literal(None, self._previous().line)

        if self._match(TokenKind.NUMBER, TokenKind.STRING):
            token = self._previous()
            return Literal(token.literal, token.line)

        if self._match(TokenKind.IDENTIFIER):
            return Variable(self._previous())

        if self._match(TokenKind.LEFT_PAREN):
            line = self._previous().line
            expr = self._expression()
            self._consume(TokenKind.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr, line)

        raise self._error(self._peek(), "Expect expression.")

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _match(self, *kinds: TokenKind) -> bool:
        for kind in kinds:
            if self._check(kind):
                self._advance()
                return True
        return False

    def _consume(self, kind: TokenKind, message: str) -> Token:
        if self._check(kind):
            return self._advance()
        raise self._error(self._peek(), message)

    def _check(self, kind: TokenKind) -> bool:
        if self._is_at_end():
            return False
        return self._peek().kind == kind

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().kind == TokenKind.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _error(self, token: Token, message: str) -> ParseError:
        self.errors.append(make_diagnostic(token.line, message, where_for_token(token)))
        return ParseError(message)

    def _synchronize(self) -> None:
        """Discard tokens until a statement boundary"""
        self._advance()

        while not self._is_at_end():
            if self._previous().kind == TokenKind.SEMICOLON:
                return
            if self._peek().kind in STATEMENT_KEYWORDS:
                return
            self._advance()


# ============================================================================
# FRONT END
# ============================================================================

class LoxParser:
    """Main Lox parser combining the scanner and the recursive-descent parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def parse_file(self, filepath: str) -> List[Stmt]:
        """Parse a Lox source file"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content)

    def parse_string(self, text: str) -> List[Stmt]:
        """Scan and parse source text, raising LoxParseError on any error"""
        scanner = Scanner(text)
        tokens = scanner.scan_tokens()
        if self.debug:
            print(f"Scanned {len(tokens)} tokens", file=sys.stderr)

        parser = Parser(tokens)
        statements = parser.parse()
        if self.debug:
            print(f"Parsed {len(statements)} statements", file=sys.stderr)

        errors = scanner.errors + parser.errors
        if errors:
            raise LoxParseError(sort_diagnostics(errors))
        return statements

    def parse_expression(self, text: str) -> Expr:
        """Parse a single Lox expression"""
        scanner = Scanner(text)
        parser = Parser(scanner.scan_tokens())
        expr = parser.parse_expression()

        errors = scanner.errors + parser.errors
        if errors or expr is None:
            raise LoxParseError(sort_diagnostics(errors))
        return expr

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Lox source code"""
        scanner = Scanner(text)
        tokens = scanner.scan_tokens()
        if scanner.errors:
            raise LoxParseError(scanner.errors)
        return tokens


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(debug=debug)


def create_debug_parser() -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(debug=True)


# Utility functions for working with the AST
def _describe(value: Any) -> Optional[str]:
    if isinstance(value, Token):
        return value.lexeme
    if isinstance(value, (str, float, bool)) or value is None:
        return repr(value)
    return None


def pretty_print_ast(node: Any, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    result = "  " * indent + type(node).__name__
    details = []
    children = []
    for field in fields(node):
        value = getattr(node, field.name)
        if field.name == 'line':
            continue
        if is_dataclass(value) and not isinstance(value, Token):
            children.append(value)
        elif isinstance(value, tuple):
            if all(isinstance(item, Token) for item in value):
                details.append(f"{field.name}=[{', '.join(t.lexeme for t in value)}]")
            else:
                children.extend(value)
        else:
            described = _describe(value)
            if described is not None:
                details.append(f"{field.name}={described}")
    if details:
        result += f"({', '.join(details)})"
    result += "\n"

    for child in children:
        result += pretty_print_ast(child, indent + 1)

    return result
