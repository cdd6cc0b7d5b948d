"""
Lox Abstract Syntax Tree
Frozen expression and statement nodes plus a printer back to source text
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple, Union

from scanning import Token


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Literal:
    value: Any
    line: int


@dataclass(frozen=True)
class Grouping:
    expression: 'Expr'
    line: int


@dataclass(frozen=True)
class Unary:
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Binary:
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Logical:
    """Short-circuiting 'and' / 'or'"""
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class Variable:
    name: Token


@dataclass(frozen=True)
class Assign:
    name: Token
    value: 'Expr'


@dataclass(frozen=True)
class Call:
    callee: 'Expr'
    paren: Token
    arguments: Tuple['Expr', ...]


Expr = Union[Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call]


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class ExpressionStmt:
    expression: Expr


@dataclass(frozen=True)
class PrintStmt:
    expression: Expr


@dataclass(frozen=True)
class VarStmt:
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True)
class BlockStmt:
    statements: Tuple['Stmt', ...]


@dataclass(frozen=True)
class IfStmt:
    condition: Expr
    then_branch: 'Stmt'
    else_branch: Optional['Stmt']


@dataclass(frozen=True)
class WhileStmt:
    condition: Expr
    body: 'Stmt'


@dataclass(frozen=True)
class FunctionStmt:
    name: Token
    params: Tuple[Token, ...]
    body: Tuple['Stmt', ...]


@dataclass(frozen=True)
class ReturnStmt:
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True)
class BreakStmt:
    keyword: Token


Stmt = Union[ExpressionStmt, PrintStmt, VarStmt, BlockStmt, IfStmt, WhileStmt,
             FunctionStmt, ReturnStmt, BreakStmt]


def node_line(node: Union[Expr, Stmt]) -> int:
    """Source line a node was parsed from"""
    match node:
        case Literal(line=line) | Grouping(line=line):
            return line
        case Unary(operator=token) | Binary(operator=token) | Logical(operator=token):
            return token.line
        case Variable(name=token) | Assign(name=token) | VarStmt(name=token) | FunctionStmt(name=token):
            return token.line
        case Call(paren=token):
            return token.line
        case ReturnStmt(keyword=token) | BreakStmt(keyword=token):
            return token.line
        case ExpressionStmt(expression=expr) | PrintStmt(expression=expr):
            return node_line(expr)
        case IfStmt(condition=expr) | WhileStmt(condition=expr):
            return node_line(expr)
        case BlockStmt(statements=statements):
            return node_line(statements[0]) if statements else 0
    raise TypeError(f"Unknown node: {node!r}")


# ============================================================================
# SOURCE PRINTER
# ============================================================================

def literal_to_source(value: Any) -> str:
    """Render a literal value so the scanner reads it back unchanged"""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        # Decimal avoids exponent notation, which the scanner does not accept
        text = format(Decimal(repr(value)), 'f')
        if text.endswith('.0'):
            text = text[:-2]
        return text
    return f'"{value}"'


def expression_to_source(expr: Expr) -> str:
    match expr:
        case Literal(value=value):
            return literal_to_source(value)
        case Grouping(expression=inner):
            return f"({expression_to_source(inner)})"
        case Unary(operator=op, right=right):
            return f"{op.lexeme}{expression_to_source(right)}"
        case Binary(left=left, operator=op, right=right) | Logical(left=left, operator=op, right=right):
            return f"{expression_to_source(left)} {op.lexeme} {expression_to_source(right)}"
        case Variable(name=name):
            return name.lexeme
        case Assign(name=name, value=value):
            return f"{name.lexeme} = {expression_to_source(value)}"
        case Call(callee=callee, arguments=arguments):
            args = ", ".join(expression_to_source(arg) for arg in arguments)
            return f"{expression_to_source(callee)}({args})"
    raise TypeError(f"Unknown expression: {expr!r}")


def _block_to_source(statements: Sequence[Stmt], indent: int) -> List[str]:
    pad = "    " * indent
    lines = [pad + "{"]
    for statement in statements:
        lines.extend(statement_to_source(statement, indent + 1))
    lines.append(pad + "}")
    return lines


def _branch_to_source(branch: Stmt, indent: int) -> List[str]:
    if isinstance(branch, BlockStmt):
        return _block_to_source(branch.statements, indent)
    return statement_to_source(branch, indent + 1)


def statement_to_source(stmt: Stmt, indent: int = 0) -> List[str]:
    """Render one statement as a list of indented source lines"""
    pad = "    " * indent
    match stmt:
        case ExpressionStmt(expression=expr):
            return [f"{pad}{expression_to_source(expr)};"]
        case PrintStmt(expression=expr):
            return [f"{pad}print {expression_to_source(expr)};"]
        case VarStmt(name=name, initializer=None):
            return [f"{pad}var {name.lexeme};"]
        case VarStmt(name=name, initializer=initializer):
            return [f"{pad}var {name.lexeme} = {expression_to_source(initializer)};"]
        case BlockStmt(statements=statements):
            return _block_to_source(statements, indent)
        case IfStmt(condition=condition, then_branch=then_branch, else_branch=else_branch):
            # An else-less inner 'if' would capture our 'else' when re-parsed
            if else_branch is not None and isinstance(then_branch, IfStmt) and then_branch.else_branch is None:
                then_branch = BlockStmt((then_branch,))
            lines = [f"{pad}if ({expression_to_source(condition)})"]
            lines.extend(_branch_to_source(then_branch, indent))
            if else_branch is not None:
                lines.append(f"{pad}else")
                lines.extend(_branch_to_source(else_branch, indent))
            return lines
        case WhileStmt(condition=condition, body=body):
            lines = [f"{pad}while ({expression_to_source(condition)})"]
            lines.extend(_branch_to_source(body, indent))
            return lines
        case FunctionStmt(name=name, params=params, body=body):
            lines = [f"{pad}fun {name.lexeme}({', '.join(p.lexeme for p in params)})"]
            lines.extend(_block_to_source(body, indent))
            return lines
        case ReturnStmt(value=None):
            return [f"{pad}return;"]
        case ReturnStmt(value=value):
            return [f"{pad}return {expression_to_source(value)};"]
        case BreakStmt():
            return [f"{pad}break;"]
    raise TypeError(f"Unknown statement: {stmt!r}")


def to_source(statements: Sequence[Stmt]) -> str:
    """Render a program back to Lox source that parses to an equivalent tree"""
    lines: List[str] = []
    for statement in statements:
        lines.extend(statement_to_source(statement))
    return '\n'.join(lines) + '\n' if lines else ""
