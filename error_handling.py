"""
Error handling for the Lox interpreter with line-numbered diagnostics
Diagnostics are plain dictionaries; exceptions carry lists of them
"""

from typing import Any, Dict, List
from termcolor import colored


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_diagnostic(line: int, message: str, where: str = "") -> Dict:
    """Create an immutable diagnostic structure"""
    return {
        'line': line,
        'where': where,
        'message': message
    }


def format_diagnostic(diagnostic: Dict, color: bool = False) -> str:
    """Format a diagnostic as '[line N] Error at X: message'"""
    location = f"[line {diagnostic['line']}]"
    if color:
        location = colored(location, "red", attrs=["bold"])

    where = diagnostic['where']
    if where:
        if color:
            where = colored(where, "yellow")
        return f"{location} Error {where}: {diagnostic['message']}"
    return f"{location} Error: {diagnostic['message']}"


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, context_lines: int = 0) -> str:
    """Get the numbered source lines around an error line"""
    lines = source_text.split('\n')
    if line_num < 1 or line_num > len(lines):
        return ""

    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        marker = ">" if i == line_num - 1 else " "
        context_parts.append(f"{marker}{i+1:4d} | {lines[i]}")

    return '\n'.join(context_parts)


def where_for_token(token: Any) -> str:
    """Describe where a token sits for a diagnostic"""
    if token.lexeme:
        return f"at '{token.lexeme}'"
    return "at end"


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class LoxError(Exception):
    """Base class for every error the interpreter reports to its caller"""

    def __init__(self, diagnostics: List[Dict]):
        self.diagnostics = list(diagnostics)
        super().__init__(str(self))

    @property
    def line(self) -> int:
        return self.diagnostics[0]['line'] if self.diagnostics else 0

    @property
    def message(self) -> str:
        return self.diagnostics[0]['message'] if self.diagnostics else ""

    def __str__(self) -> str:
        return '\n'.join(format_diagnostic(d) for d in self.diagnostics)


class LoxScanError(LoxError):
    """Lexical errors (unterminated string or comment, unexpected character)"""
    pass


class LoxParseError(LoxError):
    """Syntax errors, together with any lexical errors from the same input"""
    pass


class LoxRuntimeError(LoxError):
    """Error raised while evaluating a specific node; halts the program"""

    def __init__(self, token: Any, message: str):
        # Accept either a token or a bare line number
        line = token if isinstance(token, int) else token.line
        self.token = None if isinstance(token, int) else token
        super().__init__([make_diagnostic(line, message)])


class LoxErrorHandler:
    """Renders errors for one source text, quoting the offending lines"""

    def __init__(self, source_text: str, filename: str = "<input>", color: bool = False):
        self.source_text = source_text
        self.filename = filename
        self.color = color

    def format_error(self, error: LoxError) -> str:
        parts = []
        for diagnostic in error.diagnostics:
            parts.append(f"{self.filename}: {format_diagnostic(diagnostic, self.color)}")
            context = get_context_lines(self.source_text, diagnostic['line'])
            if context:
                parts.append(context)
        return '\n'.join(parts)


def sort_diagnostics(diagnostics: List[Dict]) -> List[Dict]:
    """Order diagnostics by line, keeping discovery order within a line"""
    return sorted(diagnostics, key=lambda d: d['line'])
