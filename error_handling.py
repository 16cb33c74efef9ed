"""
Error handling for the Imp parser with detailed error messages
Parse failures are turned into plain dictionaries, then wrapped in an
exception for the callers that need one
"""

from typing import List, Optional, Dict
from pyparsing import ParseBaseException


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int = 0,
    line: int = 0,
    column: int = 0,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None,
    filename: str = "<stdin>"
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or [],
        'filename': filename
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    if not error['line']:
        return f"Parse error: {error['message']}"

    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg.rstrip('\n')


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_line(source_text: str, line_num: int, col_num: int) -> str:
    """The offending line with a caret under the error column"""
    lines = source_text.split('\n')
    if not 1 <= line_num <= len(lines):
        return ""
    return f"    {lines[line_num - 1]}\n    {' ' * (col_num - 1)}^"


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    msg = exc.msg or ""
    if msg.startswith("Expected "):
        return [msg[len("Expected "):]]
    return []


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 1 <= line_num <= len(lines):
        error_line = lines[line_num - 1]
        got_text = error_line[col_num - 1:col_num + 9].strip()
        if got_text:
            return f"'{got_text}'"
        return "end of line"
    return "unknown"


def generate_suggestions(source_text: str, got: str, expected: List[str]) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []
    wanted = " ".join(expected)

    if "';'" in wanted:
        suggestions.append("Statements end with ';' (procedure and if statements end with 'endproc' and 'fi')")

    if "'fi'" in wanted:
        suggestions.append("Conditionals are written 'if c then a else b fi'")

    if "'end'" in wanted:
        suggestions.append("'fn' and 'let' expressions are closed with 'end'")

    if "'od'" in wanted:
        suggestions.append("Sequences are written 'do s1 s2 ... od;'")

    if got.startswith("'=") and "==" not in got:
        suggestions.append("Use ':=' for assignment and '==' for equality")

    if any(ch.isdigit() for ch in got) and "identifier" in wanted:
        suggestions.append("Identifiers contain letters only")

    return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str,
                                 filename: str = "<stdin>") -> Dict:
    """Convert pyparsing exception to an Imp error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_line(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(source_text, got, expected)

    return make_parse_error(
        message=exc.msg,
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions,
        filename=filename
    )


# ============================================================================
# EXCEPTION
# ============================================================================

class ImpParseError(Exception):
    """Rejection of a whole input by the parser"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<stdin>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        self.filename = filename
        super().__init__(message)

    def to_dict(self) -> Dict:
        return make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions, self.filename
        )

    def __str__(self) -> str:
        return format_parse_error(self.to_dict())


def enhance_parse_exception(exc: ParseBaseException, source_text: str,
                            filename: str = "<stdin>") -> ImpParseError:
    """Convert pyparsing exception to an ImpParseError"""
    return ImpParseError(**enhance_parse_exception_dict(exc, source_text, filename))
