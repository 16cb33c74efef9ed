"""
Imp Programming Language Parser
Expression and statement grammar built on pyparsing, plus the AST node types
and a canonical renderer that turns an AST back into source text
"""

from typing import List, Dict, Any, Union, Tuple
from dataclasses import dataclass

# Import pyparsing with error handling
try:
    from pyparsing import (
        Word, alphas, nums, Literal, Keyword, Forward, Group, Suppress,
        ZeroOrMore, OneOrMore, Optional as PyParsingOptional, DelimitedList,
        MatchFirst, ParserElement, ParseBaseException
    )
    # Enable packrat parsing for performance
    ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from error_handling import ImpParseError, enhance_parse_exception


# ============================================================================
# EXPRESSION NODES
# ============================================================================

@dataclass(frozen=True)
class IntExp:
    value: int


@dataclass(frozen=True)
class BoolExp:
    value: bool


@dataclass(frozen=True)
class VarExp:
    name: str


@dataclass(frozen=True)
class FunExp:
    """Function literal: fn [params] body end"""
    params: Tuple[str, ...]
    body: 'Exp'


@dataclass(frozen=True)
class LetExp:
    """Parallel let: every bound expression sees only the outer environment"""
    bindings: Tuple[Tuple[str, 'Exp'], ...]
    body: 'Exp'


@dataclass(frozen=True)
class AppExp:
    function: 'Exp'
    args: Tuple['Exp', ...]


@dataclass(frozen=True)
class IfExp:
    condition: 'Exp'
    then_branch: 'Exp'
    else_branch: 'Exp'


@dataclass(frozen=True)
class IntOpExp:
    op: str
    left: 'Exp'
    right: 'Exp'


@dataclass(frozen=True)
class BoolOpExp:
    op: str
    left: 'Exp'
    right: 'Exp'


@dataclass(frozen=True)
class CompOpExp:
    op: str
    left: 'Exp'
    right: 'Exp'


Exp = Union[IntExp, BoolExp, VarExp, FunExp, LetExp, AppExp, IfExp, IntOpExp, BoolOpExp, CompOpExp]


# ============================================================================
# STATEMENT NODES
# ============================================================================

@dataclass(frozen=True)
class SetStmt:
    name: str
    exp: Exp


@dataclass(frozen=True)
class PrintStmt:
    exp: Exp


@dataclass(frozen=True)
class QuitStmt:
    pass


@dataclass(frozen=True)
class IfStmt:
    condition: Exp
    then_branch: 'Stmt'
    else_branch: 'Stmt'


@dataclass(frozen=True)
class ProcedureStmt:
    name: str
    params: Tuple[str, ...]
    body: 'Stmt'


@dataclass(frozen=True)
class CallStmt:
    name: str
    args: Tuple[Exp, ...]


@dataclass(frozen=True)
class SeqStmt:
    stmts: Tuple['Stmt', ...]


Stmt = Union[SetStmt, PrintStmt, QuitStmt, IfStmt, ProcedureStmt, CallStmt, SeqStmt]


# Words that can never be used as identifiers
RESERVED_WORDS = (
    "if", "then", "else", "fi", "fn", "end", "let", "apply", "true", "false",
    "and", "or", "quit", "print", "procedure", "endproc", "call", "do", "od",
)

# Two-character operators must come before their one-character prefixes
COMP_OPS = ("<=", ">=", "/=", "==", "<", ">")


def chain_left(operand: ParserElement, operator: ParserElement, ctor) -> ParserElement:
    """operand (operator operand)*, folded into a left-associative tree"""
    def fold(tokens):
        result = tokens[0]
        for i in range(1, len(tokens), 2):
            result = ctor(tokens[i], result, tokens[i + 1])
        return result

    return (operand + ZeroOrMore(operator + operand)).set_parse_action(fold)


class ImpGrammar:
    """Imp grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the expression and statement grammar"""

        # Forward declarations for recursive structures
        expression = Forward().set_name("an expression")
        statement = Forward().set_name("a statement")

        # Keywords (whole words only, suppressed from the results)
        kw = {word: Keyword(word).suppress() for word in RESERVED_WORDS}
        reserved = MatchFirst([Keyword(word) for word in RESERVED_WORDS])

        # Symbols
        lparen, rparen = Suppress("("), Suppress(")")
        lbrack, rbrack = Suppress("["), Suppress("]")
        comma, semi = Suppress(","), Suppress(";")
        assign = Suppress(":=")

        # Lexicals
        integer = Word(nums).set_name("an integer")
        identifier = (~reserved + Word(alphas)).set_name("an identifier")

        # Operators - order matters! Longer operators first
        mul_op = Literal("*") | Literal("/")
        add_op = Literal("+") | Literal("-")
        comp_op = MatchFirst([Literal(op) for op in COMP_OPS])
        and_op = Keyword("and")
        or_op = Keyword("or")

        # Atoms
        int_exp = integer.copy().set_parse_action(lambda t: IntExp(int(t[0])))
        bool_exp = (
            Keyword("true").set_parse_action(lambda t: BoolExp(True)) |
            Keyword("false").set_parse_action(lambda t: BoolExp(False))
        )
        var_exp = (~reserved + Word(alphas)).set_parse_action(lambda t: VarExp(t[0]))

        param_list = Group(PyParsingOptional(DelimitedList(identifier, ",")))
        arg_list = Group(PyParsingOptional(DelimitedList(expression, ",")))

        # Each keyword-led form commits ('-') once its keyword has matched
        fun_exp = (
            kw["fn"] - lbrack - param_list - rbrack - expression - kw["end"]
        ).set_parse_action(lambda t: FunExp(tuple(t[0]), t[1]))

        if_exp = (
            kw["if"] - expression - kw["then"] - expression - kw["else"] - expression - kw["fi"]
        ).set_parse_action(lambda t: IfExp(t[0], t[1], t[2]))

        let_binding = (identifier + assign + expression).set_parse_action(lambda t: (t[0], t[1]))
        let_exp = (
            kw["let"] - lbrack - Group(PyParsingOptional(DelimitedList(let_binding, ";"))) - rbrack
            - expression - kw["end"]
        ).set_parse_action(lambda t: LetExp(tuple(t[0]), t[1]))

        app_exp = (
            kw["apply"] - expression - lparen - arg_list - rparen
        ).set_parse_action(lambda t: AppExp(t[0], tuple(t[1])))

        parenthesized = lparen + expression + rparen

        atom = (
            int_exp |
            fun_exp |
            if_exp |
            let_exp |
            bool_exp |
            app_exp |
            var_exp |
            parenthesized
        )

        # Precedence levels, highest first
        term = chain_left(atom, mul_op, IntOpExp)
        arith = chain_left(term, add_op, IntOpExp)
        comparison = chain_left(arith, comp_op, CompOpExp)
        conjunction = chain_left(comparison, and_op, BoolOpExp)
        expression <<= chain_left(conjunction, or_op, BoolOpExp)

        # Statements
        quit_stmt = (kw["quit"] - semi).set_parse_action(lambda t: QuitStmt())

        print_stmt = (kw["print"] - expression - semi).set_parse_action(lambda t: PrintStmt(t[0]))

        if_stmt = (
            kw["if"] - expression - kw["then"] - statement - kw["else"] - statement - kw["fi"]
        ).set_parse_action(lambda t: IfStmt(t[0], t[1], t[2]))

        proc_stmt = (
            kw["procedure"] - identifier - lparen - param_list - rparen - statement - kw["endproc"]
        ).set_parse_action(lambda t: ProcedureStmt(t[0], tuple(t[1]), t[2]))

        call_stmt = (
            kw["call"] - identifier - lparen - arg_list - rparen - semi
        ).set_parse_action(lambda t: CallStmt(t[0], tuple(t[1])))

        seq_stmt = (
            kw["do"] - Group(OneOrMore(statement)) - kw["od"] - semi
        ).set_parse_action(lambda t: SeqStmt(tuple(t[0])))

        # No leading keyword, so it is tried last
        set_stmt = (identifier + assign + expression + semi).set_parse_action(lambda t: SetStmt(t[0], t[1]))

        statement <<= (
            quit_stmt |
            print_stmt |
            if_stmt |
            proc_stmt |
            call_stmt |
            seq_stmt |
            set_stmt
        )

        # Store grammar elements
        self.expression = expression
        self.statement = statement
        self.comparison_operator = comp_op
        self.identifier = identifier
        self.integer = integer

    def parse_statement(self, text: str, filename: str = "<stdin>") -> Stmt:
        """Parse one complete statement"""
        try:
            result = self.statement.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise ImpParseError("Input is nested too deeply", filename=filename)
        if self.debug:
            print(f"Parsed: {result[0]}")
        return result[0]

    def parse_expression(self, text: str, filename: str = "<stdin>") -> Exp:
        """Parse one complete expression"""
        try:
            result = self.expression.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise enhance_parse_exception(e, text, filename) from e
        except RecursionError:
            raise ImpParseError("Input is nested too deeply", filename=filename)
        if self.debug:
            print(f"Parsed: {result[0]}")
        return result[0]


class ImpParser:
    """Main Imp parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = ImpGrammar(debug)

    def parse_file(self, filepath: str) -> List[Stmt]:
        """Parse an Imp source file, one statement per non-blank line"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                lines = f.read().split('\n')
        except FileNotFoundError:
            raise ImpParseError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            raise ImpParseError(f"Cannot decode file {filepath}: {e}")

        return [self.grammar.parse_statement(line, filepath) for line in lines if line.strip()]

    def parse_statement(self, text: str, filename: str = "<stdin>") -> Stmt:
        """Parse a single Imp statement"""
        return self.grammar.parse_statement(text, filename)

    def parse_expression(self, text: str, filename: str = "<stdin>") -> Exp:
        """Parse a single Imp expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> ImpParser:
    """Create an Imp parser"""
    return ImpParser(debug=debug)


def create_debug_parser() -> ImpParser:
    """Create an Imp parser with debug enabled"""
    return ImpParser(debug=True)


# ============================================================================
# CANONICAL RENDERING
# ============================================================================

def render_exp(exp: Exp) -> str:
    """Render an expression as source text that parses back to the same AST"""
    if isinstance(exp, IntExp):
        return str(exp.value)
    elif isinstance(exp, BoolExp):
        return "true" if exp.value else "false"
    elif isinstance(exp, VarExp):
        return exp.name
    elif isinstance(exp, FunExp):
        return f"fn [{', '.join(exp.params)}] {render_exp(exp.body)} end"
    elif isinstance(exp, LetExp):
        bindings = "; ".join(f"{name} := {render_exp(e)}" for name, e in exp.bindings)
        return f"let [{bindings}] {render_exp(exp.body)} end"
    elif isinstance(exp, AppExp):
        args = ", ".join(render_exp(arg) for arg in exp.args)
        return f"apply {render_exp(exp.function)} ({args})"
    elif isinstance(exp, IfExp):
        return (f"if {render_exp(exp.condition)} then {render_exp(exp.then_branch)} "
                f"else {render_exp(exp.else_branch)} fi")
    elif isinstance(exp, (IntOpExp, BoolOpExp, CompOpExp)):
        return f"({render_exp(exp.left)} {exp.op} {render_exp(exp.right)})"
    raise TypeError(f"Not an expression: {exp!r}")


def render_stmt(stmt: Stmt) -> str:
    """Render a statement as source text that parses back to the same AST"""
    if isinstance(stmt, SetStmt):
        return f"{stmt.name} := {render_exp(stmt.exp)};"
    elif isinstance(stmt, PrintStmt):
        return f"print {render_exp(stmt.exp)};"
    elif isinstance(stmt, QuitStmt):
        return "quit;"
    elif isinstance(stmt, IfStmt):
        return (f"if {render_exp(stmt.condition)} then {render_stmt(stmt.then_branch)} "
                f"else {render_stmt(stmt.else_branch)} fi")
    elif isinstance(stmt, ProcedureStmt):
        return f"procedure {stmt.name}({', '.join(stmt.params)}) {render_stmt(stmt.body)} endproc"
    elif isinstance(stmt, CallStmt):
        return f"call {stmt.name}({', '.join(render_exp(arg) for arg in stmt.args)});"
    elif isinstance(stmt, SeqStmt):
        return f"do {' '.join(render_stmt(s) for s in stmt.stmts)} od;"
    raise TypeError(f"Not a statement: {stmt!r}")


# Utility functions for working with ASTs
def ast_children(node: Any) -> List[Tuple[str, Any]]:
    """Labelled child nodes of an expression or statement"""
    if isinstance(node, (FunExp,)):
        return [("body", node.body)]
    elif isinstance(node, LetExp):
        return [(name, e) for name, e in node.bindings] + [("body", node.body)]
    elif isinstance(node, AppExp):
        return [("function", node.function)] + [(f"arg{i}", a) for i, a in enumerate(node.args)]
    elif isinstance(node, (IfExp, IfStmt)):
        return [("condition", node.condition), ("then", node.then_branch), ("else", node.else_branch)]
    elif isinstance(node, (IntOpExp, BoolOpExp, CompOpExp)):
        return [("left", node.left), ("right", node.right)]
    elif isinstance(node, (SetStmt, PrintStmt)):
        return [("exp", node.exp)]
    elif isinstance(node, ProcedureStmt):
        return [("body", node.body)]
    elif isinstance(node, CallStmt):
        return [(f"arg{i}", a) for i, a in enumerate(node.args)]
    elif isinstance(node, SeqStmt):
        return [(str(i), s) for i, s in enumerate(node.stmts)]
    return []


def ast_label(node: Any) -> str:
    """One-line description of a node, without its children"""
    name = type(node).__name__
    if isinstance(node, (IntExp, BoolExp)):
        return f"{name}({node.value!r})"
    elif isinstance(node, VarExp):
        return f"{name}({node.name!r})"
    elif isinstance(node, (IntOpExp, BoolOpExp, CompOpExp)):
        return f"{name}({node.op!r})"
    elif isinstance(node, (FunExp, ProcedureStmt)):
        params = ", ".join(node.params)
        prefix = f"{node.name!r}, " if isinstance(node, ProcedureStmt) else ""
        return f"{name}({prefix}[{params}])"
    elif isinstance(node, (SetStmt, CallStmt)):
        return f"{name}({node.name!r})"
    return name


def pretty_print_ast(node: Any, indent: int = 0, label: str = "") -> str:
    """Pretty print an AST node for debugging"""
    prefix = f"{label}: " if label else ""
    result = "  " * indent + prefix + ast_label(node) + "\n"

    for child_label, child in ast_children(node):
        result += pretty_print_ast(child, indent + 1, child_label)

    return result


def ast_to_dict(node: Any) -> Dict[str, Any]:
    """Convert an AST to a dictionary representation"""
    return {
        "type": type(node).__name__,
        "label": ast_label(node),
        "children": {label: ast_to_dict(child) for label, child in ast_children(node)}
    }


if __name__ == "__main__":
    # Example usage and testing
    parser = create_debug_parser()

    try:
        stmt = parser.parse_statement("do x := 5; print apply fn [y] y * x end (2); od;")
        print(pretty_print_ast(stmt))
        print(render_stmt(stmt))
    except ImpParseError as e:
        print(f"Parse error: {e}")
