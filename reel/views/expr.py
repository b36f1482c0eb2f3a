"""
Filter expression parser.

Parses the small comparison language used by templates for ad-hoc
filtering, e.g.::

    item.category == 'movie'
    item.rating >= 8.0
    item.data.status != "Finished"

Grammar (whitespace between tokens is optional):

    expression := operand OP literal
    operand    := IDENT ("." IDENT)+        # loop variable, then field path
    OP         := "==" | "!=" | ">=" | "<=" | ">" | "<"
    literal    := STRING | BARE             # 'quoted', "quoted", or bare

A bare literal runs up to the next quote character or the end of the
string, so ``item.status == Currently Airing`` compares against
``"Currently Airing"``.

The first position in the input where the grammar matches is used and
anything after the literal is ignored, including stray quotes. Quoted
literals have their quotes stripped; bare literals are kept as raw text
and coerced at evaluation time.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple
import re


OPERATORS = ("==", "!=", ">=", "<=", ">", "<")

OPERATOR_CHARS = "=!<>"
QUOTES = "'\""

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Where an operand can start: a dotted identifier not glued to a previous word
_OPERAND_START = re.compile(r"(?<![\w.])[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)+")


class UnsupportedExpression(ValueError):
    """Raised when an expression does not match the filter grammar."""

    def __init__(self, expression: str, reason: str = "no comparison found"):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Unsupported expression ({reason}): {expression!r}")


# =============================================================================
# Tokenizer
# =============================================================================

@dataclass(frozen=True)
class Token:
    """A lexical token with its start offset in the source string."""
    kind: str  # 'WORD', 'OP', 'STRING', 'ERROR'
    text: str
    pos: int

    def __repr__(self):
        return f"{self.kind}({self.text!r}@{self.pos})"


def tokenize(source: str) -> List[Token]:
    """
    Split an expression into tokens.

    An unterminated quote becomes a single ERROR token covering the rest
    of the string.
    """
    tokens: List[Token] = []
    i = 0
    n = len(source)

    while i < n:
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in QUOTES:
            end = source.find(ch, i + 1)
            if end < 0:
                tokens.append(Token("ERROR", source[i:], i))
                break
            tokens.append(Token("STRING", source[i + 1:end], i))
            i = end + 1
            continue

        if ch in OPERATOR_CHARS:
            two = source[i:i + 2]
            if two in OPERATORS:
                tokens.append(Token("OP", two, i))
                i += 2
            elif ch in "<>":
                tokens.append(Token("OP", ch, i))
                i += 1
            else:
                # Lone '=' or '!'
                tokens.append(Token("ERROR", ch, i))
                i += 1
            continue

        start = i
        while i < n and not (
            source[i].isspace() or source[i] in QUOTES or source[i] in OPERATOR_CHARS
        ):
            i += 1
        tokens.append(Token("WORD", source[start:i], start))

    return tokens


# =============================================================================
# Parser
# =============================================================================

@dataclass(frozen=True)
class ComparisonExpr:
    """
    A parsed comparison.

    Attributes:
        variable: Loop variable name (``item`` in ``item.category``)
        field: Field path relative to the record (``category``)
        operator: One of OPERATORS
        literal: Literal text with quotes stripped
        quoted: Whether the literal was quoted in the source
        source: The original expression string
        trailing: Ignored text after the literal, if any
    """
    variable: str
    field: str
    operator: str
    literal: str
    quoted: bool = False
    source: str = ""
    trailing: str = ""

    def __repr__(self):
        return f"ComparisonExpr({self.field} {self.operator} {self.literal!r})"


def _split_operand(word: str) -> Optional[List[str]]:
    """Split ``item.field`` into identifiers, or None if not an operand."""
    parts = word.split(".")
    if len(parts) < 2:
        return None
    if not all(_IDENT.match(p) for p in parts):
        return None
    return parts


def _read_literal(source: str, i: int) -> Optional[Tuple[str, bool, int]]:
    """
    Read the literal at or after offset ``i``.

    Returns:
        (text, quoted, end offset), or None if there is no literal
    """
    n = len(source)
    while i < n and source[i].isspace():
        i += 1
    if i >= n:
        return None

    if source[i] in QUOTES:
        end = source.find(source[i], i + 1)
        if end < 0:
            return None
        return source[i + 1:end], True, end + 1

    end = i
    while end < n and source[end] not in QUOTES:
        end += 1
    text = source[i:end].strip()
    if not text:
        return None
    return text, False, end


def _parse_at(source: str, start: int) -> Optional[ComparisonExpr]:
    """Try to match ``operand OP literal`` starting at ``start``."""
    tokens = tokenize(source[start:])
    if len(tokens) < 2:
        return None

    operand, op = tokens[0], tokens[1]
    if operand.kind != "WORD" or op.kind != "OP":
        return None

    parts = _split_operand(operand.text)
    if parts is None:
        return None

    literal = _read_literal(source, start + op.pos + len(op.text))
    if literal is None:
        return None

    text, quoted, end = literal
    return ComparisonExpr(
        variable=parts[0],
        field=".".join(parts[1:]),
        operator=op.text,
        literal=text,
        quoted=quoted,
        source=source,
        trailing=source[end:].strip(),
    )


@lru_cache(maxsize=256)
def _parse_cached(source: str) -> ComparisonExpr:
    # Candidates come from the raw string so a quote pair opened before the
    # operand cannot hide it
    for match in _OPERAND_START.finditer(source):
        parsed = _parse_at(source, match.start())
        if parsed is not None:
            return parsed
    raise UnsupportedExpression(source)


def parse_expression(source: str) -> ComparisonExpr:
    """
    Parse a filter expression.

    Args:
        source: Expression string, e.g. ``"item.category == 'movie'"``

    Returns:
        The first ComparisonExpr found in the string

    Raises:
        UnsupportedExpression: If the string does not contain a comparison
    """
    if not isinstance(source, str):
        raise UnsupportedExpression(repr(source), "expression must be a string")
    return _parse_cached(source)
