"""
Predicate system for view selection.

Predicates are composable boolean functions over records. There are two
ways to obtain one:

- Structural predicates compiled into view definitions (field equals a
  constant, field is present, field contains a substring)
- Comparison predicates parsed from template expressions
  (``item.rating >= 8.0``)

Both kinds of comparison go through compare_values(), so a view rule and
a template filter always coerce values the same way.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import math
import numbers
import operator as _operator

from reel.views.expr import OPERATORS, ComparisonExpr, parse_expression
from reel.views.fields import MISSING, resolve_field


# =============================================================================
# Coercion
# =============================================================================

NUMBER = "number"
BOOLEAN = "boolean"
DATE = "date"
TEXT = "text"
ABSENT = "absent"


@dataclass(frozen=True)
class Coerced:
    """A value tagged with the semantic type it compares as."""
    kind: str
    value: Any


def to_number(value: Any) -> Optional[float]:
    """
    Return value as a float if it is numeric-like, else None.

    Numeric-like means a real number (booleans excluded) or text that
    parses completely as a number, ignoring surrounding whitespace.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def is_numeric_like(value: Any) -> bool:
    """Check whether a value takes the numeric comparison branch."""
    return to_number(value) is not None


def coerce(value: Any) -> Coerced:
    """Classify a single operand. Each side of a comparison is coerced on its own."""
    if value is MISSING or value is None:
        return Coerced(ABSENT, None)
    if isinstance(value, bool):
        return Coerced(BOOLEAN, value)
    number = to_number(value)
    if number is not None:
        return Coerced(NUMBER, number)
    if isinstance(value, (datetime, date)):
        return Coerced(DATE, value)
    if isinstance(value, (list, tuple)):
        return Coerced(TEXT, ",".join(str(v) for v in value))
    return Coerced(TEXT, str(value))


def _parse_date(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _align_dates(a: Any, b: Any) -> Tuple[Any, Any]:
    """Bring two date/datetime values to a comparable form."""
    if isinstance(a, datetime) != isinstance(b, datetime):
        # Compare a date against the date part of a datetime
        a = a.date() if isinstance(a, datetime) else a
        b = b.date() if isinstance(b, datetime) else b
        return a, b
    if isinstance(a, datetime) and (a.tzinfo is None) != (b.tzinfo is None):
        return a.replace(tzinfo=None), b.replace(tzinfo=None)
    return a, b


def _align(left: Coerced, right: Coerced) -> Optional[Tuple[Any, Any]]:
    """Return a comparable pair, or None when the kinds cannot be compared."""
    kinds = (left.kind, right.kind)

    if left.kind == right.kind and left.kind in (NUMBER, TEXT, BOOLEAN):
        return left.value, right.value

    if kinds == (BOOLEAN, NUMBER):
        return float(left.value), right.value
    if kinds == (NUMBER, BOOLEAN):
        return left.value, float(right.value)

    if BOOLEAN in kinds and TEXT in kinds:
        text = right.value if right.kind == TEXT else left.value
        if text.strip().lower() not in ("true", "false"):
            return None
        as_bool = text.strip().lower() == "true"
        if left.kind == BOOLEAN:
            return left.value, as_bool
        return as_bool, right.value

    if kinds == (DATE, DATE):
        return _align_dates(left.value, right.value)
    if DATE in kinds and TEXT in kinds:
        text = right.value if right.kind == TEXT else left.value
        parsed = _parse_date(text)
        if parsed is None:
            return None
        if left.kind == DATE:
            return _align_dates(left.value, parsed)
        return _align_dates(parsed, right.value)

    return None


_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": _operator.eq,
    "!=": _operator.ne,
    ">=": _operator.ge,
    "<=": _operator.le,
    ">": _operator.gt,
    "<": _operator.lt,
}

# Word aliases accepted in view definitions
OPERATOR_ALIASES = {
    "eq": "==",
    "ne": "!=",
    "gte": ">=",
    "lte": "<=",
    "gt": ">",
    "lt": "<",
    "=": "==",
    "<>": "!=",
}


def normalize_operator(op: str) -> str:
    """Map an operator or its word alias to its symbol."""
    op = OPERATOR_ALIASES.get(op, op)
    if op not in OPERATORS:
        raise ValueError(f"Unknown comparison operator: {op!r}")
    return op


def compare_values(actual: Any, op: str, expected: Any) -> bool:
    """
    Compare two values with loose, type-coercing semantics.

    If both sides are numeric-like they compare as numbers. Otherwise they
    compare in their coerced forms (text, boolean, date). Pairs that have
    no common form are a mismatch: ``==`` and the ordering operators are
    false, ``!=`` is true. Absent values equal only other absent values.
    """
    left, right = coerce(actual), coerce(expected)

    if left.kind == ABSENT or right.kind == ABSENT:
        both = left.kind == right.kind
        if op == "==":
            return both
        if op == "!=":
            return not both
        return False

    pair = _align(left, right)
    if pair is None:
        return op == "!="

    try:
        return _COMPARATORS[op](*pair)
    except TypeError:
        return op == "!="


# =============================================================================
# Predicates
# =============================================================================

class Predicate(ABC):
    """
    Abstract base for predicates.

    A predicate is a function: Record -> bool
    Predicates can be combined with &, |, ~ operators.
    """

    @abstractmethod
    def matches(self, record: Any) -> bool:
        """Test if a record matches this predicate."""
        pass

    def __call__(self, record: Any) -> bool:
        return self.matches(record)

    def __and__(self, other: "Predicate") -> "Predicate":
        """Logical AND: self & other"""
        return CompoundPredicate("all", [self, other])

    def __or__(self, other: "Predicate") -> "Predicate":
        """Logical OR: self | other"""
        return CompoundPredicate("any", [self, other])

    def __invert__(self) -> "Predicate":
        """Logical NOT: ~self"""
        return CompoundPredicate("not", [self])


@dataclass
class TruePredicate(Predicate):
    """Always matches."""

    def matches(self, record: Any) -> bool:
        return True


@dataclass
class ComparisonPredicate(Predicate):
    """
    Compare a record field against a value.

    ``value`` may be any Python value (structural rules) or the raw literal
    text of a parsed expression; coercion decides how the two compare.
    """
    field: str
    operator: str
    value: Any

    def __post_init__(self):
        self.operator = normalize_operator(self.operator)

    @classmethod
    def from_expression(cls, expr: ComparisonExpr) -> "ComparisonPredicate":
        """Build a predicate from a parsed expression."""
        return cls(field=expr.field, operator=expr.operator, value=expr.literal)

    @classmethod
    def parse(cls, source: str) -> "ComparisonPredicate":
        """
        Parse an expression string into a predicate.

        Raises:
            UnsupportedExpression: If the string is not a comparison
        """
        return cls.from_expression(parse_expression(source))

    def matches(self, record: Any) -> bool:
        actual = resolve_field(record, self.field)
        return compare_values(actual, self.operator, self.value)

    def __repr__(self) -> str:
        return f"ComparisonPredicate({self.field} {self.operator} {self.value!r})"


@dataclass
class PresentPredicate(Predicate):
    """Match records where a field is present and not null."""
    field: str

    def matches(self, record: Any) -> bool:
        value = resolve_field(record, self.field)
        return value is not MISSING and value is not None


@dataclass
class ContainsPredicate(Predicate):
    """
    Match records whose field contains any of the given needles.

    Text values match by substring, list values by membership. Absent or
    non-text values never match.
    """
    field: str
    needles: List[str]
    case_sensitive: bool = True

    def _norm(self, s: str) -> str:
        return s if self.case_sensitive else s.lower()

    def matches(self, record: Any) -> bool:
        value = resolve_field(record, self.field)
        needles = [self._norm(str(n)) for n in self.needles]

        if isinstance(value, str):
            haystack = self._norm(value)
            return any(n in haystack for n in needles)
        if isinstance(value, (list, tuple)):
            items = {self._norm(str(v)) for v in value}
            return any(n in items for n in needles)
        return False


@dataclass
class CompoundPredicate(Predicate):
    """
    Logical combination of predicates.

    Operators:
    - 'all': AND (all must match)
    - 'any': OR (at least one must match)
    - 'not': NOT (negate single predicate)
    """
    operator: str  # 'all', 'any', 'not'
    predicates: List[Predicate] = field(default_factory=list)

    def matches(self, record: Any) -> bool:
        if self.operator == "all":
            return all(p.matches(record) for p in self.predicates)
        elif self.operator == "any":
            return any(p.matches(record) for p in self.predicates)
        elif self.operator == "not":
            if self.predicates:
                return not self.predicates[0].matches(record)
            return True
        return False


def evaluate(predicate: Predicate, record: Any) -> bool:
    """Apply a predicate to one record."""
    return predicate.matches(record)


# Predicate builder helpers
def field_eq(field: str, value: Any) -> ComparisonPredicate:
    """Create an equality predicate."""
    return ComparisonPredicate(field, "==", value)


def field_cmp(field: str, op: str, value: Any) -> ComparisonPredicate:
    """Create a comparison predicate."""
    return ComparisonPredicate(field, op, value)


def present(field: str) -> PresentPredicate:
    """Create a presence predicate."""
    return PresentPredicate(field)


def contains(field: str, *needles: str) -> ContainsPredicate:
    """Create a contains predicate."""
    return ContainsPredicate(field, list(needles))


def expression(source: str) -> ComparisonPredicate:
    """Create a predicate from an expression string."""
    return ComparisonPredicate.parse(source)
