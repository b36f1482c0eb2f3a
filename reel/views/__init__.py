"""
Reel View System - derived collections over content records

A view is a named, ordered, re-derivable subset of the site's records:
a filter predicate, a sort key and a direction. Views never modify the
record set they are derived from.

1. Fields: two-tier lookup (direct attributes, then the ``data`` bag)
2. Predicates: structural rules and parsed template expressions
3. Derivation: filter, stable sort, limit
4. Registry: named rules resolved together against one snapshot

Example:
    from reel.views import ViewRegistry

    registry = ViewRegistry.from_yaml("views.yaml")
    views = registry.resolve_all(records)

    for record in views["movies"]:
        print(record["title"])
"""

from reel.views.core import (
    MalformedInput,
    ViewResult,
    snapshot,
)

from reel.views.fields import (
    MISSING,
    has_field,
    resolve_field,
)

from reel.views.expr import (
    ComparisonExpr,
    UnsupportedExpression,
    parse_expression,
)

from reel.views.predicates import (
    Predicate,
    TruePredicate,
    ComparisonPredicate,
    PresentPredicate,
    ContainsPredicate,
    CompoundPredicate,
    compare_values,
    evaluate,
    is_numeric_like,
)

from reel.views.primitives import (
    SortKey,
    FieldKey,
    FirstOfKey,
    ViewRule,
    derive,
    sort_records,
)

from reel.views.registry import (
    ViewRegistry,
    ViewNotFoundError,
    DuplicateViewError,
    RegistryFrozenError,
)
from reel.views.parser import ViewParseError, parse_view, parse_views_file

__all__ = [
    # Core
    "MalformedInput",
    "ViewResult",
    "snapshot",
    # Fields
    "MISSING",
    "has_field",
    "resolve_field",
    # Expressions
    "ComparisonExpr",
    "UnsupportedExpression",
    "parse_expression",
    # Predicates
    "Predicate",
    "TruePredicate",
    "ComparisonPredicate",
    "PresentPredicate",
    "ContainsPredicate",
    "CompoundPredicate",
    "compare_values",
    "evaluate",
    "is_numeric_like",
    # Derivation
    "SortKey",
    "FieldKey",
    "FirstOfKey",
    "ViewRule",
    "derive",
    "sort_records",
    # Registry
    "ViewRegistry",
    "ViewNotFoundError",
    "DuplicateViewError",
    "RegistryFrozenError",
    # Parser
    "ViewParseError",
    "parse_view",
    "parse_views_file",
]
