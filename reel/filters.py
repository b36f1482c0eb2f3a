"""
Template filters over record sequences.

These are the filters a template engine calls while rendering, on
whatever sequence the template already holds (a resolved view, a slice
of one, a list of dictionaries from global data):

    {% assign movies = collections.all | whereExp: "item", "item.type == 'movie'" %}
    {% assign recent = movies | sortBy: "airedYear", "desc" | limit: 6 %}

A filter never raises on bad input. Non-sequences and unsupported
expressions produce an empty list and a logged warning, so one broken
template fragment cannot stop the rest of the site from building.
"""

from typing import Any, Callable, Dict, List
import logging

from reel.views.core import MalformedInput, snapshot
from reel.views.expr import UnsupportedExpression, parse_expression
from reel.views.predicates import ComparisonPredicate
from reel.views.primitives import FieldKey, sort_records

logger = logging.getLogger(__name__)


def _records(items: Any, filter_name: str):
    try:
        return snapshot(items)
    except MalformedInput as e:
        logger.warning(f"{filter_name}: {e}")
        return None


def where_exp(items: Any, variable_name: str, expression: str) -> List[Any]:
    """
    Keep the items matching a comparison expression.

    Args:
        items: Record sequence
        variable_name: Loop variable the expression refers to (``item``)
        expression: e.g. ``"item.category == 'movie'"``

    Returns:
        A new list of matching items, in input order
    """
    records = _records(items, "whereExp")
    if records is None:
        return []

    try:
        parsed = parse_expression(expression)
    except UnsupportedExpression as e:
        logger.warning(f"whereExp expression not supported: {e.expression} ({e.reason})")
        return []

    if variable_name and parsed.variable != variable_name:
        logger.debug(
            f"whereExp: expression uses {parsed.variable!r}, "
            f"template loop variable is {variable_name!r}"
        )
    if parsed.trailing:
        logger.debug(f"whereExp: ignoring trailing text {parsed.trailing!r} in {expression!r}")

    predicate = ComparisonPredicate.from_expression(parsed)
    return [record for record in records if predicate.matches(record)]


def where(items: Any, key: str, value: Any) -> List[Any]:
    """Keep the items whose field equals a value."""
    records = _records(items, "where")
    if records is None:
        return []

    predicate = ComparisonPredicate(key, "==", value)
    return [record for record in records if predicate.matches(record)]


def sort_by(items: Any, key: str, order: str = "asc") -> List[Any]:
    """
    Sort items by a field.

    Returns a new list; the input keeps its order. Items without the field
    come last. An unknown order is treated as ascending.
    """
    records = _records(items, "sortBy")
    if records is None:
        return []

    order = str(order).lower()
    if order not in ("asc", "desc"):
        logger.warning(f"sortBy: unknown order {order!r}, using 'asc'")
        order = "asc"

    return sort_records(records, FieldKey(key), order)


def limit(items: Any, count: int) -> List[Any]:
    """Take the first ``count`` items."""
    records = _records(items, "limit")
    if records is None:
        return []

    try:
        count = int(count)
    except (TypeError, ValueError):
        logger.warning(f"limit: count must be an integer, got {count!r}")
        return []

    return list(records[:max(count, 0)])


def template_filters() -> Dict[str, Callable[..., Any]]:
    """Filters keyed by the names templates use."""
    return {
        "whereExp": where_exp,
        "where": where,
        "sortBy": sort_by,
        "limit": limit,
    }
