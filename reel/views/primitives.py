"""
Collection derivation.

A ViewRule names a filter, a sort key and a direction. derive() applies a
rule to a record set:

    derive(records, rule) = limit(sort(filter(records)))

Each stage returns a new list; the input sequence is never reordered, so
any number of views can be derived from the same canonical record set.
Sorting is stable in both directions: records with equal keys keep their
input order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, List, Optional, Sequence, Tuple
import logging

from reel.views.core import MalformedInput, ViewResult, snapshot
from reel.views.fields import MISSING, resolve_field
from reel.views.predicates import Predicate, TruePredicate, to_number

logger = logging.getLogger(__name__)

ORDERS = ("asc", "desc")


# =============================================================================
# Sort keys
# =============================================================================

class SortKey(ABC):
    """Extracts the value a record is ordered by."""

    @abstractmethod
    def extract(self, record: Any) -> Any:
        """Return the sort value for a record, or MISSING."""
        pass


@dataclass(frozen=True)
class FieldKey(SortKey):
    """
    Sort by a single field.

    If ``default`` is given it replaces absent or null values (a missing
    popularity counts as 0); otherwise such records sort last.
    """
    field: str
    default: Any = MISSING

    def extract(self, record: Any) -> Any:
        value = resolve_field(record, self.field)
        if value is MISSING or value is None:
            return self.default
        return value

    def __repr__(self) -> str:
        return f"FieldKey({self.field!r})"


@dataclass(frozen=True)
class FirstOfKey(SortKey):
    """
    Sort by the first present field out of several.

    Used for derived ranks such as "IMDb score, else rating, else 0".
    """
    fields: Tuple[str, ...]
    default: Any = 0

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))

    def extract(self, record: Any) -> Any:
        for name in self.fields:
            value = resolve_field(record, name)
            if value is not MISSING and value is not None:
                return value
        return self.default

    def __repr__(self) -> str:
        return f"FirstOfKey({', '.join(self.fields)})"


def _sort_value(value: Any) -> Tuple[int, Any]:
    """
    Normalize a sort value so mixed types never raise.

    Numbers (and numeric-like text) sort before dates, dates before text.
    """
    if isinstance(value, bool):
        return (0, float(value))
    number = to_number(value)
    if number is not None:
        return (0, number)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return (1, value)
    if isinstance(value, date):
        return (1, datetime.combine(value, time.min))
    return (2, str(value))


def sort_records(
    records: Sequence[Any],
    key: SortKey,
    order: str = "asc",
) -> List[Any]:
    """
    Stable sort of records by a sort key.

    Args:
        records: Records to sort (not modified)
        key: Sort key
        order: 'asc' or 'desc'

    Returns:
        A new list. Records whose key is absent come last in either
        direction, in input order.
    """
    if order not in ORDERS:
        raise ValueError(f"Sort order must be 'asc' or 'desc', got {order!r}")

    keyed = []
    missing = []
    for record in records:
        value = key.extract(record)
        if value is MISSING or value is None:
            missing.append(record)
        else:
            keyed.append((_sort_value(value), record))

    # list.sort is stable with reverse=True as well
    keyed.sort(key=lambda pair: pair[0], reverse=(order == "desc"))
    return [record for _, record in keyed] + missing


# =============================================================================
# Rules
# =============================================================================

@dataclass(frozen=True)
class ViewRule:
    """
    A named, re-derivable view definition.

    Attributes:
        name: Unique view name
        filter: Predicate a record must satisfy
        sort_key: Optional sort key; None keeps input order
        order: 'asc' or 'desc'
        limit: Optional maximum number of records
        description: Human-readable description
    """
    name: str
    filter: Predicate = field(default_factory=TruePredicate)
    sort_key: Optional[SortKey] = None
    order: str = "asc"
    limit: Optional[int] = None
    description: str = ""

    def __post_init__(self):
        order = str(self.order).lower()
        if order not in ORDERS:
            raise ValueError(f"View {self.name!r}: sort order must be 'asc' or 'desc', got {self.order!r}")
        object.__setattr__(self, "order", order)
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"View {self.name!r}: limit must be >= 0")

    def derive(self, records: Any) -> ViewResult:
        """Derive this view from a record set."""
        return derive(records, self)


def derive(records: Any, rule: ViewRule) -> ViewResult:
    """
    Compute the ordered view a rule describes.

    Args:
        records: Ordered record sequence (list, tuple or ViewResult)
        rule: The view rule

    Returns:
        ViewResult holding the matching records. A malformed record set
        yields an empty result with a diagnostic instead of raising.
    """
    try:
        source = snapshot(records)
    except MalformedInput as e:
        logger.warning(f"View {rule.name!r}: {e}")
        return ViewResult.empty(rule.name, str(e))

    selected = [record for record in source if rule.filter.matches(record)]
    matched = len(selected)

    if rule.sort_key is not None:
        selected = sort_records(selected, rule.sort_key, rule.order)

    if rule.limit is not None:
        selected = selected[:rule.limit]

    return ViewResult(
        records=selected,
        name=rule.name,
        metadata={"source_count": len(source), "matched": matched},
    )
