"""
Field resolution for records.

Every lookup in the view system goes through resolve_field(), so the
expression evaluator and the sort-key extraction always agree on where a
value lives: direct attributes first, then the nested ``data`` bag.

Lookups use presence, not truthiness. ``0``, ``False`` and ``""`` are
found values; only an absent key yields MISSING.
"""

from typing import Any, Mapping


class _Missing:
    """Sentinel for an absent field (distinct from a stored None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()

DATA_BAG = "data"


def _lookup(container: Any, name: str) -> Any:
    """Single-level lookup in a mapping or object."""
    if container is None or container is MISSING:
        return MISSING
    if isinstance(container, Mapping):
        return container[name] if name in container else MISSING
    try:
        return getattr(container, name)
    except AttributeError:
        return MISSING


def _direct_and_nested(record: Any):
    """Return (direct attributes, nested bag) for any record shape."""
    # Record (reel.models) exposes both explicitly
    direct = getattr(record, "fields", None)
    nested = getattr(record, "data", None)
    if isinstance(direct, Mapping) and not isinstance(record, Mapping):
        return direct, nested

    if isinstance(record, Mapping):
        nested = record.get(DATA_BAG)
        return record, nested if isinstance(nested, Mapping) else None

    return record, nested


def resolve_field(record: Any, path: str) -> Any:
    """
    Resolve a field path against a record.

    The first path segment is looked up as a direct attribute, then under
    the record's ``data`` bag. Remaining segments (``ratings.imdb``)
    descend into whatever was found.

    Args:
        record: A Record, a plain mapping, or an object with attributes
        path: Field name or dotted path

    Returns:
        The value, or MISSING if any segment is absent
    """
    if not path:
        return MISSING

    head, _, rest = path.partition(".")
    direct, nested = _direct_and_nested(record)

    value = _lookup(direct, head)
    if value is MISSING and nested is not None:
        value = _lookup(nested, head)

    while rest and value is not MISSING:
        segment, _, rest = rest.partition(".")
        value = _lookup(value, segment)

    return value


def has_field(record: Any, path: str) -> bool:
    """Check whether a field path resolves to a present value."""
    return resolve_field(record, path) is not MISSING
