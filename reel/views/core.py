"""
Core view abstractions.

This module defines the fundamental types for the view system:
- ViewResult: An ordered sequence of records produced by a view
- MalformedInput: Raised when a record set is not an ordered sequence
- snapshot(): Freeze the record set a build pass resolves against
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from reel.views.fields import MISSING, resolve_field


class MalformedInput(TypeError):
    """Raised when a record set is not an ordered sequence."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Expected an ordered sequence of records, got {type(value).__name__}")


def snapshot(records: Any) -> Tuple[Any, ...]:
    """
    Capture an immutable snapshot of a record set.

    Lists, tuples and ViewResults are accepted. Sets, mappings, strings,
    iterators and scalars are rejected because they have no meaningful
    order (or are consumed by reading them).

    Raises:
        MalformedInput: If records is not an ordered sequence
    """
    if isinstance(records, ViewResult):
        return records.records
    if isinstance(records, tuple):
        return records
    if isinstance(records, list):
        return tuple(records)
    raise MalformedInput(records)


@dataclass
class ViewResult:
    """
    Result of evaluating a view.

    An ordered, read-only sequence of records together with metadata about
    how it was produced (view name, counts, diagnostics). Iterating or
    indexing a result yields the same Record objects that were passed in.
    """
    records: Tuple[Any, ...] = ()
    name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.records = tuple(self.records)

    @property
    def count(self) -> int:
        """Total number of records."""
        return len(self.records)

    @property
    def ok(self) -> bool:
        """True when the view was derived without recovered failures."""
        return not self.diagnostics

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def to_list(self) -> List[Any]:
        """Return the records as a new list."""
        return list(self.records)

    @classmethod
    def empty(cls, name: Optional[str] = None, diagnostic: Optional[str] = None) -> "ViewResult":
        """Create an empty result, optionally recording why it is empty."""
        diagnostics = [diagnostic] if diagnostic else []
        return cls(records=(), name=name, diagnostics=diagnostics)

    def __repr__(self) -> str:
        name_str = f"{self.name!r}, " if self.name else ""
        return f"ViewResult({name_str}{self.count} records)"


def record_label(record: Any) -> str:
    """Short human-readable label for a record, used in logs and the CLI."""
    for key in ("title", "slug", "url", "id"):
        value = resolve_field(record, key)
        if value is not MISSING and value is not None:
            return str(value)
    return repr(record)

