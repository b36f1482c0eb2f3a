"""
Content record model.

A Record is one site entry: a set of direct attributes plus an optional
nested metadata bag (``data``), the way front matter and computed fields
end up attached to a page. Records are immutable once loaded; views hold
references to the same Record objects, never copies.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, eq=False)
class Record:
    """
    An immutable content entry.

    Attributes:
        fields: Direct attributes (url, slug, type, ...)
        data: Nested metadata bag (front matter)
        id: Optional stable identifier, used only for display
    """
    fields: Mapping[str, Any] = field(default_factory=dict)
    data: Mapping[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", _freeze(self.fields))
        object.__setattr__(self, "data", _freeze(self.data))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Record":
        """
        Build a record from a plain dictionary.

        The ``data`` key (if it is a mapping) becomes the nested bag,
        everything else is a direct field.
        """
        direct = dict(raw)
        nested = direct.pop("data", None)
        if nested is not None and not isinstance(nested, Mapping):
            # Not a metadata bag, keep it as an ordinary field
            direct["data"] = nested
            nested = None
        record_id = direct.get("id", direct.get("slug", direct.get("url")))
        return cls(
            fields=direct,
            data=nested or {},
            id=str(record_id) if record_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to a plain dictionary."""
        result = dict(self.fields)
        if self.data:
            result["data"] = dict(self.data)
        return result

    def get(self, name: str, default: Any = None) -> Any:
        """Two-tier lookup with a default for absent fields."""
        from reel.views.fields import MISSING, resolve_field

        value = resolve_field(self, name)
        return default if value is MISSING else value

    def __getitem__(self, name: str) -> Any:
        from reel.views.fields import MISSING, resolve_field

        value = resolve_field(self, name)
        if value is MISSING:
            raise KeyError(name)
        return value

    def __contains__(self, name: str) -> bool:
        return name in self.fields or name in self.data

    def __repr__(self) -> str:
        title = self.get("title")
        title_str = f", title={title!r}" if title is not None else ""
        return f"Record(id={self.id!r}{title_str})"
