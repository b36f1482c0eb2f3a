"""
YAML parser for view definitions.

Parses view definitions into ViewRule objects.

Example YAML:

    movies:
      description: Movies, newest first
      filter:
        field: type
        value: movie
      sort: airedYear desc

    topRated:
      filter:
        any:
          - "item.rating >= 8.0"
          - {field: imbdScore, op: ">=", value: 8.0}
      sort:
        first_of: [imbdScore, rating]
        default: 0
        order: desc

    airing:
      filter: {field: status, contains: [Airing, Ongoing, Currently]}
      sort: {field: popularity, order: desc, default: 0}
      limit: 20
"""

from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from reel.views.expr import UnsupportedExpression
from reel.views.fields import MISSING
from reel.views.predicates import (
    CompoundPredicate,
    ComparisonPredicate,
    ContainsPredicate,
    Predicate,
    PresentPredicate,
    TruePredicate,
)
from reel.views.primitives import FieldKey, FirstOfKey, SortKey, ViewRule


class ViewParseError(Exception):
    """Error parsing view definition."""
    pass


RULE_KEYS = {"description", "filter", "sort", "order", "limit"}


def load_views_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML file containing view definitions.

    Returns:
        Dictionary mapping view names to raw definitions
    """
    path = Path(path)

    if not path.exists():
        raise ViewParseError(f"Views file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ViewParseError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ViewParseError(f"Views file must contain a dictionary, got {type(data).__name__}")

    return data


def parse_views_file(path: Union[str, Path]) -> List[ViewRule]:
    """Parse every view defined in a YAML file."""
    parser = ViewParser()
    return [parser.parse(name, definition) for name, definition in load_views_yaml(path).items()]


def parse_view(name: str, definition: Dict[str, Any]) -> ViewRule:
    """
    Parse a single view definition into a ViewRule.

    Args:
        name: View name
        definition: Dictionary containing the view definition

    Returns:
        Parsed ViewRule
    """
    return ViewParser().parse(name, definition)


class ViewParser:
    """
    Parser for view definitions.

    Recognized keys: filter, sort, order, limit, description.
    """

    def parse(self, name: str, definition: Dict[str, Any]) -> ViewRule:
        """Parse a view definition into a ViewRule."""
        if not isinstance(definition, dict):
            raise ViewParseError(f"View {name!r}: definition must be a dictionary, got {type(definition).__name__}")

        unknown = set(definition) - RULE_KEYS
        if unknown:
            raise ViewParseError(f"View {name!r}: unknown keys {sorted(unknown)}")

        predicate: Predicate = TruePredicate()
        if "filter" in definition:
            predicate = self._parse_filter(name, definition["filter"])

        sort_key = None
        order = definition.get("order", "asc")
        if "sort" in definition:
            sort_key, sort_order = self._parse_sort(name, definition["sort"])
            if sort_order is not None:
                order = sort_order

        limit = definition.get("limit")
        if limit is not None:
            try:
                limit = int(limit)
            except (TypeError, ValueError):
                raise ViewParseError(f"View {name!r}: limit must be an integer, got {limit!r}") from None

        try:
            return ViewRule(
                name=name,
                filter=predicate,
                sort_key=sort_key,
                order=order,
                limit=limit,
                description=str(definition.get("description", "")),
            )
        except ValueError as e:
            raise ViewParseError(str(e)) from e

    def _parse_filter(self, name: str, filter_def: Any) -> Predicate:
        """Parse a filter definition into a Predicate."""
        if isinstance(filter_def, str):
            try:
                return ComparisonPredicate.parse(filter_def)
            except UnsupportedExpression as e:
                raise ViewParseError(f"View {name!r}: {e}") from e

        if isinstance(filter_def, list):
            # List of conditions - AND them together
            return CompoundPredicate("all", [self._parse_filter(name, f) for f in filter_def])

        if not isinstance(filter_def, dict):
            raise ViewParseError(f"View {name!r}: invalid filter {filter_def!r}")

        # Compound predicates
        if "all" in filter_def:
            return CompoundPredicate("all", [self._parse_filter(name, f) for f in self._as_list(filter_def["all"])])

        if "any" in filter_def:
            return CompoundPredicate("any", [self._parse_filter(name, f) for f in self._as_list(filter_def["any"])])

        if "not" in filter_def:
            return CompoundPredicate("not", [self._parse_filter(name, filter_def["not"])])

        if "field" not in filter_def:
            raise ViewParseError(f"View {name!r}: filter needs 'field', 'all', 'any' or 'not': {filter_def!r}")

        field_name = str(filter_def["field"])

        if "present" in filter_def:
            predicate = PresentPredicate(field_name)
            return predicate if filter_def["present"] else CompoundPredicate("not", [predicate])

        if "contains" in filter_def:
            needles = [str(n) for n in self._as_list(filter_def["contains"])]
            return ContainsPredicate(
                field_name,
                needles,
                case_sensitive=bool(filter_def.get("case_sensitive", True)),
            )

        op = filter_def.get("op", "==")
        value = filter_def.get("value", MISSING)
        if value is MISSING:
            raise ViewParseError(f"View {name!r}: filter on {field_name!r} needs a 'value'")

        try:
            return ComparisonPredicate(field_name, str(op), value)
        except ValueError as e:
            raise ViewParseError(f"View {name!r}: {e}") from e

    def _parse_sort(self, name: str, sort_def: Any):
        """Parse a sort definition into (SortKey, order or None)."""
        if isinstance(sort_def, str):
            # "field" or "field desc"
            tokens = sort_def.split()
            if not tokens or len(tokens) > 2:
                raise ViewParseError(f"View {name!r}: invalid sort {sort_def!r}")
            order = tokens[1].lower() if len(tokens) > 1 else None
            return FieldKey(tokens[0]), order

        if not isinstance(sort_def, dict):
            raise ViewParseError(f"View {name!r}: invalid sort {sort_def!r}")

        order = sort_def.get("order", sort_def.get("direction"))
        order = str(order).lower() if order is not None else None

        if "first_of" in sort_def:
            fields = [str(f) for f in self._as_list(sort_def["first_of"])]
            if not fields:
                raise ViewParseError(f"View {name!r}: first_of needs at least one field")
            key: SortKey = FirstOfKey(tuple(fields), default=sort_def.get("default", 0))
            return key, order

        if "field" in sort_def:
            key = FieldKey(str(sort_def["field"]), default=sort_def.get("default", MISSING))
            return key, order

        raise ViewParseError(f"View {name!r}: sort needs 'field' or 'first_of': {sort_def!r}")

    @staticmethod
    def _as_list(value: Any) -> List[Any]:
        return value if isinstance(value, list) else [value]
