"""
View Registry - named view management.

The registry holds the named view rules of a site. Rules are registered
once at configuration time; the first resolution freezes the registry so
no rule can change in the middle of a build.

Resolution is a pure function of the rules and the record snapshot taken
when resolution starts: the same rules and records always produce the
same sequences, in the same order.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union
import logging
import time

from reel.views.core import MalformedInput, ViewResult, snapshot
from reel.views.primitives import ViewRule, derive

logger = logging.getLogger(__name__)


class ViewNotFoundError(Exception):
    """Raised when a view is not found in the registry."""
    pass


class DuplicateViewError(ValueError):
    """Raised when a view name is registered twice."""
    pass


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a registry that is already in use."""
    pass


def builtin_rules() -> List[ViewRule]:
    """Default views of a show catalog site."""
    from reel.views.predicates import (
        CompoundPredicate,
        ContainsPredicate,
        PresentPredicate,
        field_cmp,
        field_eq,
    )
    from reel.views.primitives import FieldKey, FirstOfKey

    popularity = FieldKey("popularity", default=0)
    aired_year = FieldKey("airedYear", default=0)

    return [
        ViewRule(
            name="allShows",
            filter=PresentPredicate("layout"),
            description="Every entry rendered with a layout",
        ),
        ViewRule(
            name="featuredShows",
            filter=field_eq("featured", True),
            sort_key=popularity,
            order="desc",
            description="Featured shows by popularity",
        ),
        ViewRule(
            name="movies",
            filter=field_eq("type", "movie"),
            sort_key=aired_year,
            order="desc",
            description="Movies, newest first",
        ),
        ViewRule(
            name="anime",
            filter=field_eq("type", "anime"),
            sort_key=popularity,
            order="desc",
            description="Anime by popularity",
        ),
        ViewRule(
            name="series",
            filter=field_eq("type", "series"),
            sort_key=aired_year,
            order="desc",
            description="TV series, newest first",
        ),
        ViewRule(
            name="topRated",
            filter=CompoundPredicate("any", [
                field_cmp("rating", ">=", 8.0),
                field_cmp("imbdScore", ">=", 8.0),
            ]),
            sort_key=FirstOfKey(("imbdScore", "rating"), default=0),
            order="desc",
            description="Rated 8.0 or higher, best first",
        ),
        ViewRule(
            name="airing",
            filter=ContainsPredicate("status", ["Airing", "Ongoing", "Currently"]),
            sort_key=popularity,
            order="desc",
            description="Currently airing shows by popularity",
        ),
    ]


class ViewRegistry:
    """
    Registry for named view rules.

    Example:
        registry = ViewRegistry()
        registry.load_file("views.yaml")

        views = registry.resolve_all(records)
        for record in views["movies"]:
            print(record["title"])
    """

    def __init__(self, include_builtins: bool = True):
        self._rules: Dict[str, ViewRule] = {}
        self._builtin: set = set()
        self._frozen = False

        if include_builtins:
            self._register_builtins()

    def _register_builtins(self):
        """Register built-in default views."""
        for rule in builtin_rules():
            self.register(rule)
            self._builtin.add(rule.name)

    def register(
        self,
        name_or_rule: Union[str, ViewRule],
        rule: Optional[ViewRule] = None,
        replace: bool = False,
    ) -> ViewRule:
        """
        Register a view rule.

        Accepts either ``register(rule)`` or ``register(name, rule)``; in the
        second form the rule is stored under ``name``. With ``replace=True``
        an existing view of the same name (e.g. a built-in) is redefined.

        Raises:
            RegistryFrozenError: If the registry has been frozen
            DuplicateViewError: If the name is already registered
        """
        if isinstance(name_or_rule, ViewRule):
            rule = name_or_rule
            name = rule.name
        else:
            name = name_or_rule
            if rule is None:
                raise TypeError("register(name, rule) requires a rule")

        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {name!r}: registry is frozen")
        if name in self._rules and not replace:
            raise DuplicateViewError(f"View already registered: {name}")

        if rule.name != name:
            rule = ViewRule(
                name=name,
                filter=rule.filter,
                sort_key=rule.sort_key,
                order=rule.order,
                limit=rule.limit,
                description=rule.description,
            )

        self._rules[name] = rule
        self._builtin.discard(name)
        return rule

    def unregister(self, name: str) -> None:
        """Remove a view (only before the registry is frozen)."""
        if self._frozen:
            raise RegistryFrozenError(f"Cannot unregister {name!r}: registry is frozen")
        if name not in self._rules:
            raise ViewNotFoundError(name)
        del self._rules[name]
        self._builtin.discard(name)

    def freeze(self) -> "ViewRegistry":
        """Make the registry read-only. Returns self for chaining."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def rules(self) -> Mapping[str, ViewRule]:
        """Read-only mapping of view name to rule, in registration order."""
        return MappingProxyType(self._rules)

    def get(self, name: str) -> ViewRule:
        """
        Get a rule by name.

        Raises:
            ViewNotFoundError: If view is not found
        """
        try:
            return self._rules[name]
        except KeyError:
            raise ViewNotFoundError(f"View not found: {name}") from None

    def has(self, name: str) -> bool:
        """Check if a view exists in the registry."""
        return name in self._rules

    def list(self, include_builtin: bool = True) -> List[str]:
        """List registered view names in registration order."""
        if include_builtin:
            return list(self._rules)
        return [n for n in self._rules if n not in self._builtin]

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin

    def load_file(self, path: Union[str, Path]) -> int:
        """
        Load view definitions from a YAML file.

        Definitions in the file redefine built-in views of the same name.

        Returns:
            Number of views loaded
        """
        from reel.views.parser import parse_views_file

        rules = parse_views_file(path)
        for rule in rules:
            self.register(rule, replace=True)
        logger.debug(f"Loaded {len(rules)} views from {path}")
        return len(rules)

    def resolve(self, name: str, records: Any) -> ViewResult:
        """Derive a single named view."""
        return derive(records, self.get(name))

    def resolve_all(self, records: Any, max_workers: Optional[int] = None) -> Dict[str, ViewResult]:
        """
        Derive every registered view from one record snapshot.

        Args:
            records: Ordered record sequence
            max_workers: Derive views on a thread pool of this size
                (None or 1 derives them one after another)

        Returns:
            Mapping of view name to ViewResult, in registration order.
            A malformed record set yields empty results for every view.
        """
        self.freeze()
        rules = list(self._rules.values())

        try:
            source = snapshot(records)
        except MalformedInput as e:
            logger.warning(f"Cannot resolve views: {e}")
            return {rule.name: ViewResult.empty(rule.name, str(e)) for rule in rules}

        started = time.perf_counter()

        if max_workers and max_workers > 1 and len(rules) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(derive, source, rule) for rule in rules]
                results = [future.result() for future in futures]
        else:
            results = [derive(source, rule) for rule in rules]

        logger.debug(
            f"Resolved {len(rules)} views over {len(source)} records "
            f"in {time.perf_counter() - started:.3f}s"
        )
        return {result.name: result for result in results}

    def info(self) -> Dict[str, Any]:
        """
        Get registry information.

        Returns:
            Dictionary with registry stats and view list
        """
        views_info = []
        for name, rule in self._rules.items():
            views_info.append({
                "name": name,
                "description": rule.description,
                "builtin": name in self._builtin,
                "sort": repr(rule.sort_key) if rule.sort_key else None,
                "order": rule.order,
            })

        return {
            "total_views": len(views_info),
            "builtin_views": sum(1 for v in views_info if v["builtin"]),
            "custom_views": sum(1 for v in views_info if not v["builtin"]),
            "frozen": self._frozen,
            "views": views_info,
        }

    @classmethod
    def from_yaml(cls, path: Union[str, Path], include_builtins: bool = True) -> "ViewRegistry":
        """Create a registry and load views from a YAML file."""
        registry = cls(include_builtins=include_builtins)
        registry.load_file(path)
        return registry

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._rules)
