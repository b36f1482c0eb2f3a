"""
Reel - derived content views for static sites

Computes named, ordered views (movies, anime, top rated, ...) over the flat
set of records a site build loads, and provides the template filters used
to slice those records further at render time.

Design Principles:
- Records are immutable; views hold references, never copies
- One field lookup rule everywhere: direct attributes, then ``data``
- Views are pure functions of the record snapshot and the rule
- Bad input degrades to an empty view, never a failed build

Example Usage:
    >>> from reel import ViewRegistry, load_records, where_exp
    >>> records = load_records("content.json")
    >>> views = ViewRegistry().resolve_all(records)
    >>> movies = views["movies"]
    >>> classics = where_exp(movies, "item", "item.airedYear < 1980")
"""

__version__ = "0.3.0"
__author__ = "Reel Contributors"

# Records
from reel.models import Record
from reel.loader import load_records, RecordLoadError

# Configuration
from reel.config import ReelConfig, get_config, init_config

# Views
from reel.views import (
    ViewRegistry,
    ViewRule,
    ViewResult,
    derive,
    parse_expression,
    resolve_field,
    UnsupportedExpression,
    MalformedInput,
)

# Template filters
from reel.filters import where_exp, where, sort_by, limit, template_filters

__all__ = [
    "Record",
    "load_records",
    "RecordLoadError",
    "ReelConfig",
    "get_config",
    "init_config",
    "ViewRegistry",
    "ViewRule",
    "ViewResult",
    "derive",
    "parse_expression",
    "resolve_field",
    "UnsupportedExpression",
    "MalformedInput",
    "where_exp",
    "where",
    "sort_by",
    "limit",
    "template_filters",
]
