"""Utility modules for the application.

Pure helpers shared by services and the API layer: slugs, deep merges,
collection sorting/filtering, text formatting and input validation.
"""

from portfolio.utils.collections import (
    SortRule,
    count_by,
    filter_by,
    filter_by_many,
    filter_where,
    group_by,
    sort_by,
    sort_by_many,
)
from portfolio.utils.merge import merge_deep, merge_deep_many
from portfolio.utils.slugify import ensure_slug, is_valid_slug, slugify

__all__ = [
    "SortRule",
    "count_by",
    "ensure_slug",
    "filter_by",
    "filter_by_many",
    "filter_where",
    "group_by",
    "is_valid_slug",
    "merge_deep",
    "merge_deep_many",
    "slugify",
    "sort_by",
    "sort_by_many",
]
