"""Sorting, filtering and grouping helpers for lists of rows or dicts."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from functools import cmp_to_key
from typing import Any, Literal, TypeVar

T = TypeVar("T")

Direction = Literal["asc", "desc"]
Nulls = Literal["first", "last"]
KeyType = str | Callable[[Any], Any]


@dataclass(frozen=True)
class SortRule:
    key: KeyType
    direction: Direction = "asc"
    nulls: Nulls = "last"


def get_value(item: Any, key: KeyType) -> Any:
    """Read `key` from a dict, an attribute, or by calling it."""
    if callable(key):
        return key(item)
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _comparable(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    if isinstance(value, str):
        return value.casefold()
    return value


def _compare(a: Any, b: Any, rule: SortRule) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return -1 if rule.nulls == "first" else 1
    if b is None:
        return 1 if rule.nulls == "first" else -1

    left, right = _comparable(a), _comparable(b)
    try:
        result = (left > right) - (left < right)
    except TypeError:
        left, right = str(left), str(right)
        result = (left > right) - (left < right)
    return -result if rule.direction == "desc" else result


def sort_by_many(items: Iterable[T], rules: list[SortRule]) -> list[T]:
    """Stable sort by several rules in priority order."""

    def compare(a: T, b: T) -> int:
        for rule in rules:
            result = _compare(get_value(a, rule.key), get_value(b, rule.key), rule)
            if result:
                return result
        return 0

    return sorted(items, key=cmp_to_key(compare))


def sort_by(
    items: Iterable[T],
    key: KeyType,
    direction: Direction = "asc",
    nulls: Nulls = "last",
) -> list[T]:
    return sort_by_many(items, [SortRule(key, direction, nulls)])


def filter_by(items: Iterable[T], key: KeyType, value: Any) -> list[T]:
    return [item for item in items if get_value(item, key) == value]


def filter_by_many(items: Iterable[T], key: KeyType, values: Iterable[Any]) -> list[T]:
    wanted = list(values)
    if not wanted:
        return []
    return [item for item in items if get_value(item, key) in wanted]


def filter_where(items: Iterable[T], predicate: Callable[[T], bool]) -> list[T]:
    return [item for item in items if predicate(item)]


def count_by(items: Iterable[T], key: KeyType) -> dict[Any, int]:
    counts: dict[Any, int] = {}
    for item in items:
        value = get_value(item, key)
        counts[value] = counts.get(value, 0) + 1
    return counts


def group_by(items: Iterable[T], key: KeyType) -> dict[Any, list[T]]:
    groups: dict[Any, list[T]] = {}
    for item in items:
        groups.setdefault(get_value(item, key), []).append(item)
    return groups
