"""Deep merge for JSON-like dicts (settings, page payloads)."""

from copy import deepcopy
from typing import Any, Literal

ArrayMode = Literal["replace", "concat", "unique"]


def _merge_lists(target: list[Any], source: list[Any], mode: ArrayMode) -> list[Any]:
    if mode == "concat":
        return deepcopy(target) + deepcopy(source)
    if mode == "unique":
        result: list[Any] = []
        for item in target + source:
            if item not in result:
                result.append(deepcopy(item))
        return result
    return deepcopy(source)


def merge_deep(
    target: dict[str, Any] | None,
    source: dict[str, Any] | None,
    array_mode: ArrayMode = "replace",
) -> dict[str, Any]:
    """Return a new dict with `source` merged into `target`.

    None values in source are skipped. Neither input is mutated.
    """
    result = deepcopy(target) if isinstance(target, dict) else {}
    if not isinstance(source, dict):
        return result

    for key, value in source.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            result[key] = merge_deep(current, value, array_mode)
        elif isinstance(value, list) and isinstance(current, list):
            result[key] = _merge_lists(current, value, array_mode)
        else:
            result[key] = deepcopy(value)
    return result


def merge_deep_many(
    *sources: dict[str, Any] | None, array_mode: ArrayMode = "replace"
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for source in sources:
        result = merge_deep(result, source, array_mode)
    return result
